# api/routes/sync.py

from typing import Optional
from fastapi import APIRouter, Depends, Query

from bookloft.models.sync import SyncDelta, SyncResult, SyncStatus
from bookloft.services.sync import SyncReconciler
from api.dependencies import get_reconciler
from api.schemas import Envelope, SyncUpload

router = APIRouter(prefix="/sync", tags=["sync"])

@router.post("/upload", response_model=Envelope[SyncResult])
def upload(body: SyncUpload, reconciler: SyncReconciler = Depends(get_reconciler)):
    """Merge an offline client's books and transactions; failures are reported per item"""
    return Envelope(data=reconciler.upload_merge(body.books, body.transactions, body.last_sync))

@router.get("/download", response_model=Envelope[SyncDelta])
def download(
    since: Optional[str] = Query(None, description="Watermark: ISO-8601 timestamp of the last sync"),
    reconciler: SyncReconciler = Depends(get_reconciler)
):
    return Envelope(data=reconciler.download_delta(since))

@router.get("/status", response_model=Envelope[SyncStatus])
def sync_status(reconciler: SyncReconciler = Depends(get_reconciler)):
    return Envelope(data=reconciler.sync_status())
