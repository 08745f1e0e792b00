# api/routes/transactions.py

from datetime import datetime
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query, status

from bookloft.models.book import Transaction, TransactionCreate
from bookloft.sa.models import TransactionType
from bookloft.services.analytics import Analytics
from bookloft.services.ledger import Ledger
from api.dependencies import get_analytics, get_ledger, get_volunteer_name
from api.schemas import Envelope, Pagination, TransactionPage

router = APIRouter(prefix="/transactions", tags=["transactions"])

@router.get("", response_model=Envelope[TransactionPage])
def list_transactions(
    book_id: Optional[str] = Query(None),
    type: Optional[TransactionType] = Query(None),
    volunteer_name: Optional[str] = Query(None, description="Substring of the volunteer's name"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    ledger: Ledger = Depends(get_ledger)
):
    transactions, total = ledger.list_transactions(
        book_id=book_id,
        type=type.value if type else None,
        volunteer_name=volunteer_name,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit
    )
    return Envelope(data=TransactionPage(
        transactions=[Transaction.model_validate(t) for t in transactions],
        pagination=Pagination.build(page, limit, total)
    ))

@router.get("/analytics/time-based", response_model=Envelope[Dict[str, Dict[str, int]]])
def time_based_analytics(analytics: Analytics = Depends(get_analytics)):
    return Envelope(data=analytics.time_based())

@router.get("/{transaction_id}", response_model=Envelope[Transaction])
def get_transaction(transaction_id: str, ledger: Ledger = Depends(get_ledger)):
    return Envelope(data=Transaction.model_validate(ledger.get(transaction_id)))

@router.post("", response_model=Envelope[Transaction], status_code=status.HTTP_201_CREATED)
def create_transaction(
    body: TransactionCreate,
    ledger: Ledger = Depends(get_ledger),
    volunteer_name: Optional[str] = Depends(get_volunteer_name)
):
    """Record a donation or sale. The identifier and created_at are always assigned here."""
    transaction = ledger.append(
        type=body.type,
        book_id=body.book_id,
        quantity=body.quantity,
        date=body.date,
        volunteer_name=volunteer_name,
        notes=body.notes
    )
    return Envelope(data=Transaction.model_validate(transaction))
