# api/routes/inventory.py

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query

from bookloft.models.book import Book
from bookloft.services.analytics import Analytics
from api.dependencies import get_analytics
from api.schemas import Envelope

router = APIRouter(prefix="/inventory", tags=["inventory"])

@router.get("/summary", response_model=Envelope[Dict[str, Any]])
def summary(analytics: Analytics = Depends(get_analytics)):
    return Envelope(data=analytics.inventory_summary())

@router.get("/books/multiple-copies", response_model=Envelope[List[Book]])
def multiple_copies(analytics: Analytics = Depends(get_analytics)):
    return Envelope(data=analytics.multiple_copies())

@router.get("/books/out-of-stock", response_model=Envelope[List[Book]])
def out_of_stock(analytics: Analytics = Depends(get_analytics)):
    return Envelope(data=analytics.out_of_stock())

@router.get("/analytics", response_model=Envelope[Dict[str, Any]])
def period_analytics(
    period: int = Query(30, ge=1, description="Trailing window in days"),
    analytics: Analytics = Depends(get_analytics)
):
    return Envelope(data=analytics.period_analytics(days=period))

@router.get("/audit", response_model=Envelope[List[Dict[str, Any]]])
def audit(analytics: Analytics = Depends(get_analytics)):
    """Books whose stock differs from their replayed transaction history"""
    return Envelope(data=analytics.audit())
