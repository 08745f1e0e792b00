# api/dependencies.py

from typing import Optional
from fastapi import Header, Request

from bookloft.services.analytics import Analytics
from bookloft.services.catalog import Catalog
from bookloft.services.ledger import Ledger
from bookloft.services.sync import SyncReconciler

def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger

def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog

def get_reconciler(request: Request) -> SyncReconciler:
    return request.app.state.reconciler

def get_analytics(request: Request) -> Analytics:
    return request.app.state.analytics

def get_volunteer_name(x_volunteer_name: Optional[str] = Header(default=None)) -> Optional[str]:
    """Name of the volunteer making the request, as passed on by the auth proxy"""
    return x_volunteer_name or None
