# api/main.py
import logging
import os
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from bookloft.errors import BookloftError
from bookloft.sa.database import Database
from bookloft.services.analytics import Analytics
from bookloft.services.catalog import Catalog
from bookloft.services.ledger import Ledger
from bookloft.services.sync import SyncReconciler
from bookloft.utils.locks import BookLocks
from api.routes import books, inventory, sync, transactions

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "insufficient_stock": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}}
    )

def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")

def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the API around one Database and the services sharing its book locks"""
    logging.basicConfig(level=os.getenv("BOOKLOFT_LOG_LEVEL", "INFO").upper())

    app = FastAPI(title="Bookloft")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    database = database or Database()
    locks = BookLocks()
    app.state.database = database
    app.state.ledger = Ledger(database, locks)
    app.state.catalog = Catalog(database, locks)
    app.state.reconciler = SyncReconciler(database, locks, reject_stale=_env_flag("BOOKLOFT_REJECT_STALE_SYNC"))
    app.state.analytics = Analytics(database)

    @app.on_event("startup")
    def startup_event():
        database.init_db()
        logger.info(f"Bookloft API started on {database.engine.url!r}")

    @app.on_event("shutdown")
    def shutdown_event():
        database.dispose()

    @app.exception_handler(BookloftError)
    async def bookloft_error_handler(request: Request, exc: BookloftError):
        return _error_response(
            ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            exc.code,
            exc.message
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return _error_response(status.HTTP_400_BAD_REQUEST, "invalid_argument", f"{location}: {first['msg']}")

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    for module in (books, transactions, sync, inventory):
        app.include_router(module.router, prefix="/api")

    return app

app = create_app()

# Main execution
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["api", "bookloft"]
    )
