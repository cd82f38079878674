"""
Main application entry point for the Rollup Transaction API.

This module defines the FastAPI application and the read-only endpoints that
report the status and contents of rollup transactions. Each request gets its
own database session, which is closed on every exit path.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rollup_api.config import settings
from rollup_api.database import Base, engine, get_db
from rollup_api.hash_codec import HashDecodeError
from rollup_api.resolver import TransactionResolver
from rollup_api.schemas import Receipt, TransactionData
from rollup_api.storage import StorageGateway

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Tables are owned by the block executor; creating them here only matters for
# fresh local databases.
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.api_title)


@app.exception_handler(HashDecodeError)
def hash_decode_error_handler(request: Request, exc: HashDecodeError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage error while handling %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal storage error"})


def get_resolver(db: Session = Depends(get_db)) -> TransactionResolver:
    return TransactionResolver(StorageGateway(db))


@app.get("/transaction/{tx_hash}", response_model=Receipt)
def tx_status(tx_hash: str, resolver: TransactionResolver = Depends(get_resolver)):
    """
    Report the lifecycle status of a transaction.

    The hash may identify a priority operation (by its base-chain hash) or a
    rollup transaction. Priority operations are returned as L1 receipts with
    `eth_block` and `id`; rollup transactions as L2 receipts with `tx_hash`.

    Raises:
        HTTPException: 404 if no source knows the hash.
    """
    receipt = resolver.resolve_receipt(tx_hash)
    if receipt is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return receipt


@app.get("/transaction/{tx_hash}/data", response_model=TransactionData)
def tx_data(tx_hash: str, resolver: TransactionResolver = Depends(get_resolver)):
    """Return the full transaction record, including the base-chain co-signature if any."""
    data = resolver.resolve_data(tx_hash)
    if data is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return data


@app.get("/health")
def health_check():
    return {"status": "healthy"}
