"""
FastAPI REST API Module

Feeds transactions into a single LedgerEngine one request at a time and
exposes account snapshots. Handlers are async and never await, so they run
to completion on the event loop in arrival order.
"""

from datetime import datetime, timezone
from typing import Optional, Union
from fastapi import FastAPI, HTTPException, Depends, status
from pydantic import BaseModel, Field, StrictInt, StrictStr
import uvicorn

from . import __version__
from .amounts import parse_amount
from .config import get_config
from .errors import LedgerError
from .ledger import LedgerEngine
from .transactions import Transaction, TransactionType, MAX_CLIENT_ID, MAX_TX_ID


# Pydantic models for API requests
class TransactionRequest(BaseModel):
    type: TransactionType = Field(..., description="deposit, withdrawal, dispute, resolve or chargeback")
    client: int = Field(..., ge=0, le=MAX_CLIENT_ID, description="Client id (u16)")
    tx: int = Field(..., ge=0, le=MAX_TX_ID, description="Transaction id (u32)")
    amount: Optional[Union[StrictStr, StrictInt]] = Field(
        None,
        description="Decimal amount as a string such as \"1.5\", or a JSON integer; "
                    "floats are refused. Deposits and withdrawals only"
    )

    def to_transaction(self) -> Transaction:
        # Same leniency as the CSV feed: an unparseable amount is no amount
        amount = None if self.amount is None else parse_amount(str(self.amount))
        return Transaction(self.type, self.client, self.tx, amount)


# Global engine instance
ledger_engine = LedgerEngine()


app = FastAPI(
    title="Payments Engine API",
    description="Client account ledger with deposits, withdrawals, disputes and chargebacks",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)


# Dependency to get the ledger engine
def get_ledger_engine() -> LedgerEngine:
    return ledger_engine


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/transactions")
async def submit_transaction(
    request: TransactionRequest,
    engine: LedgerEngine = Depends(get_ledger_engine)
):
    """Apply one transaction"""
    transaction = request.to_transaction()
    try:
        engine.process(transaction)
    except LedgerError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())

    return {
        "status": "applied",
        "account": engine.get_account(transaction.client).to_dict()
    }


@app.get("/accounts")
async def list_accounts(engine: LedgerEngine = Depends(get_ledger_engine)):
    """All accounts in first-seen order"""
    return {"accounts": [account.to_dict() for account in engine.accounts().values()]}


@app.get("/accounts/{client}")
async def get_account(client: int, engine: LedgerEngine = Depends(get_ledger_engine)):
    """Get one client's account"""
    account = engine.get_account(client)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account.to_dict()


@app.get("/")
async def root():
    """Root endpoint with system information"""
    return {
        "system": "Payments Engine",
        "version": __version__,
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "transactions": "/transactions",
            "accounts": "/accounts"
        }
    }


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "payments_engine.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
