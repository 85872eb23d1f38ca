from fastapi import FastAPI, HTTPException
from typing import Any, Dict, List

app = FastAPI(title="Mock Ledger Server", version="1.0.0")
# In-memory book of linked transactions, keyed by account
TRANSACTIONS: Dict[str, List[Dict[str, Any]]] = {}

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/mock-ledger/transactions", status_code=201)
def create_transaction(payload: Dict[str, Any]):
    account = payload.get("account_ref")
    if not account:
        raise HTTPException(status_code=422, detail="account_ref required")
    TRANSACTIONS.setdefault(account, []).append(payload)
    return {"status": "booked", "count": len(TRANSACTIONS[account])}

@app.get("/mock-ledger/transactions")
def list_transactions(account_ref: str):
    return {"account_ref": account_ref, "transactions": TRANSACTIONS.get(account_ref, [])}
