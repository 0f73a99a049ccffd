"""
Minimal mock of an Aleo node plus development service.

Serves latest height, unspent records and transfers from memory so the
dispenser can be exercised end to end without a real network.
"""

import secrets

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

app = FastAPI()

LATEST_HEIGHT = 200
RECORDS = {
    f"commitment{i}": {"microcredits": microcredits, "height": 100 + i}
    for i, microcredits in enumerate([50_000, 2_000_000, 60_000, 3_000_000, 70_000, 4_000_000])
}
SPENT: set[str] = set()
REJECT_RECIPIENTS: set[str] = set()


class RecordScan(BaseModel):
    privateKey: str
    start: int
    end: int
    maxMicrocredits: int | None = None
    amounts: list[int] | None = None


class Transfer(BaseModel):
    amount: int
    fee: int
    recipient: str
    privateKey: str
    transferType: str
    amountRecord: str
    feeRecord: str


def _plaintext(commitment: str) -> str:
    return f"{{ commitment: {commitment}, microcredits: {RECORDS[commitment]['microcredits']}u64.private }}"


def _commitment_of(plaintext: str) -> str:
    return plaintext.split("commitment: ", 1)[1].split(",", 1)[0]


@app.get("/{network}/latest/height")
async def latest_height(network: str):
    return LATEST_HEIGHT


@app.post("/{network}/records/unspent")
async def unspent_records(network: str, scan: RecordScan):
    return [
        {
            "commitment": commitment,
            "record": _plaintext(commitment),
            "microcredits": info["microcredits"],
            "height": info["height"],
        }
        for commitment, info in RECORDS.items()
        if commitment not in SPENT and scan.start <= info["height"] < scan.end
    ]


@app.post("/{network}/transfer")
async def transfer(network: str, body: Transfer):
    if body.transferType != "private":
        raise HTTPException(status_code=400, detail="Only private transfers are supported")
    if body.recipient in REJECT_RECIPIENTS:
        raise HTTPException(status_code=500, detail="Transaction rejected by mempool")
    used = {_commitment_of(body.amountRecord), _commitment_of(body.feeRecord)}
    if used & SPENT:
        raise HTTPException(status_code=500, detail="Record already spent")
    SPENT.update(used)
    return f"at1{secrets.token_hex(29)}"


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=4040)
