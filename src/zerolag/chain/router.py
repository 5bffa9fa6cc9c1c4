"""Wallet endpoints backed by the staking contract."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from zerolag.chain.workflow import StakingWorkflow
from zerolag.dependencies import get_staking_workflow

router = APIRouter(prefix="/api/wallet", tags=["Wallet"])


class BalanceResponse(BaseModel):
    address: str
    balance: str


@router.get("/{address}/balance", response_model=BalanceResponse)
async def wallet_balance(
    address: str,
    workflow: StakingWorkflow = Depends(get_staking_workflow),
) -> BalanceResponse:
    """ETH balance of any address, as reported by the chain."""
    return BalanceResponse(address=address, balance=await workflow.balance(address))
