"""Ledger API endpoints for tasks, proofs and stats."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from zerolag.auth.dependencies import get_current_address, is_admin, require_admin
from zerolag.chain.workflow import StakingWorkflow
from zerolag.dependencies import get_ledger, get_staking_workflow
from zerolag.ledger.models import Proof, Stats, Task
from zerolag.ledger.schemas import (
    AllStatsResponse,
    CreateTaskRequest,
    ReviewProofRequest,
    SubmitProofRequest,
    TxHashRequest,
)
from zerolag.ledger.service import Ledger

router = APIRouter(prefix="/api", tags=["Ledger"])


async def _visible_task(task_id: str, address: str, ledger: Ledger) -> Task:
    """Load a task the caller owns (admins see every task)."""
    task = await ledger.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if task.owner_identity != address and not is_admin(address):
        # Same answer as a missing task; ids of other users' tasks are not disclosed.
        raise HTTPException(status_code=404, detail="Task not found")
    return task


# ── Owner endpoints ──


@router.post("/tasks", response_model=Task, status_code=201)
async def create_task(
    body: CreateTaskRequest,
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> Task:
    """Create a task. The stake is locked afterwards from the owner's wallet."""
    return await ledger.create_task(
        address,
        body.title,
        body.description,
        body.staked_amount,
        body.deadline,
        attached_file=body.attached_file,
    )


@router.get("/tasks", response_model=list[Task])
async def list_my_tasks(
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> list[Task]:
    return await ledger.list_tasks_by_owner(address)


@router.get("/tasks/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> Task:
    return await _visible_task(task_id, address, ledger)


@router.post("/tasks/{task_id}/proofs", response_model=Proof, status_code=201)
async def submit_proof(
    task_id: str,
    body: SubmitProofRequest,
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> Proof:
    """Submit completion proof (text and/or an uploaded file) for review."""
    task = await ledger.get_task(task_id)
    if task is None or task.owner_identity != address:
        raise HTTPException(status_code=404, detail="Task not found")
    return await ledger.submit_proof(task_id, body.proof_text, body.attached_file)


@router.get("/tasks/{task_id}/proofs", response_model=list[Proof])
async def list_task_proofs(
    task_id: str,
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> list[Proof]:
    await _visible_task(task_id, address, ledger)
    return await ledger.list_proofs_for_task(task_id)


@router.post("/tasks/{task_id}/stake", response_model=Task)
async def confirm_stake(
    task_id: str,
    body: TxHashRequest,
    address: str = Depends(get_current_address),
    workflow: StakingWorkflow = Depends(get_staking_workflow),
) -> Task:
    """Record the createTask transaction the owner sent from their wallet."""
    return await workflow.confirm_stake(task_id, address, body.tx_hash)


@router.post("/tasks/{task_id}/claim", response_model=Task)
async def claim_stake(
    task_id: str,
    body: TxHashRequest,
    address: str = Depends(get_current_address),
    workflow: StakingWorkflow = Depends(get_staking_workflow),
) -> Task:
    """Record the claimStake transaction for a completed task."""
    return await workflow.claim(task_id, address, body.tx_hash)


@router.get("/stats/me", response_model=Stats)
async def my_stats(
    address: str = Depends(get_current_address),
    ledger: Ledger = Depends(get_ledger),
) -> Stats:
    return await ledger.get_stats(address)


# ── Admin endpoints ──


@router.get("/admin/tasks", response_model=list[Task])
async def list_all_tasks(
    _admin: str = Depends(require_admin),
    ledger: Ledger = Depends(get_ledger),
) -> list[Task]:
    return await ledger.list_all_tasks()


@router.get("/admin/proofs/pending", response_model=list[Proof])
async def list_pending_proofs(
    _admin: str = Depends(require_admin),
    ledger: Ledger = Depends(get_ledger),
) -> list[Proof]:
    return await ledger.list_pending_proofs()


@router.post("/admin/proofs/{proof_id}/review", response_model=Proof)
async def review_proof(
    proof_id: str,
    body: ReviewProofRequest,
    _admin: str = Depends(require_admin),
    ledger: Ledger = Depends(get_ledger),
) -> Proof:
    """Approve (stake returned) or reject (stake burned) a pending proof."""
    return await ledger.review_proof(proof_id, body.approve, body.notes)


@router.get("/admin/stats", response_model=AllStatsResponse)
async def all_stats(
    _admin: str = Depends(require_admin),
    ledger: Ledger = Depends(get_ledger),
) -> AllStatsResponse:
    return AllStatsResponse(stats=await ledger.list_all_stats())
