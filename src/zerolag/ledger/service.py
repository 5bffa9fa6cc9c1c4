"""
Task/proof ledger over the record store.

Storage layout (all values are camelCase JSON records):

    task:<id>                    Task
    proof:<id>                   Proof
    stats:<identity>             Stats
    index:tasks                  {"ids": [...]}  every task, insertion order
    index:tasks:<identity>       {"ids": [...]}  tasks owned by identity
    index:proofs                 {"ids": [...]}  every proof, insertion order
    index:proofs:<task id>       {"ids": [...]}  proofs for a task
    index:stats                  {"ids": [...]}  identities with stats

Task status moves active -> completed or active -> failed exactly once, and
only through review_proof. Proof submission and review for one task run under
that task's lock so concurrent approvals cannot double-count stats. Every
operation that touches several records collects them and commits them with a
single RecordStore.set_many, so a failed write changes nothing.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog

from zerolag.auth.challenge_store import canonical_identity
from zerolag.errors import (
    AlreadyPending,
    AlreadyReviewed,
    InvalidInput,
    NotFound,
    TaskNotActive,
    ValidationError,
)
from zerolag.ledger import stats as stats_engine
from zerolag.ledger.models import AttachedFile, Proof, ProofStatus, Stats, Task, TaskStatus
from zerolag.locks import KeyedLock
from zerolag.store.base import RecordStore

logger = structlog.get_logger()

WEI_DECIMALS = 18


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ledger:
    """CRUD and status transitions for tasks and proofs, plus the stats side effects."""

    def __init__(self, store: RecordStore, *, allow_proof_resubmission: bool = False) -> None:
        self._store = store
        self._allow_proof_resubmission = allow_proof_resubmission
        self._locks = KeyedLock()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self,
        owner: str,
        title: str,
        description: str,
        staked_amount: Decimal,
        deadline: datetime,
        attached_file: AttachedFile | None = None,
        now: datetime | None = None,
    ) -> Task:
        """
        Create an active task and charge its stake to the owner's stats.

        The task, both task indexes and the owner's stats are written in one batch.

        Raises:
            InvalidInput: If owner or title is empty.
            ValidationError: If the stake is not positive, is finer than one wei,
                or the deadline is not in the future.
        """
        if now is None:
            now = _utcnow()
        if not owner or not owner.strip():
            msg = "Owner address is required"
            raise InvalidInput(msg)
        if not title or not title.strip():
            msg = "Task title is required"
            raise InvalidInput(msg)
        if staked_amount <= 0:
            msg = "Stake amount must be greater than zero"
            raise ValidationError(msg)
        if staked_amount.as_tuple().exponent < -WEI_DECIMALS:
            msg = f"Stake amount supports at most {WEI_DECIMALS} decimal places"
            raise ValidationError(msg)
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        if deadline <= now:
            msg = "Deadline must be in the future"
            raise ValidationError(msg)

        owner_key = canonical_identity(owner)
        task = Task(
            id=str(uuid.uuid4()),
            owner_identity=owner_key,
            title=title.strip(),
            description=description,
            staked_amount=staked_amount,
            deadline=deadline,
            created_at=now,
            updated_at=now,
            attached_file=attached_file,
        )

        owner_index = f"index:tasks:{owner_key}"
        async with self._locks.hold_many("index:tasks", owner_index, f"stats:{owner_key}", "index:stats"):
            batch = {
                f"task:{task.id}": task.to_record(),
                "index:tasks": await self._indexed("index:tasks", task.id),
                owner_index: await self._indexed(owner_index, task.id),
            }
            stats = await self._stats_for_update(owner_key, batch)
            batch[f"stats:{owner_key}"] = stats_engine.on_task_created(stats, staked_amount).to_record()
            await self._store.set_many(batch)

        logger.info("task_created", task_id=task.id, owner=owner_key, staked=str(staked_amount))
        return task

    async def get_task(self, task_id: str) -> Task | None:
        record = await self._store.get(f"task:{task_id}")
        return Task.model_validate(record) if record is not None else None

    async def list_tasks_by_owner(self, owner: str) -> list[Task]:
        ids = await self._read_index(f"index:tasks:{canonical_identity(owner)}")
        return await self._load_tasks(ids)

    async def list_all_tasks(self) -> list[Task]:
        return await self._load_tasks(await self._read_index("index:tasks"))

    async def record_stake_tx(self, task_id: str, tx_hash: str, now: datetime | None = None) -> Task:
        """
        Attach the staking transaction hash to a task.

        Raises:
            NotFound: If the task does not exist.
            ValidationError: If a stake transaction is already recorded.
        """
        return await self._set_tx_hash(task_id, "stake_tx_hash", tx_hash, "Stake already recorded", now)

    async def record_claim_tx(self, task_id: str, tx_hash: str, now: datetime | None = None) -> Task:
        """
        Attach the stake-claim transaction hash to a task.

        Raises:
            NotFound: If the task does not exist.
            ValidationError: If the stake was already claimed.
        """
        return await self._set_tx_hash(task_id, "claim_tx_hash", tx_hash, "Stake already claimed", now)

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    async def submit_proof(
        self,
        task_id: str,
        proof_text: str | None = None,
        attached_file: AttachedFile | None = None,
        now: datetime | None = None,
    ) -> Proof:
        """
        File a pending proof against a task and latch its proofSubmitted flag.

        Raises:
            NotFound: If the task does not exist.
            ValidationError: If neither proof text nor a file is given.
            TaskNotActive: If the task already completed or failed.
            AlreadyPending: If a proof is awaiting review and resubmission is disabled.
        """
        if now is None:
            now = _utcnow()
        if not (proof_text and proof_text.strip()) and attached_file is None:
            msg = "Please provide proof text or upload a file"
            raise ValidationError(msg)

        task_index = f"index:proofs:{task_id}"
        async with self._locks.hold_many(f"task:{task_id}", "index:proofs", task_index):
            task = await self.get_task(task_id)
            if task is None:
                msg = "Task not found"
                raise NotFound(msg)
            if task.status is not TaskStatus.ACTIVE:
                msg = f"Task is already {task.status.value}"
                raise TaskNotActive(msg)
            if not self._allow_proof_resubmission:
                existing = await self.list_proofs_for_task(task_id)
                if any(p.status is ProofStatus.PENDING for p in existing):
                    msg = "A proof for this task is already awaiting review"
                    raise AlreadyPending(msg)

            proof = Proof(
                id=str(uuid.uuid4()),
                task_id=task_id,
                proof_text=proof_text,
                attached_file=attached_file,
                submitted_at=now,
            )
            task = task.model_copy(update={"proof_submitted": True, "updated_at": now})
            await self._store.set_many({
                f"proof:{proof.id}": proof.to_record(),
                "index:proofs": await self._indexed("index:proofs", proof.id),
                task_index: await self._indexed(task_index, proof.id),
                f"task:{task_id}": task.to_record(),
            })

        logger.info("proof_submitted", proof_id=proof.id, task_id=task_id)
        return proof

    async def review_proof(
        self,
        proof_id: str,
        approve: bool,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Proof:
        """
        Approve or reject a pending proof, settling its task and the owner's stats.

        Proof, task and stats are written in one batch, so a storage failure
        leaves the proof pending and the review can be retried.

        Raises:
            NotFound: If the proof or its task does not exist.
            AlreadyReviewed: If the proof was already approved or rejected.
            TaskNotActive: If the task was already settled by another proof.
        """
        if now is None:
            now = _utcnow()
        proof = await self.get_proof(proof_id)
        if proof is None:
            msg = "Proof not found"
            raise NotFound(msg)
        task = await self.get_task(proof.task_id)
        if task is None:
            msg = "Task not found"
            raise NotFound(msg)
        owner = task.owner_identity

        async with self._locks.hold_many(f"task:{task.id}", f"stats:{owner}", "index:stats"):
            # Re-read under the lock; another review may have won the race.
            proof = await self.get_proof(proof_id)
            if proof is None:
                msg = "Proof not found"
                raise NotFound(msg)
            if proof.status is not ProofStatus.PENDING:
                msg = "Proof has already been reviewed"
                raise AlreadyReviewed(msg)
            task = await self.get_task(proof.task_id)
            if task is None:
                msg = "Task not found"
                raise NotFound(msg)
            if task.status is not TaskStatus.ACTIVE:
                msg = f"Task is already {task.status.value}"
                raise TaskNotActive(msg)

            proof = proof.model_copy(update={
                "status": ProofStatus.APPROVED if approve else ProofStatus.REJECTED,
                "review_notes": notes,
                "reviewed_at": now,
            })
            task = task.model_copy(update={
                "status": TaskStatus.COMPLETED if approve else TaskStatus.FAILED,
                "updated_at": now,
            })
            batch = {f"proof:{proof.id}": proof.to_record(), f"task:{task.id}": task.to_record()}
            stats = await self._stats_for_update(owner, batch)
            if approve:
                stats = stats_engine.on_task_approved(stats, task.staked_amount, now)
            else:
                stats = stats_engine.on_task_rejected(stats, task.staked_amount)
            batch[f"stats:{owner}"] = stats.to_record()
            await self._store.set_many(batch)

        logger.info(
            "proof_reviewed",
            proof_id=proof_id,
            task_id=task.id,
            approved=approve,
            owner=owner,
        )
        return proof

    async def get_proof(self, proof_id: str) -> Proof | None:
        record = await self._store.get(f"proof:{proof_id}")
        return Proof.model_validate(record) if record is not None else None

    async def list_proofs_for_task(self, task_id: str) -> list[Proof]:
        return await self._load_proofs(await self._read_index(f"index:proofs:{task_id}"))

    async def list_pending_proofs(self) -> list[Proof]:
        proofs = await self._load_proofs(await self._read_index("index:proofs"))
        return [p for p in proofs if p.status is ProofStatus.PENDING]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def get_stats(self, identity: str) -> Stats:
        """Stats for an identity; all zeros if it never created a task."""
        stats = await self._load_stats(canonical_identity(identity))
        return stats if stats is not None else Stats()

    async def list_all_stats(self) -> dict[str, Stats]:
        result: dict[str, Stats] = {}
        for identity in await self._read_index("index:stats"):
            stats = await self._load_stats(identity)
            if stats is not None:
                result[identity] = stats
        return result

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _set_tx_hash(
        self, task_id: str, field: str, tx_hash: str, already_set: str, now: datetime | None
    ) -> Task:
        async with self._locks.hold(f"task:{task_id}"):
            task = await self.get_task(task_id)
            if task is None:
                msg = "Task not found"
                raise NotFound(msg)
            if getattr(task, field):
                raise ValidationError(already_set)
            task = task.model_copy(update={field: tx_hash, "updated_at": now or _utcnow()})
            await self._store.set(f"task:{task.id}", task.to_record())
        return task

    async def _stats_for_update(self, identity: str, batch: dict[str, dict[str, Any]]) -> Stats:
        """Current stats for identity; first-time identities are added to index:stats in the batch."""
        stats = await self._load_stats(identity)
        if stats is None:
            batch["index:stats"] = await self._indexed("index:stats", identity)
            return Stats()
        return stats

    async def _load_stats(self, identity: str) -> Stats | None:
        record = await self._store.get(f"stats:{identity}")
        return Stats.model_validate(record) if record is not None else None

    async def _load_tasks(self, ids: list[str]) -> list[Task]:
        tasks = []
        for task_id in ids:
            task = await self.get_task(task_id)
            if task is not None:
                tasks.append(task)
        return tasks

    async def _load_proofs(self, ids: list[str]) -> list[Proof]:
        proofs = []
        for proof_id in ids:
            proof = await self.get_proof(proof_id)
            if proof is not None:
                proofs.append(proof)
        return proofs

    async def _read_index(self, key: str) -> list[str]:
        record = await self._store.get(key)
        return list(record["ids"]) if record else []

    async def _indexed(self, key: str, item: str) -> dict[str, Any]:
        """Index record with item appended. The caller holds the index lock and writes it."""
        ids = await self._read_index(key)
        ids.append(item)
        return {"ids": ids}
