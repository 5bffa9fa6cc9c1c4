"""Ledger + staking contract orchestration.

The owner's wallet sends createTask and claimStake itself. The workflow
checks the mined transaction against the ledger task and records its hash:
sender is the owner, the call targets the staking contract with this task's
id, and createTask carries exactly the staked amount. Confirmations for one
task are serialized, so a hash is recorded at most once.
"""

from __future__ import annotations

import structlog

from zerolag.chain.contract import ContractCall, StakingContract, deadline_timestamp, to_wei
from zerolag.errors import ChainError, Forbidden, NotFound, ValidationError
from zerolag.ledger.models import Task, TaskStatus
from zerolag.ledger.service import Ledger
from zerolag.locks import KeyedLock

logger = structlog.get_logger()


class StakingWorkflow:
    def __init__(self, ledger: Ledger, contract: StakingContract | None = None) -> None:
        self._ledger = ledger
        self._contract = contract
        self._locks = KeyedLock()

    @property
    def chain_enabled(self) -> bool:
        return self._contract is not None

    async def confirm_stake(self, task_id: str, identity: str, tx_hash: str) -> Task:
        """
        Record the owner's createTask transaction for an active task.

        Raises:
            NotFound: Unknown task.
            Forbidden: Task belongs to someone else.
            ValidationError: Stake already recorded, task settled, or the
                transaction does not lock this task's stake.
            ChainError: No contract configured or the node is unreachable.
        """
        async with self._locks.hold(task_id):
            task = await self._owned_task(task_id, identity, "Only the task owner can stake on it")
            if task.stake_tx_hash:
                msg = "Stake already recorded"
                raise ValidationError(msg)
            if task.status is not TaskStatus.ACTIVE:
                msg = "Only active tasks can be staked"
                raise ValidationError(msg)

            call = await self._require_contract().fetch_call(tx_hash)
            self._check_call(call, "createTask", task)
            if call.value_wei != to_wei(task.staked_amount):
                msg = "Transaction value does not match the staked amount"
                raise ValidationError(msg)
            if call.args.get("_deadline") != deadline_timestamp(task.deadline):
                msg = "Transaction deadline does not match the task"
                raise ValidationError(msg)

            task = await self._ledger.record_stake_tx(task.id, call.tx_hash)
        logger.info("stake_confirmed", task_id=task.id, owner=task.owner_identity, tx_hash=call.tx_hash)
        return task

    async def claim(self, task_id: str, identity: str, tx_hash: str) -> Task:
        """
        Record the owner's claimStake transaction for a completed task.

        Raises:
            NotFound: Unknown task.
            Forbidden: Task belongs to someone else.
            ValidationError: Task not completed, already claimed, or the
                transaction is not this owner's claim for this task.
            ChainError: No contract configured or the node is unreachable.
        """
        async with self._locks.hold(task_id):
            task = await self._owned_task(task_id, identity, "Only the task owner can claim its stake")
            if task.status is not TaskStatus.COMPLETED:
                msg = "Only completed tasks can be claimed"
                raise ValidationError(msg)
            if task.claim_tx_hash:
                msg = "Stake already claimed"
                raise ValidationError(msg)

            call = await self._require_contract().fetch_call(tx_hash)
            self._check_call(call, "claimStake", task)

            task = await self._ledger.record_claim_tx(task.id, call.tx_hash)
        logger.info("stake_claimed", task_id=task.id, owner=task.owner_identity, tx_hash=call.tx_hash)
        return task

    async def balance(self, address: str) -> str:
        """Wallet balance in ETH, four decimal places."""
        amount = await self._require_contract().get_balance(address)
        return f"{amount:.4f}"

    async def _owned_task(self, task_id: str, identity: str, forbidden: str) -> Task:
        task = await self._ledger.get_task(task_id)
        if task is None:
            msg = "Task not found"
            raise NotFound(msg)
        if task.owner_identity != identity.lower():
            raise Forbidden(forbidden)
        return task

    @staticmethod
    def _check_call(call: ContractCall, function: str, task: Task) -> None:
        if not call.succeeded:
            msg = "Transaction reverted"
            raise ValidationError(msg)
        if call.function != function:
            msg = f"Transaction is not a {function} call to the staking contract"
            raise ValidationError(msg)
        if call.args.get("_taskId") != task.id:
            msg = "Transaction is for a different task"
            raise ValidationError(msg)
        if call.sender != task.owner_identity:
            msg = "Transaction was not sent by the task owner"
            raise ValidationError(msg)

    def _require_contract(self) -> StakingContract:
        if self._contract is None:
            msg = "No staking contract configured"
            raise ChainError(msg)
        return self._contract
