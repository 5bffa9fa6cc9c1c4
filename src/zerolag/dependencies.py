"""Shared FastAPI dependencies.

Services hold per-process locks, so each is built once per active record store
and reused across requests.
"""

from __future__ import annotations

from zerolag.auth.challenge_store import ChallengeStore
from zerolag.auth.service import Authenticator
from zerolag.chain.contract import StakingContract, Web3StakingContract
from zerolag.chain.workflow import StakingWorkflow
from zerolag.config import get_settings
from zerolag.files.service import FileService
from zerolag.ledger.service import Ledger
from zerolag.store import RecordStore, get_store

_authenticator: Authenticator | None = None
_ledger: Ledger | None = None
_files: FileService | None = None
_workflow: StakingWorkflow | None = None
_contract: StakingContract | None = None
_bound_store: RecordStore | None = None


def _ensure_bound() -> RecordStore:
    """Drop cached services when the active store was swapped (tests, restarts)."""
    global _bound_store  # noqa: PLW0603
    store = get_store()
    if store is not _bound_store:
        reset_services()
        _bound_store = store
    return store


def reset_services() -> None:
    global _authenticator, _ledger, _files, _workflow, _bound_store  # noqa: PLW0603
    _authenticator = None
    _ledger = None
    _files = None
    _workflow = None
    _bound_store = None


def set_staking_contract(contract: StakingContract | None) -> None:
    """Install the contract capability (startup wiring or a test fake)."""
    global _contract, _workflow  # noqa: PLW0603
    _contract = contract
    _workflow = None


def build_staking_contract() -> StakingContract | None:
    """Read-only Web3 contract if an RPC URL is configured, else None (chain checks disabled)."""
    settings = get_settings()
    if not settings.chain_rpc_url:
        return None
    return Web3StakingContract(
        settings.chain_rpc_url,
        settings.staking_contract_address,
    )


def get_authenticator() -> Authenticator:
    global _authenticator  # noqa: PLW0603
    store = _ensure_bound()
    if _authenticator is None:
        settings = get_settings()
        _authenticator = Authenticator(
            ChallengeStore(store),
            ttl_seconds=settings.challenge_ttl_seconds,
            invalidate_on_failure=settings.challenge_invalidate_on_failure,
        )
    return _authenticator


def get_ledger() -> Ledger:
    global _ledger  # noqa: PLW0603
    store = _ensure_bound()
    if _ledger is None:
        _ledger = Ledger(store, allow_proof_resubmission=get_settings().allow_proof_resubmission)
    return _ledger


def get_file_service() -> FileService:
    global _files  # noqa: PLW0603
    store = _ensure_bound()
    if _files is None:
        _files = FileService(store, max_bytes=get_settings().max_file_bytes)
    return _files


def get_staking_workflow() -> StakingWorkflow:
    global _workflow  # noqa: PLW0603
    ledger = get_ledger()
    if _workflow is None:
        _workflow = StakingWorkflow(ledger, _contract)
    return _workflow
