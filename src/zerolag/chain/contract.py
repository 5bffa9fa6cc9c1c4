"""
Staking contract capability.

The contract is a mock ABI (createTask / claimStake / failTask / getTaskDetails).
Stakes are locked and claimed by the owner's own wallet; the server never
signs. It only reads mined transactions back through web3.py to confirm what
the wallet did. Callers only see the StakingContract protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from zerolag.errors import ChainError, ValidationError

logger = structlog.get_logger()

STAKING_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "string", "name": "_taskId", "type": "string"},
            {"internalType": "uint256", "name": "_deadline", "type": "uint256"},
        ],
        "name": "createTask",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "string", "name": "_taskId", "type": "string"}],
        "name": "claimStake",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "string", "name": "_taskId", "type": "string"}],
        "name": "failTask",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "string", "name": "_taskId", "type": "string"}],
        "name": "getTaskDetails",
        "outputs": [
            {"internalType": "address", "name": "user", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
            {"internalType": "bool", "name": "completed", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


def to_wei(amount_eth: Decimal) -> int:
    return int(Web3.to_wei(amount_eth, "ether"))


def from_wei(amount_wei: int) -> Decimal:
    return Decimal(Web3.from_wei(amount_wei, "ether"))


def deadline_timestamp(deadline: datetime) -> int:
    """Unix seconds, floored, as the contract expects."""
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return int(deadline.timestamp())


@dataclass(frozen=True)
class ContractCall:
    """A mined transaction as seen from the staking contract.

    ``function`` is None when the transaction was not a call into the
    staking contract (wrong recipient or unknown selector).
    """

    tx_hash: str
    sender: str
    value_wei: int
    succeeded: bool
    function: str | None = None
    args: dict[str, Any] = field(default_factory=dict)
    block_number: int | None = None


class StakingContract(Protocol):
    async def fetch_call(self, tx_hash: str) -> ContractCall: ...

    async def get_balance(self, address: str) -> Decimal: ...


class Web3StakingContract:
    """Read-only StakingContract over JSON-RPC."""

    def __init__(self, rpc_url: str, contract_address: str, w3: AsyncWeb3 | None = None) -> None:
        self._w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._address = Web3.to_checksum_address(contract_address)
        # Decoding calldata needs no provider.
        self._decoder = Web3().eth.contract(address=self._address, abi=STAKING_ABI)

    async def fetch_call(self, tx_hash: str) -> ContractCall:
        """
        Load a mined transaction and decode its staking-contract call.

        Raises:
            ValidationError: If the hash is unknown or not mined yet.
            ChainError: If the node cannot be reached.
        """
        try:
            tx = await self._w3.eth.get_transaction(tx_hash)
            receipt = await self._w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound as e:
            msg = "Transaction not found or not yet mined"
            raise ValidationError(msg) from e
        except Exception as e:
            logger.warning("chain_tx_lookup_failed", tx_hash=tx_hash, error=str(e))
            msg = "Could not fetch transaction"
            raise ChainError(msg) from e

        function: str | None = None
        args: dict[str, Any] = {}
        recipient = tx.get("to")
        if recipient and Web3.to_checksum_address(recipient) == self._address:
            try:
                fn, args = self._decoder.decode_function_input(tx["input"])
                function = fn.fn_name
            except (ValueError, Web3Exception):
                logger.info("chain_tx_undecodable", tx_hash=tx_hash)
                args = {}

        return ContractCall(
            tx_hash=Web3.to_hex(receipt["transactionHash"]),
            sender=str(tx["from"]).lower(),
            value_wei=int(tx["value"]),
            succeeded=receipt["status"] == 1,
            function=function,
            args=dict(args),
            block_number=receipt["blockNumber"],
        )

    async def get_balance(self, address: str) -> Decimal:
        try:
            checksum = Web3.to_checksum_address(address)
        except ValueError as e:
            msg = "Invalid wallet address"
            raise ValidationError(msg) from e
        try:
            balance = await self._w3.eth.get_balance(checksum)
        except Exception as e:
            logger.warning("chain_balance_failed", address=address, error=str(e))
            msg = "Could not fetch wallet balance"
            raise ChainError(msg) from e
        return from_wei(balance)
