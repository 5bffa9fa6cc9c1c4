"""
Ethereum personal-message signature recovery (EIP-191, ``personal_sign``).

The signed payload is ``"\\x19Ethereum Signed Message:\\n" + len(message) + message``,
hashed with keccak256. eth-account does the hashing and secp256k1 recovery.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct


def recover_signer(message: str, signature: str) -> str:
    """
    Recover the checksummed address that produced ``signature`` over ``message``.

    Args:
        message: The exact text that was signed.
        signature: 65-byte signature as a hex string, with or without ``0x``.

    Returns:
        The signer's address (EIP-55 checksum case).

    Raises:
        ValueError: If the signature is not well-formed.
    """
    signable = encode_defunct(text=message)
    try:
        return Account.recover_message(signable, signature=signature)
    except Exception as e:  # eth-account raises several unrelated types for bad bytes
        msg = f"Malformed signature: {e}"
        raise ValueError(msg) from e
