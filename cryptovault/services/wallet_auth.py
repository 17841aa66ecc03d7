# cryptovault/services/wallet_auth.py
from __future__ import annotations

import re

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address: str | None) -> bool:
    return bool(address) and ADDRESS_RE.match(address) is not None


def recover_address(message: str, signature: str) -> str:
    # personal_sign (EIP-191) over the raw message text, which is the nonce
    msg = encode_defunct(text=message)
    recovered = Account.recover_message(msg, signature=signature)
    return Web3.to_checksum_address(recovered)


def signature_matches(message: str, signature: str, claimed_address: str) -> bool:
    """True when ``signature`` over ``message`` was produced by ``claimed_address``."""
    try:
        recovered = recover_address(message, signature)
    except Exception:
        # undecodable signatures are treated as a mismatch
        return False
    return recovered.lower() == claimed_address.lower()
