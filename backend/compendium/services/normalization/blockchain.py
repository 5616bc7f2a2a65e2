"""
Blockchain detection from address format.

Never raises: an address we can't place yields UNKNOWN so that indexing
keeps going.
"""

import re
from typing import Literal, Union

ETHEREUM = "ethereum"
TEZOS = "tezos"
UNKNOWN = "unknown"

# objkt shows wrapped tez in inventories; it is not an artwork
WRAPPED_TEZOS_CONTRACT = "KT1TjnZYs5CGLbmV6yuW169P8Pnr9BiVwwjz"
EXCLUDED_TEZOS_CONTRACTS = {WRAPPED_TEZOS_CONTRACT}

_TEZOS_WALLET_RE = re.compile(r"^(tz1|tz2|tz3|KT1)[a-zA-Z0-9]{33}$")
_WALLET_SPLIT_RE = re.compile(r"[,;\n]")


def detect_blockchain(address: object) -> str:
    """
    Classify a wallet address.

    Examples:
        "0x" + 40 hex chars → "ethereum"
        "tz1..." (36 chars) → "tezos"
        "foo"               → "unknown"
    """
    if not address or not isinstance(address, str):
        return UNKNOWN

    clean = address.strip()

    if clean.startswith("0x") and len(clean) == 42:
        return ETHEREUM
    if _TEZOS_WALLET_RE.match(clean):
        return TEZOS
    return UNKNOWN


def detect_blockchain_from_contract(contract_address: object) -> str:
    """Classify a contract address (KT1/KT2 → tezos, 0x → ethereum)."""
    if not contract_address or not isinstance(contract_address, str):
        return UNKNOWN

    clean = contract_address.strip()

    if clean.lower().startswith(("kt1", "kt2")):
        return TEZOS
    if clean.startswith("0x"):
        return ETHEREUM
    return UNKNOWN


def data_source_for(
    blockchain: str | None, stage: Literal["discovery", "promotion"] = "discovery"
) -> str:
    """Which upstream the index row is attributed to."""
    if (blockchain or "").lower() == TEZOS:
        return "objkt" if stage == "discovery" else "teztok"
    return "opensea"


def is_excluded_contract(contract_address: str | None) -> bool:
    return contract_address in EXCLUDED_TEZOS_CONTRACTS


def is_valid_wallet_address(address: object, blockchain: str | None = None) -> bool:
    detected = detect_blockchain(address)
    if blockchain:
        return detected == blockchain
    return detected != UNKNOWN


def parse_wallet_input(raw: Union[str, list, None]) -> list[str]:
    """Split comma/semicolon/newline separated input into clean addresses."""
    if not raw:
        return []
    if isinstance(raw, str):
        parts = _WALLET_SPLIT_RE.split(raw)
    else:
        parts = [str(item) for item in raw]
    return [p.strip() for p in parts if p and p.strip()]
