"""
Wallet-address settings: the list of wallets the indexer discovers from.

Stored as a JSON array under the `wallet_addresses` key of the settings
table. Reads are defensive: a missing key, unparseable JSON or a non-list
value all read as an empty list. Address matching is case-insensitive and
scoped per blockchain.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compendium.core.errors import RecordValidationError
from compendium.models import Setting
from compendium.schemas.settings import WalletAddressEntry
from compendium.services.normalization.blockchain import UNKNOWN, detect_blockchain

logger = logging.getLogger(__name__)

WALLET_ADDRESSES_KEY = "wallet_addresses"


def _same_wallet(entry: WalletAddressEntry, address: str, blockchain: str) -> bool:
    return entry.address.lower() == address.lower() and entry.blockchain == blockchain


async def get_wallet_addresses(session: AsyncSession) -> list[WalletAddressEntry]:
    result = await session.execute(select(Setting).where(Setting.key == WALLET_ADDRESSES_KEY))
    setting = result.scalar_one_or_none()
    if setting is None or not setting.value:
        return []

    try:
        value = json.loads(setting.value)
    except ValueError as e:
        logger.error("Error parsing wallet addresses JSON: %s", e)
        return []

    if not isinstance(value, list):
        logger.error("Wallet addresses value is not a list: %.80r", value)
        return []

    entries = []
    for item in value:
        try:
            entries.append(WalletAddressEntry.model_validate(item))
        except ValidationError:
            logger.warning("Dropping malformed wallet entry: %.80r", item)
    return entries


async def _save(session: AsyncSession, entries: list[WalletAddressEntry]) -> None:
    payload = json.dumps(
        [e.model_dump(by_alias=True, exclude_none=True) for e in entries]
    )
    setting = await session.get(Setting, WALLET_ADDRESSES_KEY)
    if setting is None:
        session.add(Setting(key=WALLET_ADDRESSES_KEY, value=payload))
    else:
        setting.value = payload
    await session.commit()


async def add_wallet_address(
    session: AsyncSession,
    address: str,
    blockchain: Optional[str] = None,
    alias: Optional[str] = None,
) -> list[WalletAddressEntry]:
    """
    Add a wallet; an existing (address, blockchain) pair only gets its alias
    updated. Raises RecordValidationError for an unrecognizable address.
    """
    address = address.strip()
    detected = detect_blockchain(address)
    blockchain = (blockchain or detected).lower()
    if detected == UNKNOWN or detected != blockchain:
        raise RecordValidationError(f"Invalid {blockchain} wallet address: {address!r}")

    entries = await get_wallet_addresses(session)

    if any(_same_wallet(e, address, blockchain) for e in entries):
        if alias:
            return await update_wallet_address(session, address, blockchain, alias=alias)
        return entries

    entries.append(WalletAddressEntry(
        address=address,
        blockchain=blockchain,
        alias=alias,
        created_at=datetime.now(timezone.utc).isoformat(),
    ))
    await _save(session, entries)
    logger.info("Added %s wallet %s", blockchain, address)
    return entries


async def remove_wallet_address(
    session: AsyncSession, address: str, blockchain: str
) -> list[WalletAddressEntry]:
    entries = await get_wallet_addresses(session)
    remaining = [e for e in entries if not _same_wallet(e, address, blockchain)]
    if len(remaining) != len(entries):
        await _save(session, remaining)
        logger.info("Removed %s wallet %s", blockchain, address)
    return remaining


async def update_wallet_address(
    session: AsyncSession,
    address: str,
    blockchain: str,
    alias: Optional[str] = None,
) -> list[WalletAddressEntry]:
    entries = await get_wallet_addresses(session)
    for entry in entries:
        if _same_wallet(entry, address, blockchain):
            entry.alias = alias
    await _save(session, entries)
    return entries
