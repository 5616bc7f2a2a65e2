"""
Configured wallet addresses (the wallets discovery indexes).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from compendium.core.database import get_session
from compendium.core.errors import RecordValidationError
from compendium.schemas.settings import (
    WalletAddressCreate,
    WalletAddressEntry,
    WalletAddressUpdate,
)
from compendium.services import settings_manager

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/wallets", response_model=list[WalletAddressEntry])
async def list_wallets(session: AsyncSession = Depends(get_session)):
    return await settings_manager.get_wallet_addresses(session)


@router.post("/wallets", response_model=list[WalletAddressEntry], status_code=201)
async def add_wallet(
    body: WalletAddressCreate,
    session: AsyncSession = Depends(get_session),
):
    """Add a wallet; blockchain is detected from the address when omitted."""
    try:
        return await settings_manager.add_wallet_address(
            session, body.address, blockchain=body.blockchain, alias=body.alias
        )
    except RecordValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/wallets/{blockchain}/{address}", response_model=list[WalletAddressEntry])
async def update_wallet(
    blockchain: str,
    address: str,
    body: WalletAddressUpdate,
    session: AsyncSession = Depends(get_session),
):
    return await settings_manager.update_wallet_address(
        session, address, blockchain, alias=body.alias
    )


@router.delete("/wallets/{blockchain}/{address}", response_model=list[WalletAddressEntry])
async def remove_wallet(
    blockchain: str,
    address: str,
    session: AsyncSession = Depends(get_session),
):
    return await settings_manager.remove_wallet_address(session, address, blockchain)
