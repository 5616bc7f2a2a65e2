from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WalletAddressEntry(BaseModel):
    """One configured wallet, as stored in the wallet_addresses setting."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str
    blockchain: str
    alias: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")


class WalletAddressCreate(BaseModel):
    address: str
    blockchain: Optional[str] = None  # detected from the address when omitted
    alias: Optional[str] = None


class WalletAddressUpdate(BaseModel):
    alias: Optional[str] = None
