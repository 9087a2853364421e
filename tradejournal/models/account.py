"""Account data model."""

from typing import Optional
from pydantic import BaseModel, Field


class Account(BaseModel):
    """Represents a trading account and its commission schedule."""

    id: Optional[int] = Field(default=None, description="Database ID")
    name: str = Field(..., min_length=1, description="Account name")
    broker: Optional[str] = Field(default=None, description="Broker or prop firm")
    account_number: Optional[str] = Field(default=None, description="Broker account number")
    starting_balance: float = Field(default=0.0, ge=0, description="Starting balance")
    commission_per_contract: float = Field(
        default=0.0, ge=0, description="Commission per contract, per side"
    )
    commission_per_trade: float = Field(
        default=0.0, ge=0, description="Flat commission per order, per side"
    )
    is_default: bool = Field(default=False, description="Default account flag")

    model_config = {"frozen": True}


class PropFirm(BaseModel):
    """Known prop firm commission structure (per side)."""

    id: str = Field(..., description="Short identifier")
    name: str = Field(..., description="Display name")
    commission_per_contract: float = Field(..., ge=0, description="Per contract, per side")
    commission_per_trade: float = Field(default=0.0, ge=0, description="Per order, per side")

    model_config = {"frozen": True}


# Estimates for ES/NQ on standard platforms
PROP_FIRMS = [
    PropFirm(id="custom", name="Custom / Personal Account", commission_per_contract=0.0),
    PropFirm(id="topstep", name="Topstep (Standard)", commission_per_contract=1.85),
    PropFirm(id="topstep-x", name="Topstep (TopstepX)", commission_per_contract=0.0),
    PropFirm(id="apex", name="Apex Trader Funding", commission_per_contract=1.55),
    PropFirm(id="takeprofittrader", name="Take Profit Trader", commission_per_contract=2.50),
    PropFirm(id="earn2trade", name="Earn2Trade", commission_per_contract=1.40),
    PropFirm(id="myfundedfutures", name="My Funded Futures", commission_per_contract=2.13),
    PropFirm(id="lucidtrading", name="Lucid Trading (E-mini)", commission_per_contract=1.75),
    PropFirm(id="lucidtrading-micro", name="Lucid Trading (Micro)", commission_per_contract=0.50),
    PropFirm(id="tradeday", name="TradeDay", commission_per_contract=1.55),
    PropFirm(id="bulenox", name="Bulenox", commission_per_contract=1.05),
]


def get_prop_firm(firm_id: str) -> Optional[PropFirm]:
    """Look up a prop firm by identifier (case-insensitive)."""
    firm_id = firm_id.lower().strip()
    for firm in PROP_FIRMS:
        if firm.id == firm_id:
            return firm
    return None
