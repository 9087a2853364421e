"""Instrument data model."""

from typing import Optional
from pydantic import BaseModel, Field


class Instrument(BaseModel):
    """Represents a futures instrument and its tick specification."""

    id: Optional[int] = Field(default=None, description="Database ID")
    symbol: str = Field(..., min_length=1, description="Root symbol (e.g., ES)")
    name: str = Field(..., min_length=1, description="Instrument name")
    tick_size: float = Field(..., gt=0, description="Minimum price increment")
    tick_value: float = Field(..., gt=0, description="Dollar value of one tick")
    exchange: Optional[str] = Field(default=None, description="Listing exchange")
    asset_class: Optional[str] = Field(default=None, description="Asset class")
    is_active: bool = Field(default=True, description="Active flag")

    model_config = {"frozen": True}

    @property
    def point_value(self) -> float:
        """Dollar value of a full point move for one contract."""
        return self.tick_value / self.tick_size


DEFAULT_INSTRUMENTS = [
    Instrument(symbol="ES", name="E-mini S&P 500", tick_size=0.25, tick_value=12.5,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="NQ", name="E-mini NASDAQ 100", tick_size=0.25, tick_value=5.0,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="YM", name="E-mini Dow ($5)", tick_size=1.0, tick_value=5.0,
               exchange="CBOT", asset_class="Index"),
    Instrument(symbol="RTY", name="E-mini Russell 2000", tick_size=0.1, tick_value=5.0,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="MES", name="Micro E-mini S&P 500", tick_size=0.25, tick_value=1.25,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="MNQ", name="Micro E-mini NASDAQ 100", tick_size=0.25, tick_value=0.5,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="MYM", name="Micro E-mini Dow ($0.50)", tick_size=1.0, tick_value=0.5,
               exchange="CBOT", asset_class="Index"),
    Instrument(symbol="M2K", name="Micro E-mini Russell 2000", tick_size=0.1, tick_value=0.5,
               exchange="CME", asset_class="Index"),
    Instrument(symbol="CL", name="Crude Oil", tick_size=0.01, tick_value=10.0,
               exchange="NYMEX", asset_class="Energy"),
    Instrument(symbol="GC", name="Gold", tick_size=0.1, tick_value=10.0,
               exchange="COMEX", asset_class="Metals"),
    Instrument(symbol="NG", name="Natural Gas", tick_size=0.001, tick_value=10.0,
               exchange="NYMEX", asset_class="Energy"),
    Instrument(symbol="6E", name="Euro FX", tick_size=0.00005, tick_value=6.25,
               exchange="CME", asset_class="Currency"),
]

DEFAULT_SYMBOLS = [i.symbol for i in DEFAULT_INSTRUMENTS]
