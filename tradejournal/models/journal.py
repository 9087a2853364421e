"""Journal attachment and import history models."""

from datetime import date as date_type
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ScreenshotType(str, Enum):
    """What a screenshot shows."""

    ENTRY = "entry"
    EXIT = "exit"
    SETUP = "setup"
    RESULT = "result"
    OTHER = "other"


class JournalScreenshot(BaseModel):
    """Represents a chart screenshot linked to a trade or a journal day."""

    id: Optional[int] = Field(default=None, description="Database ID")
    trade_id: Optional[int] = Field(default=None, description="Linked trade ID")
    journal_date: Optional[date_type] = Field(default=None, description="Linked journal day")
    file_path: str = Field(..., min_length=1, description="Path to the image")
    file_name: str = Field(..., min_length=1, description="Image file name")
    screenshot_type: ScreenshotType = Field(
        default=ScreenshotType.OTHER, description="Screenshot type"
    )
    caption: Optional[str] = Field(default=None, description="Caption")

    model_config = {"frozen": True}


class ImportRecord(BaseModel):
    """Represents one completed CSV import run."""

    id: Optional[int] = Field(default=None, description="Database ID")
    file_name: str = Field(..., description="Imported file name")
    broker: Optional[str] = Field(default=None, description="Broker format")
    account_id: Optional[int] = Field(default=None, description="Target account ID")
    imported: int = Field(default=0, ge=0, description="Trades inserted")
    skipped: int = Field(default=0, ge=0, description="Duplicates skipped")
    failed: int = Field(default=0, ge=0, description="Rows that failed")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Import timestamp"
    )

    model_config = {"frozen": True}
