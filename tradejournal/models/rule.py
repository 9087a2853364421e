"""Discipline rule data models."""

from datetime import date as date_type
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class RuleCategory(str, Enum):
    """Rule grouping."""

    RISK = "risk"
    DISCIPLINE = "discipline"
    PROCESS = "process"
    MINDSET = "mindset"
    OTHER = "other"


class UserRule(BaseModel):
    """Represents a personal trading rule."""

    id: Optional[int] = Field(default=None, description="Database ID")
    title: str = Field(..., min_length=1, description="Rule title")
    description: Optional[str] = Field(default=None, description="Rule details")
    category: RuleCategory = Field(default=RuleCategory.DISCIPLINE, description="Rule category")
    display_order: int = Field(default=0, ge=0, description="Sort position")
    is_active: bool = Field(default=True, description="Active flag")

    model_config = {"frozen": True}


class UserRuleCheck(BaseModel):
    """Represents whether a rule was followed on a given day."""

    id: Optional[int] = Field(default=None, description="Database ID")
    rule_id: int = Field(..., description="Checked rule ID")
    check_date: date_type = Field(..., description="Trading day")
    followed: bool = Field(..., description="Whether the rule was followed")

    model_config = {"frozen": True}
