"""Data models for the trade journal."""

from tradejournal.models.account import PROP_FIRMS, Account, PropFirm, get_prop_firm
from tradejournal.models.instrument import DEFAULT_INSTRUMENTS, DEFAULT_SYMBOLS, Instrument
from tradejournal.models.journal import ImportRecord, JournalScreenshot, ScreenshotType
from tradejournal.models.rule import RuleCategory, UserRule, UserRuleCheck
from tradejournal.models.trade import (
    EmotionTag,
    MistakeTag,
    Session,
    Side,
    Trade,
    TradeStatus,
)

__all__ = [
    "Account",
    "PropFirm",
    "PROP_FIRMS",
    "get_prop_firm",
    "Instrument",
    "DEFAULT_INSTRUMENTS",
    "DEFAULT_SYMBOLS",
    "ImportRecord",
    "JournalScreenshot",
    "ScreenshotType",
    "RuleCategory",
    "UserRule",
    "UserRuleCheck",
    "EmotionTag",
    "MistakeTag",
    "Session",
    "Side",
    "Trade",
    "TradeStatus",
]
