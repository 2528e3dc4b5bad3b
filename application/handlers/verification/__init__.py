"""Verification handlers package"""

from application.handlers.verification.code_items import CodeItem, ReadStatus
from application.handlers.verification.get_recipient_codes_handler import (
    GetRecipientCodesHandler,
    RecipientCodesResult,
)
from application.handlers.verification.list_recent_codes_handler import (
    ListRecentCodesHandler,
    RecentCodesResult,
)

__all__ = [
    "CodeItem",
    "ReadStatus",
    "GetRecipientCodesHandler",
    "RecipientCodesResult",
    "ListRecentCodesHandler",
    "RecentCodesResult",
]
