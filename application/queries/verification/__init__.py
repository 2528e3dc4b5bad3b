"""Verification queries package"""

from application.queries.verification.get_recipient_codes import GetRecipientCodesQuery
from application.queries.verification.list_recent_codes import ListRecentCodesQuery

__all__ = ["GetRecipientCodesQuery", "ListRecentCodesQuery"]
