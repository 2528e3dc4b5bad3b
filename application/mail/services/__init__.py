"""邮件同步应用服务"""

from application.mail.services.mail_sync_service import MailSyncService, SyncResult, SyncStatus
from application.mail.services.async_mail_sync_service import AsyncMailSyncService
from application.mail.services.sync_cycle_state import SyncCycleState

__all__ = ["MailSyncService", "SyncResult", "SyncStatus", "AsyncMailSyncService", "SyncCycleState"]
