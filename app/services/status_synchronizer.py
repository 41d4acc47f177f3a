"""Reconciles provider-side screening state into local background checks.

The provider speaks its own status vocabulary. ``PROVIDER_STATUS_MAP`` is the
one place that vocabulary is translated; any code missing from it keeps the
check pending and is logged, so new provider statuses can never finish a
check by accident.
"""
from datetime import datetime, timezone
from typing import Optional, Tuple
from app.integrations.base import ProviderClient, ProviderStatusSnapshot
from app.models.background_check import BackgroundCheck, BackgroundCheckStatus
from app.utils.exceptions import BackgroundCheckError, ErrorKind, ProviderError
from app.utils.logger import get_logger

logger = get_logger(__name__)

PROVIDER_STATUS_MAP = {
    # Still running on the provider side
    'pending': BackgroundCheckStatus.PENDING,
    'in_progress': BackgroundCheckStatus.PENDING,
    'invitation_sent': BackgroundCheckStatus.PENDING,
    'created': BackgroundCheckStatus.PENDING,
    'processing': BackgroundCheckStatus.PENDING,

    'clear': BackgroundCheckStatus.COMPLETE,
    'complete': BackgroundCheckStatus.COMPLETE,
    'completed': BackgroundCheckStatus.COMPLETE,

    'consider': BackgroundCheckStatus.CONSIDER,
    'needs_review': BackgroundCheckStatus.CONSIDER,
    'adverse': BackgroundCheckStatus.CONSIDER,
    'adjudication': BackgroundCheckStatus.CONSIDER,
    'disputed': BackgroundCheckStatus.CONSIDER,

    'suspended': BackgroundCheckStatus.SUSPENDED,
    'cancelled': BackgroundCheckStatus.SUSPENDED,
    'canceled': BackgroundCheckStatus.SUSPENDED,
    'on_hold': BackgroundCheckStatus.SUSPENDED,
    'disputed_unresolved': BackgroundCheckStatus.SUSPENDED,
}


def map_provider_status(code: Optional[str]) -> Tuple[BackgroundCheckStatus, bool]:
    """Translate a provider code; the flag is False for codes outside the table"""
    normalized = (code or '').strip().lower()
    status = PROVIDER_STATUS_MAP.get(normalized)
    if status is None:
        return BackgroundCheckStatus.PENDING, False
    return status, True


def apply_snapshot(check: BackgroundCheck, snapshot: ProviderStatusSnapshot,
                   now: datetime = None) -> bool:
    """Apply a provider snapshot to a check loaded in an open session.

    Returns True when the status moved. Status, completion time and the
    summarizing timeline entry change together so one commit persists them.
    """
    now = now or datetime.utcnow()

    if check.is_terminal:
        logger.info(f"Background check {check.id} is already {check.status.value}; ignoring snapshot")
        return False

    new_status, known = map_provider_status(snapshot.status)
    if not known:
        logger.warning(
            f"Unmapped provider status '{snapshot.status}' for background check {check.id} "
            f"({check.provider} {check.provider_request_id}); leaving it pending"
        )

    check.last_refreshed_at = now
    check.last_provider_status = snapshot.status or None
    if snapshot.report_url and snapshot.report_url != check.provider_report_url:
        check.provider_report_url = snapshot.report_url

    if new_status == check.status:
        return False

    previous = check.status
    check.status = new_status
    if new_status.is_terminal:
        check.completed_at = now

    description = (
        f"Status changed from {previous.value} to {new_status.value} "
        f"(provider status: {snapshot.status})"
    )
    if snapshot.timeline:
        latest = max(snapshot.timeline, key=lambda entry: _naive_utc(entry.timestamp))
        description = f"{description}: {latest.description}"
    check.append_event(description, now, source='provider')

    logger.info(f"Background check {check.id} moved {previous.value} -> {new_status.value}")
    return True


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class StatusSynchronizer:
    """Pulls provider state for one request at a time"""

    def __init__(self, client: ProviderClient):
        self.client = client

    def pull(self, provider_request_id: str) -> ProviderStatusSnapshot:
        try:
            return self.client.pull_status(provider_request_id)
        except ProviderError as e:
            logger.error(f"Status pull failed for {self.client.name} {provider_request_id}: {str(e)}")
            raise BackgroundCheckError(
                ErrorKind.PROVIDER_UNAVAILABLE,
                f"Could not reach {self.client.name} to refresh this background check. Try again later.",
                details={'provider': self.client.name, 'status_code': e.status_code}
            ) from e
