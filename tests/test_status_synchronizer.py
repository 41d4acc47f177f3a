import pytest
from datetime import datetime, timezone
from app.integrations.base import ProviderStatusSnapshot, ProviderTimelineEntry
from app.models import BackgroundCheck, BackgroundCheckStatus
from app.services.status_synchronizer import (
    PROVIDER_STATUS_MAP, StatusSynchronizer, apply_snapshot, map_provider_status
)
from app.utils.exceptions import BackgroundCheckError, ErrorKind
from tests.conftest import FakeProviderClient

NOW = datetime(2026, 10, 19, 12, 0)


def _pending_check():
    check = BackgroundCheck(
        application_id='app-1',
        package_id='basic',
        provider='certn',
        provider_request_id='req-1',
        status=BackgroundCheckStatus.PENDING,
        initiated_at=datetime(2026, 10, 1),
        initiated_by='op@example.com',
        consent_affirmed_by='op@example.com',
        consent_affirmed_at=datetime(2026, 10, 1),
    )
    check.append_event('Background check initiated', datetime(2026, 10, 1))
    return check


def _snapshot(status, **kwargs):
    return ProviderStatusSnapshot(provider_request_id='req-1', status=status, **kwargs)


class TestStatusMapping:
    """Provider vocabulary to local status"""

    @pytest.mark.parametrize('code,expected', [
        ('clear', BackgroundCheckStatus.COMPLETE),
        ('completed', BackgroundCheckStatus.COMPLETE),
        ('needs_review', BackgroundCheckStatus.CONSIDER),
        ('adverse', BackgroundCheckStatus.CONSIDER),
        ('disputed', BackgroundCheckStatus.CONSIDER),
        ('cancelled', BackgroundCheckStatus.SUSPENDED),
        ('on_hold', BackgroundCheckStatus.SUSPENDED),
        ('disputed_unresolved', BackgroundCheckStatus.SUSPENDED),
        ('in_progress', BackgroundCheckStatus.PENDING),
    ])
    def test_known_codes(self, code, expected):
        assert map_provider_status(code) == (expected, True)

    def test_codes_normalized(self):
        assert map_provider_status('  CLEAR ') == (BackgroundCheckStatus.COMPLETE, True)

    @pytest.mark.parametrize('code', ['', None, 'awaiting_fingerprints', 'COMPLETE_V2'])
    def test_unknown_codes_stay_pending(self, code):
        assert map_provider_status(code) == (BackgroundCheckStatus.PENDING, False)

    def test_table_covers_every_local_status(self):
        assert set(PROVIDER_STATUS_MAP.values()) == set(BackgroundCheckStatus)


class TestApplySnapshot:
    """Applying a snapshot to an entity"""

    def test_transition_to_terminal(self):
        check = _pending_check()

        changed = apply_snapshot(check, _snapshot('clear', report_url='https://r.example/1'), now=NOW)

        assert changed is True
        assert check.status == BackgroundCheckStatus.COMPLETE
        assert check.completed_at == NOW
        assert check.provider_report_url == 'https://r.example/1'
        assert [e.sequence for e in check.timeline] == [1, 2]
        assert check.timeline[1].description == (
            'Status changed from pending to complete (provider status: clear)'
        )
        assert check.timeline[1].source == 'provider'

    def test_no_change_only_touches_refresh_markers(self):
        check = _pending_check()

        changed = apply_snapshot(check, _snapshot('in_progress'), now=NOW)

        assert changed is False
        assert check.status == BackgroundCheckStatus.PENDING
        assert check.last_refreshed_at == NOW
        assert check.last_provider_status == 'in_progress'
        assert len(check.timeline) == 1

    def test_terminal_check_ignores_snapshot(self):
        check = _pending_check()
        apply_snapshot(check, _snapshot('suspended'), now=NOW)

        changed = apply_snapshot(check, _snapshot('clear'), now=datetime(2026, 10, 20))

        assert changed is False
        assert check.status == BackgroundCheckStatus.SUSPENDED
        assert check.completed_at == NOW
        assert len(check.timeline) == 2

    def test_provider_note_included(self):
        check = _pending_check()
        timeline = (
            ProviderTimelineEntry(timestamp=datetime(2026, 10, 2), description='Identity verified'),
            ProviderTimelineEntry(timestamp=datetime(2026, 10, 3), description='Report finalized'),
        )

        apply_snapshot(check, _snapshot('complete', timeline=timeline), now=NOW)

        assert check.timeline[-1].description.endswith(': Report finalized')

    def test_mixed_timezone_entries(self):
        check = _pending_check()
        timeline = (
            ProviderTimelineEntry(timestamp=datetime(2026, 10, 3, 9, 0, tzinfo=timezone.utc),
                                  description='Report finalized'),
            ProviderTimelineEntry(timestamp=datetime(2026, 10, 2, 8, 0), description='Identity verified'),
        )

        apply_snapshot(check, _snapshot('clear', timeline=timeline), now=NOW)

        assert check.timeline[-1].description.endswith(': Report finalized')

    def test_unknown_code_logged(self, caplog):
        check = _pending_check()

        with caplog.at_level('WARNING'):
            apply_snapshot(check, _snapshot('mystery_state'), now=NOW)

        assert check.status == BackgroundCheckStatus.PENDING
        assert 'Unmapped provider status' in caplog.text


class TestStatusSynchronizer:
    """Pulling provider state"""

    def test_pull(self):
        client = FakeProviderClient()
        client.statuses['req-9'] = 'clear'

        snapshot = StatusSynchronizer(client).pull('req-9')

        assert snapshot.status == 'clear'

    def test_pull_failure_is_provider_unavailable(self):
        client = FakeProviderClient()
        client.fail_pull = True

        with pytest.raises(BackgroundCheckError) as exc:
            StatusSynchronizer(client).pull('req-9')

        assert exc.value.kind == ErrorKind.PROVIDER_UNAVAILABLE
        assert exc.value.http_status == 503
