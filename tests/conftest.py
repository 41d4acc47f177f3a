import os

# Must be set before config.config is imported anywhere
os.environ.setdefault('DATABASE_URL', 'sqlite:///test_screening.db')
os.environ.setdefault('LOG_FILE', '')
os.environ['CERTN_CLIENT_ID'] = ''
os.environ['CERTN_CLIENT_SECRET'] = ''
os.environ['CHECKR_API_KEY'] = ''

import threading
import time
from datetime import datetime

import pytest

from app.database import drop_db, init_db
from app.integrations.base import ProviderClient, ProviderRequest, ProviderStatusSnapshot
from app.models.intake import CandidateIntake, ConsentRecord
from app.services.background_check_service import BackgroundCheckService
from app.services.package_catalog import PackageCatalog
from app.utils.exceptions import ProviderError


class FakeProviderClient(ProviderClient):
    """In-memory provider used in place of Certn/Checkr"""

    name = 'certn'

    def __init__(self, create_delay=0.0, pull_delay=0.0):
        self.create_delay = create_delay
        self.pull_delay = pull_delay
        self.created = []
        self.statuses = {}
        self.report_urls = {}
        self.timelines = {}
        self.on_pull = None
        self.fail_create = False
        self.fail_pull = False
        self.pull_calls = 0
        self._lock = threading.Lock()

    def create_request(self, package, intake):
        if self.fail_create:
            raise ProviderError("create failed", status_code=502)
        if self.create_delay:
            time.sleep(self.create_delay)
        with self._lock:
            request_id = f"req-{len(self.created) + 1}"
            self.created.append((package.id, intake.email))
        self.statuses[request_id] = 'pending'
        return ProviderRequest(provider_request_id=request_id, provider_applicant_id='app-1',
                               status='pending')

    def pull_status(self, provider_request_id):
        self.pull_calls += 1
        if self.fail_pull:
            raise ProviderError("timed out")
        if self.pull_delay:
            time.sleep(self.pull_delay)
        if self.on_pull:
            self.on_pull(provider_request_id)
        return ProviderStatusSnapshot(
            provider_request_id=provider_request_id,
            status=self.statuses[provider_request_id],
            report_url=self.report_urls.get(provider_request_id),
            timeline=tuple(self.timelines.get(provider_request_id, ())),
        )

    def test_connection(self):
        return {'provider': self.name, 'account_name': 'Test Account'}


class FakeIntegrations:
    """Integration store stand-in that always hands out the same fake client"""

    def __init__(self, client, configured=True):
        self.client = client
        self.configured = configured

    def is_configured(self):
        return self.configured

    def get_client(self, provider=None):
        return self.client

    def get_credentials(self, provider):
        return {'checkr_api_key': 'test-key'} if self.configured else None


@pytest.fixture
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture
def provider():
    return FakeProviderClient()


@pytest.fixture
def service(database, provider):
    return BackgroundCheckService(integrations=FakeIntegrations(provider), catalog=PackageCatalog())


@pytest.fixture
def valid_intake():
    return CandidateIntake(
        full_name='Jane Smith',
        email='jane.smith@example.com',
        date_of_birth='1990-04-12',
        national_id='123-45-6789',
        phone='555-123-4567',
    )


@pytest.fixture
def licensed_intake(valid_intake):
    return CandidateIntake(
        full_name=valid_intake.full_name,
        email=valid_intake.email,
        date_of_birth=valid_intake.date_of_birth,
        national_id=valid_intake.national_id,
        phone=valid_intake.phone,
        driver_license_number='D1234567',
        driver_license_state='CA',
    )


@pytest.fixture
def consent():
    return ConsentRecord(obtained=True, affirmed_by='recruiter@example.com',
                         affirmed_at=datetime(2026, 10, 1, 9, 30))
