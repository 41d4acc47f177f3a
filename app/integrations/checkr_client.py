import base64
import requests
from typing import Dict, Optional
from config.config import Config
from app.integrations.base import ProviderClient, ProviderRequest, ProviderStatusSnapshot
from app.models.intake import CandidateIntake, ScreeningPackage
from app.utils.exceptions import ProviderError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Local package tiers to Checkr package slugs
PACKAGE_SLUGS = {
    'basic': 'basic_plus',
    'standard': 'tasker_standard',
    'comprehensive': 'driver_pro',
}


class CheckrClient(ProviderClient):
    """Wrapper for Checkr background check operations"""

    name = 'checkr'

    def __init__(self, api_key: str, timeout: float = None):
        if not api_key:
            raise ValueError("Checkr API key is required")
        self.api_key = api_key
        self.base_url = "https://api.checkr.com/v1"
        self.timeout = timeout or Config.PROVIDER_TIMEOUT_SECONDS

        # Checkr uses Basic Auth with API key as username
        encoded_auth = base64.b64encode(f"{self.api_key}:".encode()).decode()
        self.headers = {
            'Content-Type': 'application/json',
            'Authorization': f"Basic {encoded_auth}",
        }

    def _make_request(self, method: str, endpoint: str, data: Dict = None) -> Dict:
        """Make API request to Checkr"""
        url = f"{self.base_url}{endpoint}"

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=self.headers,
                json=data,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            logger.error(f"Checkr API timeout: {method} {endpoint}")
            raise ProviderError(f"Checkr did not respond within {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Checkr API error: {str(e)}")
            status_code = None
            if e.response is not None:
                status_code = e.response.status_code
                logger.error(f"Response: {e.response.text}")
            raise ProviderError(f"Checkr request failed: {method} {endpoint}",
                                status_code=status_code) from e
        except ValueError as e:
            raise ProviderError(f"Checkr returned an unreadable response: {method} {endpoint}") from e

    def create_candidate(self, intake: CandidateIntake) -> Dict:
        """Create a candidate for background check"""
        data = {
            'email': intake.email,
            'first_name': intake.first_name,
            'last_name': intake.last_name,
            'dob': intake.date_of_birth,  # Format: YYYY-MM-DD
            'ssn': intake.national_id,
        }

        if intake.middle_name:
            data['middle_name'] = intake.middle_name
        else:
            data['no_middle_name'] = True
        if intake.phone:
            data['phone'] = intake.phone
        if intake.driver_license_number:
            data['driver_license_number'] = intake.driver_license_number
            data['driver_license_state'] = intake.driver_license_state

        return self._make_request('POST', '/candidates', data)

    def create_report(self, candidate_id: str, package: str) -> Dict:
        """Create a background check report for a verified candidate"""
        return self._make_request('POST', '/reports', {
            'candidate_id': candidate_id,
            'package': package,
        })

    def get_report(self, report_id: str) -> Dict:
        """Get background check report status and details"""
        return self._make_request('GET', f'/reports/{report_id}')

    def create_request(self, package: ScreeningPackage, intake: CandidateIntake) -> ProviderRequest:
        candidate = self.create_candidate(intake)
        candidate_id = candidate.get('id')
        if not candidate_id:
            raise ProviderError("Checkr candidate response did not include an id")

        slug = PACKAGE_SLUGS.get(package.tier, PACKAGE_SLUGS['standard'])
        report = self.create_report(candidate_id, slug)
        report_id = report.get('id')
        if not report_id:
            raise ProviderError("Checkr report response did not include an id")

        logger.info(f"Checkr report {report_id} created ({slug})")
        return ProviderRequest(
            provider_request_id=str(report_id),
            provider_applicant_id=str(candidate_id),
            report_url=report.get('uri'),
            status=self.parse_report_status(report),
        )

    def pull_status(self, provider_request_id: str) -> ProviderStatusSnapshot:
        report = self.get_report(provider_request_id)
        return ProviderStatusSnapshot(
            provider_request_id=provider_request_id,
            status=self.parse_report_status(report),
            report_url=report.get('uri'),
        )

    @staticmethod
    def parse_report_status(report: Dict) -> str:
        """Collapse Checkr status, result and adjudication into one provider code"""
        if not report:
            return 'pending'

        status = report.get('status') or 'pending'

        if status == 'complete':
            if report.get('adjudication') == 'adverse':
                return 'adverse'
            if report.get('result') in ('clear', 'consider'):
                return report['result']
            return 'complete'

        if status == 'dispute':
            return 'disputed_unresolved'

        return status

    @classmethod
    def parse_webhook(cls, webhook_data: Dict) -> Optional[ProviderStatusSnapshot]:
        """Turn a Checkr report.* webhook into a status snapshot"""
        event_type = webhook_data.get('type') or ''
        report = webhook_data.get('data', {}).get('object', {})

        if not event_type.startswith('report.') or not report.get('id'):
            logger.info(f"Ignoring Checkr event: {event_type}")
            return None

        return ProviderStatusSnapshot(
            provider_request_id=str(report['id']),
            status=cls.parse_report_status(report),
            report_url=report.get('uri'),
        )

    def test_connection(self) -> Dict:
        account = self._make_request('GET', '/account')
        return {
            'provider': self.name,
            'environment': 'production',
            'account_name': account.get('company', {}).get('name') or account.get('name') or 'Checkr Account',
            'account_email': account.get('billing_email'),
            'account_id': account.get('id'),
        }
