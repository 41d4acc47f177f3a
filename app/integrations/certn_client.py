import time
import requests
from datetime import datetime, timezone
from typing import Dict, Optional
from config.config import Config
from app.integrations.base import (
    ProviderClient, ProviderRequest, ProviderStatusSnapshot, ProviderTimelineEntry
)
from app.models.intake import CandidateIntake, ScreeningPackage
from app.utils.exceptions import ProviderError
from app.utils.logger import get_logger

logger = get_logger(__name__)

BASE_URLS = {
    'demo': 'https://demo-api.certn.co',
    'production': 'https://api.certn.co',
}

# Local package tiers to Certn package types
PACKAGE_TYPES = {
    'basic': 'criminal_record_check',
    'standard': 'standard_criminal_check',
    'comprehensive': 'enhanced_criminal_check',
}

# Refresh the OAuth token a little before Certn expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60


class CertnClient(ProviderClient):
    """Wrapper for Certn background check operations"""

    name = 'certn'

    def __init__(self, client_id: str, client_secret: str, environment: str = 'demo',
                 timeout: float = None):
        if not client_id or not client_secret:
            raise ValueError("Certn client id and secret are required")
        self.client_id = client_id
        self.client_secret = client_secret
        self.environment = environment if environment in BASE_URLS else 'demo'
        self.base_url = BASE_URLS[self.environment]
        self.timeout = timeout or Config.PROVIDER_TIMEOUT_SECONDS
        self._access_token = None
        self._token_expires_at = 0.0

    def _get_access_token(self) -> str:
        """Client-credentials OAuth flow, cached until shortly before expiry"""
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        try:
            response = requests.post(
                f"{self.base_url}/v1/auth/token",
                data={
                    'grant_type': 'client_credentials',
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                },
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout
            )
            response.raise_for_status()
            token_data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Certn token request failed: {str(e)}")
            raise ProviderError("Failed to get Certn access token",
                                status_code=_status_code(e)) from e
        except ValueError as e:
            raise ProviderError("Certn returned an unreadable token response") from e

        self._access_token = token_data.get('access_token')
        if not self._access_token:
            raise ProviderError("Certn token response did not include an access token")
        expires_in = int(token_data.get('expires_in', 3600))
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        return self._access_token

    def _make_request(self, method: str, endpoint: str, data: Dict = None) -> Dict:
        """Make an authenticated API request to Certn"""
        url = f"{self.base_url}{endpoint}"
        headers = {
            'Authorization': f"Bearer {self._get_access_token()}",
            'Content-Type': 'application/json',
        }

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=headers,
                json=data,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            logger.error(f"Certn API timeout: {method} {endpoint}")
            raise ProviderError(f"Certn did not respond within {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Certn API error: {str(e)}")
            if e.response is not None:
                if e.response.status_code == 401:
                    # Force a new token on the next call
                    self._access_token = None
                logger.error(f"Response: {e.response.text}")
            raise ProviderError(f"Certn request failed: {method} {endpoint}",
                                status_code=_status_code(e)) from e
        except ValueError as e:
            raise ProviderError(f"Certn returned an unreadable response: {method} {endpoint}") from e

    def create_applicant(self, intake: CandidateIntake) -> Dict:
        """Create an applicant (Certn's name for a candidate)"""
        data = {
            'email': intake.email,
            'first_name': intake.first_name,
            'last_name': intake.last_name,
            'date_of_birth': intake.date_of_birth,  # Format: YYYY-MM-DD
            'ssn': intake.national_id,
        }
        optional = {
            'middle_name': intake.middle_name,
            'phone': intake.phone,
            'driver_license_number': intake.driver_license_number,
            'driver_license_state': intake.driver_license_state,
        }
        data.update({key: value for key, value in optional.items() if value})
        if intake.previous_names:
            data['previous_names'] = list(intake.previous_names)

        return self._make_request('POST', '/v1/applicants', data)

    def create_application(self, applicant_id: str, package_type: str) -> Dict:
        """Order a screening (Certn 'application') for an applicant"""
        return self._make_request('POST', '/v1/applications', {
            'applicant_id': applicant_id,
            'package_type': package_type,
        })

    def get_application(self, application_id: str) -> Dict:
        """Get screening status and details"""
        return self._make_request('GET', f'/v1/applications/{application_id}')

    def create_request(self, package: ScreeningPackage, intake: CandidateIntake) -> ProviderRequest:
        applicant = self.create_applicant(intake)
        applicant_id = applicant.get('id')
        if not applicant_id:
            raise ProviderError("Certn applicant response did not include an id")

        package_type = PACKAGE_TYPES.get(package.tier, PACKAGE_TYPES['standard'])
        application = self.create_application(applicant_id, package_type)
        application_id = application.get('id')
        if not application_id:
            raise ProviderError("Certn application response did not include an id")

        logger.info(f"Certn application {application_id} created ({package_type})")
        return ProviderRequest(
            provider_request_id=str(application_id),
            provider_applicant_id=str(applicant_id),
            report_url=application.get('report_url') or application.get('url'),
            status=application.get('status'),
        )

    def pull_status(self, provider_request_id: str) -> ProviderStatusSnapshot:
        data = self.get_application(provider_request_id)
        return ProviderStatusSnapshot(
            provider_request_id=provider_request_id,
            status=str(data.get('status') or ''),
            report_url=data.get('report_url') or data.get('url'),
            timeline=tuple(self._parse_events(data.get('events') or [])),
        )

    @staticmethod
    def parse_webhook(payload: Dict) -> Optional[ProviderStatusSnapshot]:
        """Turn a Certn webhook body into a status snapshot"""
        body = payload.get('data') or payload
        application_id = body.get('application_id') or body.get('id')
        status = body.get('status')
        if not application_id or not status:
            return None
        return ProviderStatusSnapshot(
            provider_request_id=str(application_id),
            status=str(status),
            report_url=body.get('report_url') or body.get('url'),
        )

    def test_connection(self) -> Dict:
        data = self._make_request('GET', '/v1/account')
        return {
            'provider': self.name,
            'environment': self.environment,
            'account_name': data.get('name') or data.get('company_name') or 'Certn Account',
            'account_email': data.get('email') or data.get('contact_email'),
            'account_id': data.get('id') or data.get('account_id'),
        }

    @staticmethod
    def _parse_events(events):
        for event in events:
            timestamp = event.get('created') or event.get('timestamp')
            description = event.get('description') or event.get('type')
            if not timestamp or not description:
                continue
            try:
                parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
            except (AttributeError, ValueError):
                continue
            if parsed.tzinfo is not None:
                # Certn mixes offset and offset-less stamps; keep everything naive UTC
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            yield ProviderTimelineEntry(timestamp=parsed, description=description)


def _status_code(error):
    response = getattr(error, 'response', None)
    return response.status_code if response is not None else None
