import hashlib
import hmac
from typing import Dict
from config.config import Config
from app.integrations import CertnClient, CheckrClient
from app.services.background_check_service import BackgroundCheckService
from app.services.integration_service import IntegrationService
from app.utils.exceptions import BackgroundCheckError, ErrorKind
from app.utils.logger import get_logger

logger = get_logger(__name__)


class WebhookService:
    """Service for handling screening provider webhook events"""

    def __init__(self, background_check_service: BackgroundCheckService = None,
                 integrations: IntegrationService = None):
        self.integrations = integrations or IntegrationService()
        self.background_check_service = background_check_service or BackgroundCheckService(
            integrations=self.integrations
        )

    def verify_checkr_signature(self, payload: bytes, signature: str) -> bool:
        """Checkr signs the raw body with HMAC-SHA256 keyed by the API key"""
        credentials = self.integrations.get_credentials('checkr')
        if not credentials or not signature:
            return False
        return _hmac_matches(credentials['checkr_api_key'], payload, signature)

    def verify_certn_signature(self, payload: bytes, signature: str) -> bool:
        """Certn webhooks are signed with the shared secret set up in the Certn dashboard"""
        if not Config.CERTN_WEBHOOK_SECRET or not signature:
            return False
        return _hmac_matches(Config.CERTN_WEBHOOK_SECRET, payload, signature)

    def process_checkr_event(self, webhook_data: Dict) -> Dict:
        """Process Checkr webhook events"""
        event_type = webhook_data.get('type')
        logger.info(f"Processing Checkr event: {event_type}")

        snapshot = CheckrClient.parse_webhook(webhook_data)
        if snapshot is None:
            return {'event_type': event_type, 'processed': False}
        return self._apply('checkr', event_type, snapshot)

    def process_certn_event(self, webhook_data: Dict) -> Dict:
        """Process Certn webhook events"""
        event_type = (webhook_data.get('event') or webhook_data.get('event_type')
                      or webhook_data.get('type'))
        logger.info(f"Processing Certn event: {event_type}")

        snapshot = CertnClient.parse_webhook(webhook_data)
        if snapshot is None:
            return {'event_type': event_type, 'processed': False}
        return self._apply('certn', event_type, snapshot)

    def _apply(self, provider, event_type, snapshot) -> Dict:
        try:
            check = self.background_check_service.apply_provider_event(provider, snapshot)
        except BackgroundCheckError as e:
            if e.kind != ErrorKind.NOT_FOUND:
                raise
            # Requests created outside this system are not ours to track
            logger.warning(f"{provider} event for unknown request {snapshot.provider_request_id}")
            return {'event_type': event_type, 'processed': False}

        return {
            'event_type': event_type,
            'processed': True,
            'background_check_id': check.id,
            'status': check.status.value,
        }


def _hmac_matches(secret: str, payload: bytes, signature: str) -> bool:
    expected = hmac.new(secret.encode('utf-8'), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip())
