from typing import Dict, Optional
from config.config import Config
from app.database import DatabaseManager, get_db
from app.integrations import CertnClient, CheckrClient, ProviderClient
from app.models import IntegrationSetting
from app.utils.exceptions import BackgroundCheckError, ErrorKind, ProviderError
from app.utils.logger import get_logger
from app.utils.security import encrypt_secret, decrypt_secret, DecryptionError

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = ('certn', 'checkr')

# Credential keys per provider; all of them are stored encrypted
CREDENTIAL_KEYS = {
    'certn': ('certn_client_id', 'certn_client_secret'),
    'checkr': ('checkr_api_key',),
}

PROVIDER_KEY = 'screening_provider'
CERTN_ENVIRONMENT_KEY = 'certn_environment'

NOT_CONFIGURED_MESSAGE = (
    "Background screening is not configured. Connect a screening provider in "
    "integration settings before requesting background checks."
)


class IntegrationService:
    """Stored screening-provider credentials and the availability check built on them"""

    def __init__(self, client_factory=None):
        # Tests swap the factory to avoid building real HTTP clients
        self.client_factory = client_factory or build_provider_client
        self.settings_db = DatabaseManager(IntegrationSetting)

    def get_provider_name(self) -> str:
        stored = self._get_setting(PROVIDER_KEY)
        name = stored or Config.SCREENING_PROVIDER
        return name if name in SUPPORTED_PROVIDERS else 'certn'

    def is_configured(self) -> bool:
        return self.get_credentials(self.get_provider_name()) is not None

    def get_credentials(self, provider: str) -> Optional[Dict]:
        """Stored credentials for a provider, falling back to environment configuration"""
        stored = self._load_stored_credentials(provider)
        if stored:
            return stored
        return _environment_credentials(provider)

    def get_client(self, provider: str = None) -> ProviderClient:
        provider = provider or self.get_provider_name()
        credentials = self.get_credentials(provider)
        if credentials is None:
            raise BackgroundCheckError(
                ErrorKind.INTEGRATION_NOT_CONFIGURED,
                NOT_CONFIGURED_MESSAGE,
                details={'provider': provider}
            )
        return self.client_factory(provider, credentials)

    def connect(self, provider: str, credentials: Dict, updated_by: str, verify: bool = True) -> Dict:
        """Store provider credentials, optionally proving them with a test call first"""
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported screening provider: {provider}")

        missing = [key for key in CREDENTIAL_KEYS[provider] if not credentials.get(key)]
        if missing:
            raise ValueError(f"Missing credentials: {', '.join(missing)}")

        account = None
        if verify:
            client = self.client_factory(provider, credentials)
            account = self._call_test(client)

        with get_db() as db:
            for key in CREDENTIAL_KEYS[provider]:
                self._put_setting(db, key, encrypt_secret(credentials[key]), True, updated_by)
            if provider == 'certn':
                environment = credentials.get('environment') or 'demo'
                self._put_setting(db, CERTN_ENVIRONMENT_KEY, environment, False, updated_by)
            self._put_setting(db, PROVIDER_KEY, provider, False, updated_by)

        logger.info(f"Screening provider {provider} connected by {updated_by}")
        return {'connected': True, 'provider': provider, 'account': account}

    def disconnect(self, provider: str, updated_by: str) -> bool:
        keys = list(CREDENTIAL_KEYS.get(provider, ()))
        if provider == 'certn':
            keys.append(CERTN_ENVIRONMENT_KEY)

        with get_db() as db:
            removed = db.query(IntegrationSetting).filter(
                IntegrationSetting.key.in_(keys)
            ).delete(synchronize_session=False)

        logger.info(f"Screening provider {provider} disconnected by {updated_by}")
        return removed > 0

    def status(self, include_account: bool = False) -> Dict:
        provider = self.get_provider_name()
        credentials = self.get_credentials(provider)
        if credentials is None:
            return {'connected': False, 'provider': provider, 'environment': None, 'account': None}

        result = {
            'connected': True,
            'provider': provider,
            'environment': credentials.get('environment', 'production'),
            'account': None,
        }
        if include_account:
            try:
                result['account'] = self.client_factory(provider, credentials).test_connection()
            except ProviderError as e:
                # Status stays "connected"; the account lookup is informational
                logger.warning(f"Could not fetch {provider} account info: {str(e)}")
        return result

    def test_connection(self) -> Dict:
        return self._call_test(self.get_client())

    def _call_test(self, client: ProviderClient) -> Dict:
        try:
            return client.test_connection()
        except ProviderError as e:
            raise BackgroundCheckError(
                ErrorKind.PROVIDER_UNAVAILABLE,
                f"Failed to connect to {client.name}. Please check your credentials.",
                details={'provider': client.name, 'status_code': e.status_code}
            ) from e

    def _load_stored_credentials(self, provider: str) -> Optional[Dict]:
        keys = CREDENTIAL_KEYS.get(provider)
        if not keys:
            return None

        with get_db() as db:
            rows = db.query(IntegrationSetting).filter(
                IntegrationSetting.key.in_(keys + (CERTN_ENVIRONMENT_KEY,))
            ).all()
            values = {row.key: row for row in rows}

        if not all(key in values for key in keys):
            return None

        credentials = {}
        try:
            for key in keys:
                row = values[key]
                credentials[key] = decrypt_secret(row.value) if row.is_encrypted else row.value
        except DecryptionError as e:
            logger.error(f"Stored {provider} credentials could not be decrypted: {str(e)}")
            return None

        if provider == 'certn':
            environment = values.get(CERTN_ENVIRONMENT_KEY)
            credentials['environment'] = environment.value if environment else 'demo'
        return credentials

    def _get_setting(self, key: str) -> Optional[str]:
        row = self.settings_db.get_by(key=key)
        return row.value if row else None

    @staticmethod
    def _put_setting(db, key, value, is_encrypted, updated_by):
        row = db.query(IntegrationSetting).filter_by(key=key).first()
        if row:
            row.value = value
            row.is_encrypted = is_encrypted
            row.updated_by = updated_by
        else:
            db.add(IntegrationSetting(key=key, value=value, is_encrypted=is_encrypted,
                                      updated_by=updated_by))


def build_provider_client(provider: str, credentials: Dict) -> ProviderClient:
    if provider == 'certn':
        return CertnClient(
            credentials['certn_client_id'],
            credentials['certn_client_secret'],
            environment=credentials.get('environment', 'demo')
        )
    if provider == 'checkr':
        return CheckrClient(credentials['checkr_api_key'])
    raise ValueError(f"Unsupported screening provider: {provider}")


def _environment_credentials(provider: str) -> Optional[Dict]:
    if provider == 'certn' and Config.CERTN_CLIENT_ID and Config.CERTN_CLIENT_SECRET:
        return {
            'certn_client_id': Config.CERTN_CLIENT_ID,
            'certn_client_secret': Config.CERTN_CLIENT_SECRET,
            'environment': Config.CERTN_ENVIRONMENT,
        }
    if provider == 'checkr' and Config.CHECKR_API_KEY:
        return {'checkr_api_key': Config.CHECKR_API_KEY}
    return None
