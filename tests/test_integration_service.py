import pytest
from unittest.mock import Mock, patch
from app.database import DatabaseManager
from app.integrations import CertnClient, CheckrClient
from app.models import IntegrationSetting
from app.services.integration_service import IntegrationService, build_provider_client
from app.utils.exceptions import BackgroundCheckError, ErrorKind, ProviderError


@pytest.fixture
def fake_client():
    client = Mock()
    client.name = 'checkr'
    client.test_connection.return_value = {'provider': 'checkr', 'account_name': 'Acme Hiring'}
    return client


@pytest.fixture
def integrations(database, fake_client):
    return IntegrationService(client_factory=lambda provider, credentials: fake_client)


class TestIntegrationService:
    """Stored provider credentials"""

    def test_not_configured_by_default(self, integrations):
        assert integrations.is_configured() is False

        with pytest.raises(BackgroundCheckError) as exc:
            integrations.get_client()

        assert exc.value.kind == ErrorKind.INTEGRATION_NOT_CONFIGURED
        assert exc.value.http_status == 409

    def test_connect_stores_encrypted_credentials(self, integrations, fake_client):
        result = integrations.connect('checkr', {'checkr_api_key': 'sk_live_secret'},
                                      updated_by='admin@example.com')

        assert result['connected'] is True
        assert result['account']['account_name'] == 'Acme Hiring'
        fake_client.test_connection.assert_called_once()

        stored = DatabaseManager(IntegrationSetting).get_by(key='checkr_api_key')
        assert stored.is_encrypted is True
        assert stored.value != 'sk_live_secret'
        assert stored.updated_by == 'admin@example.com'

        assert integrations.is_configured() is True
        assert integrations.get_provider_name() == 'checkr'
        assert integrations.get_credentials('checkr') == {'checkr_api_key': 'sk_live_secret'}

    def test_connect_keeps_nothing_when_verification_fails(self, integrations, fake_client):
        fake_client.test_connection.side_effect = ProviderError("unauthorized", status_code=401)

        with pytest.raises(BackgroundCheckError) as exc:
            integrations.connect('checkr', {'checkr_api_key': 'bad'}, updated_by='admin@example.com')

        assert exc.value.kind == ErrorKind.PROVIDER_UNAVAILABLE
        assert DatabaseManager(IntegrationSetting).count() == 0

    def test_connect_rejects_unknown_provider(self, integrations):
        with pytest.raises(ValueError):
            integrations.connect('acme', {'key': 'x'}, updated_by='admin@example.com')

    def test_reconnect_overwrites(self, integrations):
        integrations.connect('checkr', {'checkr_api_key': 'one'}, updated_by='a', verify=False)
        integrations.connect('checkr', {'checkr_api_key': 'two'}, updated_by='b', verify=False)

        assert integrations.get_credentials('checkr') == {'checkr_api_key': 'two'}
        assert DatabaseManager(IntegrationSetting).count(key='checkr_api_key') == 1

    def test_certn_environment_stored(self, integrations):
        integrations.connect('certn', {
            'certn_client_id': 'id', 'certn_client_secret': 'secret', 'environment': 'production'
        }, updated_by='admin@example.com', verify=False)

        assert integrations.get_credentials('certn') == {
            'certn_client_id': 'id', 'certn_client_secret': 'secret', 'environment': 'production'
        }
        assert integrations.status()['environment'] == 'production'

    def test_disconnect(self, integrations):
        integrations.connect('checkr', {'checkr_api_key': 'key'}, updated_by='a', verify=False)

        assert integrations.disconnect('checkr', updated_by='a') is True
        assert integrations.get_credentials('checkr') is None

    def test_undecryptable_credentials_treated_as_missing(self, integrations):
        DatabaseManager(IntegrationSetting).create(key='checkr_api_key', value='garbage',
                                                   is_encrypted=True)

        assert integrations.get_credentials('checkr') is None

    def test_environment_fallback(self, integrations):
        with patch('app.services.integration_service.Config') as config:
            config.CHECKR_API_KEY = 'env-key'
            config.SCREENING_PROVIDER = 'checkr'
            config.CERTN_CLIENT_ID = None

            assert integrations.get_credentials('checkr') == {'checkr_api_key': 'env-key'}
            assert integrations.get_credentials('certn') is None
            assert integrations.is_configured() is True

    def test_status_account_lookup_failure(self, integrations, fake_client):
        integrations.connect('checkr', {'checkr_api_key': 'key'}, updated_by='a', verify=False)
        fake_client.test_connection.side_effect = ProviderError("down")

        status = integrations.status(include_account=True)

        assert status['connected'] is True
        assert status['account'] is None


class TestBuildProviderClient:

    def test_builds_checkr(self):
        assert isinstance(build_provider_client('checkr', {'checkr_api_key': 'k'}), CheckrClient)

    def test_builds_certn(self):
        client = build_provider_client('certn', {
            'certn_client_id': 'id', 'certn_client_secret': 's', 'environment': 'production'
        })
        assert isinstance(client, CertnClient)
        assert client.environment == 'production'

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_provider_client('acme', {})
