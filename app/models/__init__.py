from .background_check import BackgroundCheck, BackgroundCheckEvent, BackgroundCheckStatus
from .integration_setting import IntegrationSetting

__all__ = [
    'BackgroundCheck', 'BackgroundCheckEvent', 'BackgroundCheckStatus',
    'IntegrationSetting'
]
