from .base import ProviderClient, ProviderRequest, ProviderStatusSnapshot, ProviderTimelineEntry
from .certn_client import CertnClient
from .checkr_client import CheckrClient

__all__ = [
    'ProviderClient', 'ProviderRequest', 'ProviderStatusSnapshot', 'ProviderTimelineEntry',
    'CertnClient', 'CheckrClient'
]
