from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple
from app.models.intake import CandidateIntake, ScreeningPackage


@dataclass(frozen=True)
class ProviderRequest:
    """What the provider hands back when a screening request is created"""
    provider_request_id: str
    provider_applicant_id: Optional[str] = None
    report_url: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class ProviderTimelineEntry:
    timestamp: datetime
    description: str


@dataclass(frozen=True)
class ProviderStatusSnapshot:
    """Provider-side state of one request, in the provider's own vocabulary"""
    provider_request_id: str
    status: str
    report_url: Optional[str] = None
    timeline: Tuple[ProviderTimelineEntry, ...] = ()


class ProviderClient(ABC):
    """Contract every screening provider integration implements.

    Implementations raise ``ProviderError`` for any failed, rejected or timed
    out call; the workflow treats them all as a temporarily unavailable provider.
    """

    name = 'provider'

    @abstractmethod
    def create_request(self, package: ScreeningPackage, intake: CandidateIntake) -> ProviderRequest:
        """Create a screening request for the candidate"""

    @abstractmethod
    def pull_status(self, provider_request_id: str) -> ProviderStatusSnapshot:
        """Fetch the current provider state of a request"""

    @abstractmethod
    def test_connection(self) -> Dict:
        """Make a cheap authenticated call and describe the connected account"""
