"""Transient value objects passed into the background check workflow.

None of these are mapped to tables: intake data and consent are used for a
single submission and then discarded, and packages come from configuration.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple
from app.utils.validators import mask_national_id

DRIVER_LICENSE_TIERS = ('standard', 'comprehensive')


@dataclass(frozen=True)
class ScreeningPackage:
    id: str
    name: str
    tier: str
    price_cents: int
    estimated_duration_days: int
    included_checks: Tuple[str, ...] = ()
    is_recommended: bool = False

    @property
    def requires_driver_license(self) -> bool:
        return self.tier in DRIVER_LICENSE_TIERS

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'tier': self.tier,
            'price_cents': self.price_cents,
            'estimated_duration_days': self.estimated_duration_days,
            'included_checks': list(self.included_checks),
            'is_recommended': self.is_recommended,
            'requires_driver_license': self.requires_driver_license,
        }


@dataclass(frozen=True)
class CandidateIntake:
    full_name: str
    email: Optional[str]
    date_of_birth: Optional[str]
    national_id: Optional[str] = field(default=None, repr=False)
    phone: Optional[str] = None
    middle_name: Optional[str] = None
    previous_names: Tuple[str, ...] = ()
    driver_license_number: Optional[str] = field(default=None, repr=False)
    driver_license_state: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        previous = data.get('previous_names') or ()
        if isinstance(previous, str):
            previous = [name.strip() for name in previous.split(',')]
        return cls(
            full_name=(data.get('full_name') or '').strip(),
            email=_clean(data.get('email')),
            date_of_birth=_clean(data.get('date_of_birth')),
            national_id=_clean(data.get('national_id')),
            phone=_clean(data.get('phone')),
            middle_name=_clean(data.get('middle_name')),
            previous_names=tuple(name for name in previous if name),
            driver_license_number=_clean(data.get('driver_license_number')),
            driver_license_state=_clean(data.get('driver_license_state')),
        )

    @property
    def first_name(self) -> str:
        return self.full_name.split(' ')[0] if self.full_name else ''

    @property
    def last_name(self) -> str:
        return ' '.join(self.full_name.split(' ')[1:]) if self.full_name else ''

    @property
    def masked_national_id(self) -> str:
        return mask_national_id(self.national_id)


@dataclass(frozen=True)
class ConsentRecord:
    obtained: bool
    affirmed_by: Optional[str] = None
    affirmed_at: Optional[datetime] = None


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None
