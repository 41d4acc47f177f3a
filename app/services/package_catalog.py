from typing import Dict, List, Optional
from config.config import Config
from app.models.intake import ScreeningPackage


class PackageCatalog:
    """Read-only lookup of the screening packages offered to operators"""

    def __init__(self, definitions: List[Dict] = None):
        definitions = Config.SCREENING_PACKAGES if definitions is None else definitions
        self._packages = {}
        for definition in definitions:
            package = ScreeningPackage(
                id=definition['id'],
                name=definition['name'],
                tier=definition.get('tier', definition['id']),
                price_cents=int(definition['price_cents']),
                estimated_duration_days=int(definition['estimated_duration_days']),
                included_checks=tuple(definition.get('included_checks', ())),
                is_recommended=bool(definition.get('is_recommended', False)),
            )
            if package.id in self._packages:
                raise ValueError(f"Duplicate screening package id: {package.id}")
            self._packages[package.id] = package

    def get(self, package_id: str) -> Optional[ScreeningPackage]:
        return self._packages.get(package_id)

    def all(self) -> List[ScreeningPackage]:
        return list(self._packages.values())

    def recommended(self) -> Optional[ScreeningPackage]:
        return next((p for p in self._packages.values() if p.is_recommended), None)
