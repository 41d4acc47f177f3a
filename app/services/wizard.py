"""Stepwise intake for the background check form, as plain values.

Each function takes a ``WizardState`` and returns a new one; nothing is
mutated, so a UI, CLI or test can drive the same steps in any order and the
final submission still goes through the orchestrator's own checks.
"""
from dataclasses import dataclass, replace
from typing import List, Optional
from app.models.intake import CandidateIntake, ConsentRecord
from app.services.intake_validator import collect_intake_errors
from app.services.package_catalog import PackageCatalog
from app.utils.exceptions import ErrorKind, FieldError

STEP_PACKAGE = 1
STEP_CANDIDATE_INFO = 2
STEP_REVIEW = 3

DEFAULT_PACKAGE_ID = 'standard'


@dataclass(frozen=True)
class WizardState:
    step: int = STEP_PACKAGE
    package_id: Optional[str] = DEFAULT_PACKAGE_ID
    intake: Optional[CandidateIntake] = None
    consent: ConsentRecord = ConsentRecord(obtained=False)


def validate_step(state: WizardState, catalog: PackageCatalog) -> List[FieldError]:
    """Errors blocking the current step"""
    package = catalog.get(state.package_id) if state.package_id else None

    if package is None:
        return [FieldError('package_id', ErrorKind.UNKNOWN_PACKAGE, "Select a screening package")]

    if state.step == STEP_PACKAGE:
        return []

    if state.step == STEP_CANDIDATE_INFO:
        if state.intake is None:
            return [FieldError('intake', ErrorKind.MISSING_REQUIRED_FIELD,
                               "Candidate information is required")]
        return collect_intake_errors(state.intake, package)

    errors = []
    if not state.consent.obtained:
        errors.append(FieldError('consent', ErrorKind.CONSENT_REQUIRED,
                                 "Please confirm that candidate consent has been obtained"))
    return errors


def advance(state: WizardState, catalog: PackageCatalog) -> WizardState:
    """Move forward when the current step is valid, otherwise stay put"""
    if state.step >= STEP_REVIEW or validate_step(state, catalog):
        return state
    return replace(state, step=state.step + 1)


def back(state: WizardState) -> WizardState:
    if state.step <= STEP_PACKAGE:
        return state
    return replace(state, step=state.step - 1)


def select_package(state: WizardState, package_id: str) -> WizardState:
    return replace(state, package_id=package_id)


def update_intake(state: WizardState, intake: CandidateIntake) -> WizardState:
    return replace(state, intake=intake)


def affirm_consent(state: WizardState, consent: ConsentRecord) -> WizardState:
    return replace(state, consent=consent)


def is_ready(state: WizardState, catalog: PackageCatalog) -> bool:
    """True when every step validates; the submit call re-checks everything anyway"""
    return all(
        not validate_step(replace(state, step=step), catalog)
        for step in (STEP_PACKAGE, STEP_CANDIDATE_INFO, STEP_REVIEW)
    )
