from datetime import date
from typing import List
from app.models.intake import CandidateIntake, ScreeningPackage
from app.utils.exceptions import BackgroundCheckError, ErrorKind, FieldError
from app.utils.validators import (
    validate_email, validate_phone, validate_date_of_birth,
    validate_national_id, validate_region_code
)


def collect_intake_errors(intake: CandidateIntake, package: ScreeningPackage,
                          today: date = None) -> List[FieldError]:
    """Return every failing field, in form order. Never touches the provider."""
    errors = []

    if not intake.full_name:
        errors.append(FieldError('full_name', ErrorKind.MISSING_REQUIRED_FIELD,
                                 "Candidate name is required"))

    valid, message = validate_email(intake.email)
    if not valid:
        errors.append(FieldError('email', ErrorKind.INVALID_FORMAT, message))

    if intake.phone:
        valid, message = validate_phone(intake.phone)
        if not valid:
            errors.append(FieldError('phone', ErrorKind.INVALID_FORMAT, message))

    if not intake.date_of_birth:
        errors.append(FieldError('date_of_birth', ErrorKind.MISSING_REQUIRED_FIELD,
                                 "Date of birth is required"))
    else:
        valid, message = validate_date_of_birth(intake.date_of_birth, today=today)
        if not valid:
            errors.append(FieldError('date_of_birth', ErrorKind.INVALID_FORMAT, message))

    if not intake.national_id:
        errors.append(FieldError('national_id', ErrorKind.MISSING_REQUIRED_FIELD,
                                 "SSN / national ID is required"))
    else:
        valid, message = validate_national_id(intake.national_id)
        if not valid:
            errors.append(FieldError('national_id', ErrorKind.INVALID_FORMAT, message))

    if package.requires_driver_license:
        if not intake.driver_license_number:
            errors.append(FieldError('driver_license_number', ErrorKind.MISSING_REQUIRED_FIELD,
                                     f"Driver's license number is required for the {package.name}"))
        if not intake.driver_license_state:
            errors.append(FieldError('driver_license_state', ErrorKind.MISSING_REQUIRED_FIELD,
                                     f"Driver's license state is required for the {package.name}"))

    if intake.driver_license_state:
        valid, message = validate_region_code(intake.driver_license_state)
        if not valid:
            errors.append(FieldError('driver_license_state', ErrorKind.INVALID_FORMAT, message))

    return errors


def validate_intake(intake: CandidateIntake, package: ScreeningPackage, today: date = None):
    """Raise ValidationFailed naming the first bad field, carrying all of them"""
    errors = collect_intake_errors(intake, package, today=today)
    if errors:
        first = errors[0]
        raise BackgroundCheckError(
            ErrorKind.VALIDATION_FAILED,
            first.message,
            field=first.field,
            field_errors=errors
        )
