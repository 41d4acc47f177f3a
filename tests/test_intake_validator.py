import pytest
from datetime import date
from app.models.intake import CandidateIntake
from app.services.intake_validator import collect_intake_errors, validate_intake
from app.services.package_catalog import PackageCatalog
from app.utils.exceptions import BackgroundCheckError, ErrorKind

TODAY = date(2026, 10, 19)


@pytest.fixture
def catalog():
    return PackageCatalog()


def _intake(**overrides):
    fields = {
        'full_name': 'Jane Smith',
        'email': 'jane.smith@example.com',
        'date_of_birth': '1990-04-12',
        'national_id': '123-45-6789',
    }
    fields.update(overrides)
    return CandidateIntake(**fields)


class TestIntakeValidator:
    """Test candidate intake validation"""

    def test_valid_basic_intake(self, catalog):
        assert collect_intake_errors(_intake(), catalog.get('basic'), today=TODAY) == []

    def test_missing_date_of_birth(self, catalog):
        with pytest.raises(BackgroundCheckError) as exc:
            validate_intake(_intake(date_of_birth=None), catalog.get('basic'), today=TODAY)

        assert exc.value.kind == ErrorKind.VALIDATION_FAILED
        assert exc.value.field == 'date_of_birth'
        assert exc.value.field_errors[0].kind == ErrorKind.MISSING_REQUIRED_FIELD

    def test_missing_national_id(self, catalog):
        errors = collect_intake_errors(_intake(national_id=None), catalog.get('basic'), today=TODAY)

        assert [(e.field, e.kind) for e in errors] == [('national_id', ErrorKind.MISSING_REQUIRED_FIELD)]

    @pytest.mark.parametrize('email', [None, '', 'not-an-email', 'jane@', 'jane@example'])
    def test_bad_email(self, catalog, email):
        errors = collect_intake_errors(_intake(email=email), catalog.get('basic'), today=TODAY)

        assert errors[0].field == 'email'
        assert errors[0].kind == ErrorKind.INVALID_FORMAT

    @pytest.mark.parametrize('national_id', ['12-345-6789', '1234', 'abc-de-fghi', '000-00-0000'])
    def test_bad_national_id(self, catalog, national_id):
        errors = collect_intake_errors(_intake(national_id=national_id), catalog.get('basic'), today=TODAY)

        assert errors[0].field == 'national_id'
        assert errors[0].kind == ErrorKind.INVALID_FORMAT

    @pytest.mark.parametrize('national_id', ['123456789', '123 456 789'])
    def test_national_id_without_dashes(self, catalog, national_id):
        assert collect_intake_errors(_intake(national_id=national_id), catalog.get('basic'), today=TODAY) == []

    @pytest.mark.parametrize('dob', ['12/04/1990', '2027-01-01', '1990-02-30'])
    def test_bad_date_of_birth(self, catalog, dob):
        errors = collect_intake_errors(_intake(date_of_birth=dob), catalog.get('basic'), today=TODAY)

        assert errors[0].field == 'date_of_birth'
        assert errors[0].kind == ErrorKind.INVALID_FORMAT

    @pytest.mark.parametrize('package_id', ['standard', 'comprehensive'])
    def test_driver_license_required_for_higher_tiers(self, catalog, package_id):
        errors = collect_intake_errors(_intake(), catalog.get(package_id), today=TODAY)

        assert [e.field for e in errors] == ['driver_license_number', 'driver_license_state']
        assert all(e.kind == ErrorKind.MISSING_REQUIRED_FIELD for e in errors)

    def test_driver_license_optional_for_basic(self, catalog):
        assert collect_intake_errors(_intake(driver_license_number=None), catalog.get('basic'), today=TODAY) == []

    def test_invalid_license_state(self, catalog):
        intake = _intake(driver_license_number='D1234567', driver_license_state='ZZ')
        errors = collect_intake_errors(intake, catalog.get('standard'), today=TODAY)

        assert [(e.field, e.kind) for e in errors] == [('driver_license_state', ErrorKind.INVALID_FORMAT)]

    def test_canadian_province_accepted(self, catalog):
        intake = _intake(driver_license_number='D1234567', driver_license_state='on')
        assert collect_intake_errors(intake, catalog.get('comprehensive'), today=TODAY) == []

    def test_reports_every_failing_field(self, catalog):
        intake = _intake(email='bad', date_of_birth=None, national_id=None)

        with pytest.raises(BackgroundCheckError) as exc:
            validate_intake(intake, catalog.get('basic'), today=TODAY)

        assert exc.value.field == 'email'
        assert [e.field for e in exc.value.field_errors] == ['email', 'date_of_birth', 'national_id']
        assert exc.value.to_dict()['field_errors'][1]['kind'] == 'MissingRequiredField'

    def test_from_dict_cleans_values(self):
        intake = CandidateIntake.from_dict({
            'full_name': '  Jane Q Smith ',
            'email': ' jane@example.com ',
            'date_of_birth': '1990-04-12',
            'national_id': '123-45-6789',
            'previous_names': 'Jane Doe, , J. Doe',
            'driver_license_number': '',
        })

        assert intake.first_name == 'Jane'
        assert intake.last_name == 'Q Smith'
        assert intake.email == 'jane@example.com'
        assert intake.previous_names == ('Jane Doe', 'J. Doe')
        assert intake.driver_license_number is None

    def test_repr_hides_national_id(self):
        intake = _intake()

        assert '123-45-6789' not in repr(intake)
        assert intake.masked_national_id == '***-**-6789'
