import enum
from typing import Dict, List, Optional


class ErrorKind(enum.Enum):
    INTEGRATION_NOT_CONFIGURED = "IntegrationNotConfigured"
    CONSENT_REQUIRED = "ConsentRequired"
    UNKNOWN_PACKAGE = "UnknownPackage"
    VALIDATION_FAILED = "ValidationFailed"
    PROVIDER_UNAVAILABLE = "ProviderUnavailable"
    NOT_FOUND = "NotFound"

    # Field-level kinds carried inside ValidationFailed
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_FORMAT = "InvalidFormat"


# HTTP status used by the routes for each top-level kind
HTTP_STATUS = {
    ErrorKind.INTEGRATION_NOT_CONFIGURED: 409,
    ErrorKind.CONSENT_REQUIRED: 400,
    ErrorKind.UNKNOWN_PACKAGE: 400,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.PROVIDER_UNAVAILABLE: 503,
    ErrorKind.NOT_FOUND: 404,
}


class FieldError:
    """A single failing intake field"""

    def __init__(self, field: str, kind: ErrorKind, message: str):
        self.field = field
        self.kind = kind
        self.message = message

    def to_dict(self) -> Dict:
        return {'field': self.field, 'kind': self.kind.value, 'message': self.message}

    def __repr__(self):
        return f"FieldError({self.field!r}, {self.kind.value})"


class BackgroundCheckError(Exception):
    """Typed failure raised by the background check workflow.

    ``field`` names the offending input for validation failures and
    ``details`` carries any extra structured context for the caller.
    """

    def __init__(self, kind: ErrorKind, message: str, field: Optional[str] = None,
                 field_errors: Optional[List[FieldError]] = None, details: Optional[Dict] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field
        self.field_errors = field_errors or []
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.PROVIDER_UNAVAILABLE

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.kind, 400)

    def to_dict(self) -> Dict:
        data = {
            'error': self.message,
            'kind': self.kind.value,
            'retryable': self.retryable,
        }
        if self.field:
            data['field'] = self.field
        if self.field_errors:
            data['field_errors'] = [e.to_dict() for e in self.field_errors]
        if self.details:
            data['details'] = self.details
        return data


class ProviderError(Exception):
    """Raised by provider clients for any failed or timed out call"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
