from datetime import datetime
from app.models.intake import ConsentRecord
from app.utils.exceptions import BackgroundCheckError, ErrorKind

CONSENT_REQUIRED_MESSAGE = (
    "Please confirm that candidate consent has been obtained. Written consent is "
    "required before a background check can be requested."
)


def require_consent(consent: ConsentRecord) -> ConsentRecord:
    """Hard compliance gate: refuse unless consent was explicitly affirmed by an operator.

    Returns the record with ``affirmed_at`` filled in when the caller left it empty.
    """
    if consent is None or consent.obtained is not True:
        raise BackgroundCheckError(
            ErrorKind.CONSENT_REQUIRED,
            CONSENT_REQUIRED_MESSAGE,
            field='consent'
        )

    # The affirming operator always comes from the caller, never from here
    if not consent.affirmed_by:
        raise BackgroundCheckError(
            ErrorKind.CONSENT_REQUIRED,
            "Consent must record the operator who affirmed it",
            field='affirmed_by'
        )

    if consent.affirmed_at is None:
        return ConsentRecord(obtained=True, affirmed_by=consent.affirmed_by,
                             affirmed_at=datetime.utcnow())
    return consent
