from datetime import datetime
from typing import Callable, List, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from app.database import DatabaseManager, get_db
from app.integrations.base import ProviderStatusSnapshot
from app.models import BackgroundCheck, BackgroundCheckStatus
from app.models.intake import CandidateIntake, ConsentRecord
from app.services.consent import require_consent
from app.services.integration_service import IntegrationService, NOT_CONFIGURED_MESSAGE
from app.services.intake_validator import validate_intake
from app.services.package_catalog import PackageCatalog
from app.services.status_synchronizer import StatusSynchronizer, apply_snapshot
from app.utils.exceptions import BackgroundCheckError, ErrorKind, ProviderError
from app.utils.locks import KeyedLock
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Shared by every service instance in the process
_application_locks = KeyedLock()
_check_locks = KeyedLock()

INITIATED_EVENT = "Background check initiated"


class BackgroundCheckService:
    """Owns background checks: submission, refresh and lookup"""

    def __init__(self, integrations: IntegrationService = None, catalog: PackageCatalog = None):
        self.integrations = integrations or IntegrationService()
        self.catalog = catalog or PackageCatalog()
        self.check_db = DatabaseManager(BackgroundCheck)

    def submit(self, application_id: str, package_id: str, intake: CandidateIntake,
               consent: ConsentRecord, initiated_by: str = None) -> BackgroundCheck:
        """Request a background check, or return the one already in progress"""
        check, _ = self.initiate(application_id, package_id, intake, consent, initiated_by)
        return check

    def initiate(self, application_id: str, package_id: str, intake: CandidateIntake,
                 consent: ConsentRecord, initiated_by: str = None) -> Tuple[BackgroundCheck, bool]:
        """Same as submit, also reporting whether this call created the check"""
        if not self.integrations.is_configured():
            raise BackgroundCheckError(ErrorKind.INTEGRATION_NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)

        consent = require_consent(consent)

        package = self.catalog.get(package_id)
        if package is None:
            raise BackgroundCheckError(
                ErrorKind.UNKNOWN_PACKAGE,
                f"Unknown screening package: {package_id}",
                field='package_id',
                details={'available': [p.id for p in self.catalog.all()]}
            )

        validate_intake(intake, package)

        with _application_locks.hold(application_id):
            existing = self.find_active_by_application(application_id)
            if existing:
                logger.info(
                    f"Application {application_id} already has pending background check {existing.id}"
                )
                return existing, False

            client = self.integrations.get_client()
            try:
                request = client.create_request(package, intake)
            except ProviderError as e:
                logger.error(f"Could not create {client.name} request for application {application_id}: {str(e)}")
                raise BackgroundCheckError(
                    ErrorKind.PROVIDER_UNAVAILABLE,
                    f"Failed to submit the background check to {client.name}. Please try again.",
                    details={'provider': client.name, 'status_code': e.status_code}
                ) from e

            now = datetime.utcnow()
            check = BackgroundCheck(
                application_id=application_id,
                package_id=package.id,
                provider=client.name,
                provider_request_id=request.provider_request_id,
                provider_applicant_id=request.provider_applicant_id,
                provider_report_url=request.report_url,
                last_provider_status=request.status,
                status=BackgroundCheckStatus.PENDING,
                initiated_at=now,
                initiated_by=initiated_by or consent.affirmed_by,
                consent_affirmed_by=consent.affirmed_by,
                consent_affirmed_at=consent.affirmed_at,
            )
            check.append_event(INITIATED_EVENT, now)

            try:
                with get_db() as db:
                    db.add(check)
            except IntegrityError:
                # Another process won the race for this application
                winner = self.find_active_by_application(application_id)
                if winner is None:
                    raise
                logger.warning(
                    f"Discarding {client.name} request {request.provider_request_id}: application "
                    f"{application_id} already has pending background check {winner.id}"
                )
                return winner, False

        logger.info(
            f"Background check {check.id} initiated for application {application_id} "
            f"({package.id} via {client.name}, consent affirmed by {consent.affirmed_by})"
        )
        return check, True

    def refresh(self, check_id: int) -> BackgroundCheck:
        """Pull provider state for a pending check; terminal checks are returned as-is"""
        def fetch(check):
            synchronizer = StatusSynchronizer(self.integrations.get_client(check.provider))
            return synchronizer.pull(check.provider_request_id)

        return self._reconcile(check_id, fetch)

    def apply_provider_event(self, provider: str, snapshot: ProviderStatusSnapshot) -> BackgroundCheck:
        """Apply a pushed provider update (webhook) through the same path as refresh"""
        with get_db() as db:
            check_id = db.query(BackgroundCheck.id).filter_by(
                provider=provider,
                provider_request_id=snapshot.provider_request_id
            ).scalar()

        if check_id is None:
            raise BackgroundCheckError(
                ErrorKind.NOT_FOUND,
                f"No background check for {provider} request {snapshot.provider_request_id}"
            )
        return self._reconcile(check_id, lambda check: snapshot)

    def get(self, check_id: int) -> BackgroundCheck:
        check = self.check_db.get(check_id)
        if check is None:
            raise BackgroundCheckError(ErrorKind.NOT_FOUND, f"Background check {check_id} not found")
        return check

    def get_by_application(self, application_id: str) -> BackgroundCheck:
        """The pending check for an application, else its most recent one"""
        check = self.find_active_by_application(application_id)
        if check is None:
            history = self.list_by_application(application_id)
            check = history[0] if history else None
        if check is None:
            raise BackgroundCheckError(
                ErrorKind.NOT_FOUND,
                f"No background check found for application {application_id}"
            )
        return check

    def find_active_by_application(self, application_id: str):
        return self.check_db.get_by(application_id=application_id, status=BackgroundCheckStatus.PENDING)

    def list_by_application(self, application_id: str) -> List[BackgroundCheck]:
        with get_db() as db:
            return db.query(BackgroundCheck).filter_by(
                application_id=application_id
            ).order_by(BackgroundCheck.initiated_at.desc(), BackgroundCheck.id.desc()).all()

    def list_pending_ids(self) -> List[int]:
        with get_db() as db:
            rows = db.query(BackgroundCheck.id).filter_by(
                status=BackgroundCheckStatus.PENDING
            ).order_by(BackgroundCheck.initiated_at).all()
        return [row.id for row in rows]

    def _reconcile(self, check_id: int, fetch: Callable) -> BackgroundCheck:
        with _check_locks.hold(check_id):
            try:
                with get_db() as db:
                    check = db.query(BackgroundCheck).filter_by(id=check_id).first()
                    if check is None:
                        raise BackgroundCheckError(
                            ErrorKind.NOT_FOUND, f"Background check {check_id} not found"
                        )
                    if check.is_terminal:
                        return check

                    # Any failure here rolls the session back, leaving the row untouched
                    snapshot = fetch(check)
                    apply_snapshot(check, snapshot)
                    return check
            except StaleDataError:
                logger.warning(f"Background check {check_id} was updated concurrently; returning latest state")
                return self.get(check_id)
