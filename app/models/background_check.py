from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class BackgroundCheckStatus(enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    CONSIDER = "consider"
    SUSPENDED = "suspended"

    @property
    def is_terminal(self):
        return self != BackgroundCheckStatus.PENDING


TERMINAL_STATUSES = (
    BackgroundCheckStatus.COMPLETE,
    BackgroundCheckStatus.CONSIDER,
    BackgroundCheckStatus.SUSPENDED,
)


def _enum_values(enum_class):
    return [member.value for member in enum_class]


class BackgroundCheck(BaseModel):
    __tablename__ = 'background_checks'

    # Owning candidate application (reference only, owned elsewhere)
    application_id = Column(String(64), nullable=False, index=True)
    package_id = Column(String(50), nullable=False)

    # Provider details
    provider = Column(String(50), nullable=False)
    provider_request_id = Column(String(255), nullable=False, unique=True)
    provider_applicant_id = Column(String(255))
    provider_report_url = Column(String(1000))
    last_provider_status = Column(String(100))

    # Status
    status = Column(
        Enum(BackgroundCheckStatus, name='background_check_status', values_callable=_enum_values),
        nullable=False,
        default=BackgroundCheckStatus.PENDING
    )

    # Dates
    initiated_at = Column(DateTime, nullable=False)
    initiated_by = Column(String(255), nullable=False)
    completed_at = Column(DateTime)
    last_refreshed_at = Column(DateTime)

    # Consent stamp
    consent_affirmed_by = Column(String(255), nullable=False)
    consent_affirmed_at = Column(DateTime, nullable=False)

    # Optimistic concurrency for refresh
    version = Column(Integer, nullable=False)

    # Relationships
    timeline = relationship(
        "BackgroundCheckEvent",
        back_populates="background_check",
        order_by="BackgroundCheckEvent.sequence",
        lazy='selectin',
        cascade="all, delete-orphan"
    )

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        # At most one in-flight check per application
        Index(
            'uq_background_checks_active_application',
            'application_id',
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'")
        ),
    )

    @property
    def is_terminal(self):
        return self.status is not None and self.status.is_terminal

    def append_event(self, description, occurred_at, source='system'):
        """Append a timeline event after the current last one"""
        next_sequence = (self.timeline[-1].sequence + 1) if self.timeline else 1
        event = BackgroundCheckEvent(
            sequence=next_sequence,
            occurred_at=occurred_at,
            description=description,
            source=source
        )
        self.timeline.append(event)
        return event

    def to_dict(self):
        return {
            'id': self.id,
            'application_id': self.application_id,
            'package_id': self.package_id,
            'provider': self.provider,
            'provider_request_id': self.provider_request_id,
            'provider_report_url': self.provider_report_url,
            'status': self.status.value,
            'is_terminal': self.is_terminal,
            'initiated_at': self.initiated_at.isoformat(),
            'initiated_by': self.initiated_by,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'last_refreshed_at': self.last_refreshed_at.isoformat() if self.last_refreshed_at else None,
            'consent': {
                'affirmed_by': self.consent_affirmed_by,
                'affirmed_at': self.consent_affirmed_at.isoformat(),
            },
            'timeline': [event.to_dict() for event in self.timeline],
        }


class BackgroundCheckEvent(BaseModel):
    __tablename__ = 'background_check_events'

    background_check_id = Column(Integer, ForeignKey('background_checks.id'), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    occurred_at = Column(DateTime, nullable=False)
    description = Column(String(500), nullable=False)
    source = Column(String(20), nullable=False, default='system')  # system, provider

    background_check = relationship("BackgroundCheck", back_populates="timeline")

    __table_args__ = (
        UniqueConstraint('background_check_id', 'sequence', name='uq_background_check_event_sequence'),
    )

    def to_dict(self):
        return {
            'timestamp': self.occurred_at.isoformat(),
            'description': self.description,
            'source': self.source,
        }
