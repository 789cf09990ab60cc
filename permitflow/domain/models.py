from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from permitflow.domain.state_machine import ApplicationStatus


def now_utc() -> datetime:
    return datetime.now(UTC)


class EventRecord(SQLModel, table=True):
    __tablename__ = "events"

    event_id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_type: str = Field(index=True)
    recipient_id: str = Field(index=True)
    ts: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))
    actor_id: str | None = Field(default=None, index=True)
    correlation_id: str | None = Field(default=None, index=True)
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )


class SequenceCounter(SQLModel, table=True):
    __tablename__ = "sequence_counters"

    name: str = Field(primary_key=True)
    value: int = Field(default=0)


class UserRole(StrEnum):
    CITIZEN = "citizen"
    INSPECTOR = "inspector"
    ADMIN = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    role: UserRole = Field(default=UserRole.CITIZEN, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))


class ApplicationType(StrEnum):
    FIRE_INSPECTION = "fire_inspection"
    NOC = "noc"
    LICENSE = "license"
    RENEWAL = "renewal"


class ApplicationPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PropertyType(StrEnum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    INSTITUTIONAL = "institutional"


class ApplicationDeadlines(BaseModel):
    inspection: datetime | None = None
    follow_up: datetime | None = None
    final_decision: datetime | None = None


class Application(SQLModel, table=True):
    __tablename__ = "applications"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    application_number: str = Field(index=True, unique=True)
    application_type: ApplicationType
    applicant_id: str = Field(foreign_key="users.id", index=True)
    property_details: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    documents: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    status: ApplicationStatus = Field(default=ApplicationStatus.SUBMITTED, index=True)
    priority: ApplicationPriority = Field(default=ApplicationPriority.MEDIUM, index=True)
    assigned_to: str | None = Field(default=None, foreign_key="users.id", index=True)
    inspection_id: str | None = Field(default=None, index=True)
    noc_id: str | None = Field(default=None, index=True)
    license_id: str | None = Field(default=None, index=True)
    timeline: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    remarks: str | None = None
    rejection_reason: str | None = None
    inspection_deadline: datetime | None = Field(default=None, index=True, sa_type=DateTime(timezone=True))
    follow_up_deadline: datetime | None = Field(default=None, index=True, sa_type=DateTime(timezone=True))
    final_decision_deadline: datetime | None = Field(default=None, index=True, sa_type=DateTime(timezone=True))
    is_overdue: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))

    @property
    def deadlines(self) -> ApplicationDeadlines:
        return ApplicationDeadlines(
            inspection=self.inspection_deadline,
            follow_up=self.follow_up_deadline,
            final_decision=self.final_decision_deadline,
        )


class InspectionStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"


class ChecklistCategory(StrEnum):
    FIRE_SAFETY = "fire_safety"
    ELECTRICAL = "electrical"
    STRUCTURAL = "structural"
    EMERGENCY_EXITS = "emergency_exits"
    FIRE_EXTINGUISHERS = "fire_extinguishers"
    ALARMS = "alarms"


class ComplianceStatus(StrEnum):
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    NOT_APPLICABLE = "not_applicable"


class Inspection(SQLModel, table=True):
    __tablename__ = "inspections"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    application_id: str = Field(index=True)
    inspector_id: str = Field(foreign_key="users.id", index=True)
    inspection_date: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    status: InspectionStatus = Field(default=InspectionStatus.SCHEDULED, index=True)
    checklist_items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    overall_compliance: int | None = None
    findings: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    requires_follow_up: bool = Field(default=False)
    follow_up_deadline: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    inspector_remarks: str | None = None
    completed_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))


class CertificateStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    SUSPENDED = "suspended"


class NocType(StrEnum):
    CONSTRUCTION = "construction"
    OCCUPANCY = "occupancy"
    EVENT = "event"
    RENOVATION = "renovation"


class Certificate(SQLModel, table=True):
    __tablename__ = "certificates"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    noc_number: str = Field(index=True, unique=True)
    application_id: str = Field(index=True)
    applicant_id: str = Field(index=True)
    property_details: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    noc_type: NocType = Field(default=NocType.CONSTRUCTION)
    issued_by: str
    issued_date: datetime = Field(default_factory=now_utc, sa_type=DateTime(timezone=True))
    valid_until: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    conditions: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    restrictions: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    status: CertificateStatus = Field(default=CertificateStatus.ACTIVE, index=True)
    remarks: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))


class LicenseStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    REVOKED = "revoked"
    RENEWAL_PENDING = "renewal_pending"


class LicenseType(StrEnum):
    FIRE_SAFETY = "fire_safety"
    OCCUPANCY = "occupancy"
    BUSINESS = "business"
    EVENT = "event"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class License(SQLModel, table=True):
    __tablename__ = "licenses"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    license_number: str = Field(index=True, unique=True)
    application_id: str = Field(index=True)
    licensee_id: str = Field(index=True)
    license_type: LicenseType = Field(default=LicenseType.FIRE_SAFETY)
    property_details: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    issued_by: str
    issued_date: datetime = Field(default_factory=now_utc, sa_type=DateTime(timezone=True))
    valid_from: datetime = Field(sa_type=DateTime(timezone=True))
    valid_until: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    status: LicenseStatus = Field(default=LicenseStatus.ACTIVE, index=True)
    conditions: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    restrictions: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    renewal_history: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    fees: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    reminder_sent: bool = Field(default=False, index=True)
    remarks: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=now_utc, index=True, sa_type=DateTime(timezone=True))


class EventEnvelope(BaseModel):
    event_id: str = PydanticField(default_factory=lambda: str(uuid4()))
    event_type: str
    recipient_id: str
    ts: datetime = PydanticField(default_factory=now_utc)
    actor_id: str | None = None
    correlation_id: str | None = None
    payload: dict[str, Any] = PydanticField(default_factory=dict)


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    name: str
    email: str
    role: UserRole = UserRole.CITIZEN
    is_active: bool = True


class UserActivationRequest(BaseModel):
    is_active: bool


class UserRead(ORMReadModel):
    id: str
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime


class PropertyDetails(BaseModel):
    property_name: str
    property_type: PropertyType
    address: dict[str, str] = PydanticField(default_factory=dict)
    plot_area: float | None = None
    built_up_area: float | None = None
    number_of_floors: int | None = None


class DocumentRef(BaseModel):
    name: str
    url: str
    uploaded_at: datetime | None = None


class TimelineEntry(BaseModel):
    status: ApplicationStatus
    timestamp: datetime
    actor_id: str | None = None
    remarks: str | None = None


class ApplicationCreate(BaseModel):
    application_type: ApplicationType
    property_details: PropertyDetails
    documents: list[DocumentRef] = PydanticField(default_factory=list)
    priority: ApplicationPriority = ApplicationPriority.MEDIUM
    remarks: str | None = None


class ApplicationRead(ORMReadModel):
    id: str
    application_number: str
    application_type: ApplicationType
    applicant_id: str
    property_details: dict[str, Any]
    documents: list[dict[str, Any]]
    status: ApplicationStatus
    priority: ApplicationPriority
    assigned_to: str | None
    inspection_id: str | None
    noc_id: str | None
    license_id: str | None
    timeline: list[TimelineEntry]
    remarks: str | None
    rejection_reason: str | None
    deadlines: ApplicationDeadlines
    is_overdue: bool
    created_at: datetime
    updated_at: datetime


class ApplicationStatusRequest(BaseModel):
    status: ApplicationStatus
    remarks: str | None = None


class ApplicationAssignRequest(BaseModel):
    inspector_id: str


class FollowUpStatus(StrEnum):
    COMPLETED = "completed"
    PENDING = "pending"


class FollowUpUpdateRequest(BaseModel):
    follow_up_status: FollowUpStatus
    requires_additional_follow_up: bool = False
    remarks: str | None = None


class ChecklistItem(BaseModel):
    item: str
    category: ChecklistCategory
    status: ComplianceStatus
    remarks: str | None = None
    photos: list[str] = PydanticField(default_factory=list)


class InspectionFindings(BaseModel):
    compliant: list[str] = PydanticField(default_factory=list)
    non_compliant: list[str] = PydanticField(default_factory=list)
    recommendations: list[str] = PydanticField(default_factory=list)


class InspectionCreate(BaseModel):
    application_id: str
    inspection_date: datetime
    inspector_id: str | None = None


class InspectionUpdate(BaseModel):
    checklist_items: list[ChecklistItem] | None = None
    findings: InspectionFindings | None = None
    requires_follow_up: bool | None = None
    inspector_remarks: str | None = None
    status: InspectionStatus | None = None


class InspectionRescheduleRequest(BaseModel):
    new_date: datetime
    reason: str


class InspectionRead(ORMReadModel):
    id: str
    application_id: str
    inspector_id: str
    inspection_date: datetime
    status: InspectionStatus
    checklist_items: list[dict[str, Any]]
    overall_compliance: int | None
    findings: dict[str, Any]
    requires_follow_up: bool
    follow_up_deadline: datetime | None
    inspector_remarks: str | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class CertificateIssueRequest(BaseModel):
    noc_type: NocType = NocType.CONSTRUCTION
    validity_months: int | None = PydanticField(default=None, ge=1)
    conditions: list[str] = PydanticField(default_factory=list)
    restrictions: list[str] = PydanticField(default_factory=list)
    remarks: str | None = None


class StatusActionRequest(BaseModel):
    reason: str


class CertificateRead(ORMReadModel):
    id: str
    noc_number: str
    application_id: str
    applicant_id: str
    property_details: dict[str, Any]
    noc_type: NocType
    issued_by: str
    issued_date: datetime
    valid_until: datetime
    conditions: list[str]
    restrictions: list[str]
    status: CertificateStatus
    remarks: str | None
    created_at: datetime
    updated_at: datetime


class LicenseFees(BaseModel):
    amount: float = 0
    payment_status: PaymentStatus = PaymentStatus.PAID
    payment_date: datetime | None = None
    transaction_id: str | None = None


class LicenseIssueRequest(BaseModel):
    license_type: LicenseType = LicenseType.FIRE_SAFETY
    validity_years: int | None = PydanticField(default=None, ge=1)
    conditions: list[str] = PydanticField(default_factory=list)
    restrictions: list[str] = PydanticField(default_factory=list)
    fees: LicenseFees | None = None
    remarks: str | None = None


class LicenseRenewRequest(BaseModel):
    validity_years: int | None = PydanticField(default=None, ge=1)
    fees: dict[str, Any] | None = None


class RenewalHistoryEntry(BaseModel):
    renewed_at: datetime
    previous_expiry: datetime
    new_expiry: datetime
    actor_id: str | None = None


class LicenseRead(ORMReadModel):
    id: str
    license_number: str
    application_id: str
    licensee_id: str
    license_type: LicenseType
    property_details: dict[str, Any]
    issued_by: str
    issued_date: datetime
    valid_from: datetime
    valid_until: datetime
    status: LicenseStatus
    conditions: list[str]
    restrictions: list[str]
    renewal_history: list[RenewalHistoryEntry]
    fees: dict[str, Any]
    reminder_sent: bool
    remarks: str | None
    created_at: datetime
    updated_at: datetime


class SweepRunRead(BaseModel):
    sweep: str
    processed: int


class ExpirySweepRead(BaseModel):
    certificates: int
    licenses: int
