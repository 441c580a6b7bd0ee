import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


ROLE_ADMIN = "Admin"
ROLE_EDITOR = "Editor"


class Tenant(Base):
    __tablename__ = "tenants"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    logo_url = Column(String, default="", nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    users = relationship("User", back_populates="tenant")


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, default="", nullable=False)
    hashed_password = Column(String, nullable=False)
    phone_number = Column(String)
    age = Column(Integer)
    role = Column(String, default=ROLE_EDITOR, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)

    tenant = relationship("Tenant", back_populates="users")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class FormVersion(Base):
    __tablename__ = "form_versions"

    # one row per immutable-once-submitted snapshot; rows sharing lineage_root form a lineage
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False, index=True)
    # NULL marks a legacy form created before ownership tracking
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    version = Column(Integer, default=1, nullable=False)
    lineage_root = Column(UUID(as_uuid=True), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, default="", nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    start_at = Column(DateTime, nullable=True)
    end_at = Column(DateTime, nullable=True)
    one_submission_per_user = Column(Boolean, default=False, nullable=False)

    deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    superseded_at = Column(DateTime, nullable=True)
    last_submission_at = Column(DateTime, nullable=True)
    revision = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    questions = relationship(
        "Question",
        back_populates="form_version",
        cascade="all, delete-orphan",
        order_by="Question.position",
        passive_deletes=True,
    )
    submissions = relationship(
        "Submission",
        back_populates="form_version",
        cascade="all, delete-orphan",
        order_by="Submission.submitted_at",
        passive_deletes=True,
    )

    __table_args__ = (
        sa.UniqueConstraint("lineage_root", "version", name="uq_form_versions_lineage_version"),
    )
    __mapper_args__ = {"version_id_col": revision}


class Question(Base):
    __tablename__ = "questions"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_version_id = Column(
        UUID(as_uuid=True),
        ForeignKey("form_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, default=0, nullable=False)
    label = Column(String, nullable=False)
    type = Column(String, default="Text", nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    help_text = Column(String, default="", nullable=False)
    placeholder = Column(String, default="", nullable=False)
    default_value = Column(String, default="", nullable=False)
    validation_rules = Column(Text, default="", nullable=False)
    options = Column(Text, nullable=True)

    form_version = relationship("FormVersion", back_populates="questions")


class Submission(Base):
    __tablename__ = "submissions"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_version_id = Column(
        UUID(as_uuid=True),
        ForeignKey("form_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # NULL submitter is a guest
    submitter_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # mirrors submitter_id only for one-submission-per-user versions
    unique_submitter_id = Column(UUID(as_uuid=True), nullable=True)
    submitted_at = Column(DateTime, default=_utcnow, nullable=False)

    form_version = relationship("FormVersion", back_populates="submissions")
    answers = relationship(
        "Answer",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "form_version_id",
            "unique_submitter_id",
            name="uq_submissions_one_per_user",
        ),
    )


class Answer(Base):
    __tablename__ = "answers"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    value = Column(Text, default="", nullable=False)

    submission = relationship("Submission", back_populates="answers")


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    action = Column(String, nullable=False)
    target_type = Column(String)
    target_id = Column(UUID(as_uuid=True))
    details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=_utcnow)
