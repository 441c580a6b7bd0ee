"""Schemas for form authoring, submission, and analytics APIs."""

# purpose: define request/response contracts for form versions, submissions, and stats
# status: active

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator


def _mark_utc(value: datetime) -> datetime:
    # rows store naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(_mark_utc)]


class QuestionType(str, Enum):
    TEXT = "Text"
    TEXT_AREA = "TextArea"
    NUMBER = "Number"
    EMAIL = "Email"
    RATING = "Rating"
    DROPDOWN = "Dropdown"
    RADIO = "Radio"
    CHECKBOX = "Checkbox"
    DATE = "Date"


CHOICE_TYPES = frozenset({QuestionType.DROPDOWN, QuestionType.RADIO, QuestionType.CHECKBOX})


class QuestionPayload(BaseModel):
    """Question definition as authored by an editor."""

    label: str
    type: QuestionType = QuestionType.TEXT
    is_required: bool = False
    help_text: str = ""
    placeholder: str = ""
    default_value: str = ""
    validation_rules: str = ""
    options: Optional[str] = None

    @field_validator("label")
    @classmethod
    def label_must_be_present(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("question label must be a non-empty string")
        return value.strip()

    @model_validator(mode="after")
    def choices_need_options(self) -> "QuestionPayload":
        if self.type in CHOICE_TYPES:
            parts = [part.strip() for part in (self.options or "").split(",")]
            if not any(parts):
                raise ValueError(f"{self.type.value} questions require at least one option")
        return self


class QuestionOut(BaseModel):
    id: UUID
    position: int
    label: str
    type: str
    is_required: bool
    help_text: str
    placeholder: str
    default_value: str
    validation_rules: str
    options: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class FormContent(BaseModel):
    """Editable content of a form version.

    Used both for lineage creation and for edits; an edit always carries the
    full content, the caller's payload wins over what is stored.
    """

    title: str
    description: str = ""
    is_published: bool = False
    is_public: bool = True
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    one_submission_per_user: bool = False
    questions: List[QuestionPayload] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_must_be_present(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("title must be a non-empty string")
        return value.strip()

    @model_validator(mode="after")
    def window_must_be_ordered(self) -> "FormContent":
        if self.start_at and self.end_at and self.end_at < self.start_at:
            raise ValueError("end_at must not precede start_at")
        return self


class FormCreate(FormContent):
    pass


class FormEdit(FormContent):
    pass


class FormSummary(BaseModel):
    id: UUID
    tenant_id: UUID
    created_by: Optional[UUID] = None
    version: int
    lineage_root: Optional[UUID] = None
    title: str
    description: str
    is_published: bool
    is_public: bool
    start_at: Optional[UTCDateTime] = None
    end_at: Optional[UTCDateTime] = None
    one_submission_per_user: bool
    deleted: bool = False
    deleted_at: Optional[UTCDateTime] = None
    deleted_by: Optional[UUID] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime
    model_config = ConfigDict(from_attributes=True)


class FormOut(FormSummary):
    questions: List[QuestionOut] = Field(default_factory=list)


class FormEditResult(FormOut):
    """Edited form plus whether the edit forked a new version."""

    forked: bool
    previous_version_id: UUID


class LineageItem(BaseModel):
    id: UUID
    version: int
    title: str
    is_published: bool
    is_public: bool
    deleted: bool = False
    model_config = ConfigDict(from_attributes=True)


class LineageOut(BaseModel):
    lineage_root: UUID
    items: List[LineageItem] = Field(default_factory=list)


class AnswerPayload(BaseModel):
    question_id: UUID
    value: str = ""


class SubmissionCreate(BaseModel):
    answers: List[AnswerPayload] = Field(default_factory=list)


class AnswerOut(BaseModel):
    id: UUID
    question_id: UUID
    value: str
    model_config = ConfigDict(from_attributes=True)


class SubmissionOut(BaseModel):
    id: UUID
    form_version_id: UUID
    submitter_id: Optional[UUID] = None
    submitted_at: UTCDateTime
    answers: List[AnswerOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class DistributionEntry(BaseModel):
    question_id: UUID
    value: str
    count: int


class FormStats(BaseModel):
    form_id: UUID
    title: str
    total_submissions: int
    distribution: List[DistributionEntry] = Field(default_factory=list)


class PermanentDeleteResult(BaseModel):
    form_id: UUID
    submissions_deleted: int
    answers_deleted: int
    questions_deleted: int
