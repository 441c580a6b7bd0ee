"""Pydantic schemas consolidating backend API contracts."""

# purpose: aggregate request and response schemas for FastAPI surfaces and services
# status: active

from typing import Optional, Any, Dict
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from uuid import UUID

from .forms import (
    CHOICE_TYPES,
    UTCDateTime,
    AnswerOut,
    AnswerPayload,
    DistributionEntry,
    FormContent,
    FormCreate,
    FormEdit,
    FormEditResult,
    FormOut,
    FormStats,
    FormSummary,
    LineageItem,
    LineageOut,
    PermanentDeleteResult,
    QuestionOut,
    QuestionPayload,
    QuestionType,
    SubmissionCreate,
    SubmissionOut,
)


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)
    phone_number: Optional[str] = None
    age: Optional[int] = None


class UserOut(BaseModel):
    id: UUID
    tenant_id: UUID
    email: EmailStr
    name: str
    phone_number: Optional[str] = None
    age: Optional[int] = None
    role: str
    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    age: Optional[int] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    name: str
    role: str
    tenant_id: UUID
    tenant_name: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TenantOut(BaseModel):
    id: UUID
    name: str
    logo_url: str = ""
    created_at: UTCDateTime
    model_config = ConfigDict(from_attributes=True)


class TenantUpdate(BaseModel):
    name: Optional[str] = None
    logo_url: Optional[str] = None


class AuditLogOut(BaseModel):
    id: UUID
    user_id: UUID | None = None
    action: str
    target_type: str | None = None
    target_id: UUID | None = None
    details: Dict[str, Any] = {}
    created_at: UTCDateTime
    model_config = ConfigDict(from_attributes=True)
