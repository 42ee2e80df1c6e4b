"""Request/response schemas for admin email template endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TemplateVariable(BaseModel):
    """Documented placeholder of a template (e.g. ResetURL)."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""


class EmailTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=500)
    html_template: str = Field(..., min_length=1)
    text_template: str = Field(..., min_length=1)
    variables: list[TemplateVariable] = Field(default_factory=list)
    is_active: bool = True


class EmailTemplateUpdate(BaseModel):
    """Partial update; bodies are re-validated when any of subject/html/text change."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    subject: str | None = Field(default=None, min_length=1, max_length=500)
    html_template: str | None = Field(default=None, min_length=1)
    text_template: str | None = Field(default=None, min_length=1)
    variables: list[TemplateVariable] | None = None
    is_active: bool | None = None


class EmailTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    subject: str
    html_template: str
    text_template: str
    variables: list[TemplateVariable]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmailTemplateSummary(BaseModel):
    """List item: the template without its bodies."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    subject: str
    variables: list[TemplateVariable]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmailTemplatesListResponse(BaseModel):
    templates: list[EmailTemplateSummary]
    total: int


class TemplatePreviewRequest(BaseModel):
    variables: dict[str, str] = Field(default_factory=dict)


class TemplatePreviewResponse(BaseModel):
    subject: str
    html_content: str
    text_content: str


class SendTestEmailRequest(BaseModel):
    email: EmailStr
    variables: dict[str, str] = Field(default_factory=dict)


class TemplateVariablesResponse(BaseModel):
    variables: list[TemplateVariable]
