"""
Email template rendering and the admin template store.

Templates use Jinja2 syntax ({{ ResetURL }}) and render in sandboxed
environments: HTML bodies autoescape, subject and text bodies do not. A
variable the caller does not supply renders as an empty string.

Lookup by name goes through a TemplateSource chain: the database first, then
the built-in copies shipped with the code, so a deleted or broken stored
template never blocks a password reset email.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import NotFoundError, ValidationFailedError
from app.models import EmailTemplate
from app.schemas.email_template import EmailTemplateCreate, EmailTemplateUpdate

if TYPE_CHECKING:
    from app.services.notifications import EmailSender

logger = logging.getLogger(__name__)

TEMPLATE_CONFLICT = "Template with this name already exists"
PASSWORD_RESET_TEMPLATE = "password_reset"
# Value substituted for every declared variable when checking template syntax.
SAMPLE_VALUE = "test_value"

_html_env = SandboxedEnvironment(autoescape=True)
_text_env = SandboxedEnvironment(autoescape=False)


class TemplateRenderError(ValidationFailedError):
    """Template failed to parse or evaluate."""


@dataclass(frozen=True)
class RenderedTemplate:
    subject: str
    html_content: str
    text_content: str


@dataclass(frozen=True)
class TemplateContent:
    """Unrendered subject/HTML/text triple, wherever it came from."""

    name: str
    subject: str
    html_template: str
    text_template: str

    @classmethod
    def from_model(cls, template: EmailTemplate) -> "TemplateContent":
        return cls(
            name=template.name,
            subject=template.subject,
            html_template=template.html_template,
            text_template=template.text_template,
        )


def _render(env: SandboxedEnvironment, source: str, variables: Mapping[str, str]) -> str:
    return env.from_string(source).render(**variables)


def render_content(content: TemplateContent, variables: Mapping[str, str]) -> RenderedTemplate:
    """Render all three parts. Raises TemplateRenderError on syntax or evaluation errors."""
    try:
        return RenderedTemplate(
            subject=_render(_text_env, content.subject, variables),
            html_content=_render(_html_env, content.html_template, variables),
            text_content=_render(_text_env, content.text_template, variables),
        )
    except TemplateError as e:
        raise TemplateRenderError(f"Invalid template syntax: {e}") from e
    except Exception as e:
        # Evaluation errors inside the template body, e.g. {{ 1 / 0 }}.
        raise TemplateRenderError(f"Template failed to render: {e}") from e


def sample_variables(names: Iterable[str]) -> dict[str, str]:
    return {name: SAMPLE_VALUE for name in names if name}


def validate_templates(
    html_template: str,
    text_template: str,
    variables: Mapping[str, str],
    subject: str = "",
) -> None:
    """Render with placeholder values and discard the output; raises TemplateRenderError."""
    render_content(
        TemplateContent(
            name="",
            subject=subject,
            html_template=html_template,
            text_template=text_template,
        ),
        variables,
    )


# --- sources ---


class TemplateSource(ABC):
    @abstractmethod
    def get(self, name: str) -> TemplateContent | None:
        raise NotImplementedError


class DatabaseTemplateSource(TemplateSource):
    """Active, non-deleted rows of email_templates."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, name: str) -> TemplateContent | None:
        template = get_active_template_by_name(self.db, name)
        if template is None:
            return None
        return TemplateContent.from_model(template)


class BuiltinTemplateSource(TemplateSource):
    def __init__(self, templates: Mapping[str, TemplateContent] | None = None) -> None:
        self.templates = dict(BUILTIN_TEMPLATES if templates is None else templates)

    def get(self, name: str) -> TemplateContent | None:
        return self.templates.get(name)


class ChainedTemplateSource(TemplateSource):
    """Tries each source in order; render() uses the first one that resolves and renders."""

    def __init__(self, sources: Sequence[TemplateSource]) -> None:
        self.sources = list(sources)

    def get(self, name: str) -> TemplateContent | None:
        for source in self.sources:
            content = source.get(name)
            if content is not None:
                return content
        return None

    def render(self, name: str, variables: Mapping[str, str]) -> RenderedTemplate:
        last_error: TemplateRenderError | None = None
        for source in self.sources:
            content = source.get(name)
            if content is None:
                continue
            try:
                return render_content(content, variables)
            except TemplateRenderError as e:
                logger.warning(
                    "Template failed to render, trying next source",
                    extra={"template": name, "source": type(source).__name__},
                )
                last_error = e
        if last_error is not None:
            raise last_error
        raise NotFoundError(f"Email template not found: {name}")


def default_template_source(db: Session) -> ChainedTemplateSource:
    return ChainedTemplateSource([DatabaseTemplateSource(db), BuiltinTemplateSource()])


# --- template store ---


def _templates(db: Session):
    return db.query(EmailTemplate).filter(EmailTemplate.deleted_at.is_(None))


def list_templates(db: Session) -> list[EmailTemplate]:
    return _templates(db).order_by(EmailTemplate.name).all()


def get_template(db: Session, template_id: UUID) -> EmailTemplate:
    template = _templates(db).filter(EmailTemplate.id == template_id).first()
    if template is None:
        raise NotFoundError("Template not found")
    return template


def get_active_template_by_name(db: Session, name: str) -> EmailTemplate | None:
    return (
        _templates(db)
        .filter(EmailTemplate.name == name, EmailTemplate.is_active.is_(True))
        .first()
    )


def create_template(db: Session, body: EmailTemplateCreate) -> EmailTemplate:
    variables = [v.model_dump() for v in body.variables]
    validate_templates(
        body.html_template,
        body.text_template,
        sample_variables(v["name"] for v in variables),
        subject=body.subject,
    )
    template = EmailTemplate(
        name=body.name.strip(),
        subject=body.subject,
        html_template=body.html_template,
        text_template=body.text_template,
        variables=variables,
        is_active=body.is_active,
    )
    with transaction(db, "create email template", conflict_message=TEMPLATE_CONFLICT):
        db.add(template)
    logger.info("Email template created", extra={"template": template.name})
    return template


def update_template(db: Session, template_id: UUID, body: EmailTemplateUpdate) -> EmailTemplate:
    fields = body.model_fields_set
    if not fields:
        raise ValidationFailedError("No fields to update")
    with transaction(db, "update email template", conflict_message=TEMPLATE_CONFLICT):
        template = get_template(db, template_id)
        if "variables" in fields and body.variables is not None:
            template.variables = [v.model_dump() for v in body.variables]
        if "subject" in fields and body.subject is not None:
            template.subject = body.subject
        if "html_template" in fields and body.html_template is not None:
            template.html_template = body.html_template
        if "text_template" in fields and body.text_template is not None:
            template.text_template = body.text_template
        if fields & {"subject", "html_template", "text_template"}:
            validate_templates(
                template.html_template,
                template.text_template,
                sample_variables(template.variable_names),
                subject=template.subject,
            )
        if "name" in fields and body.name is not None:
            template.name = body.name.strip()
        if "is_active" in fields and body.is_active is not None:
            template.is_active = body.is_active
    logger.info("Email template updated", extra={"template_id": str(template_id)})
    return template


def delete_template(db: Session, template_id: UUID) -> None:
    """Soft delete; the row stays but disappears from every lookup."""
    with transaction(db, "delete email template"):
        template = get_template(db, template_id)
        template.deleted_at = datetime.now(UTC)
    logger.info("Email template deleted", extra={"template_id": str(template_id)})


def preview_template(
    db: Session, template_id: UUID, variables: Mapping[str, str]
) -> RenderedTemplate:
    template = get_template(db, template_id)
    return render_content(TemplateContent.from_model(template), variables)


def send_test_email(
    db: Session,
    template_id: UUID,
    to_email: str,
    variables: Mapping[str, str],
    sender: "EmailSender",
) -> None:
    rendered = preview_template(db, template_id, variables)
    sender.send(to_email, rendered)


def get_template_variables(db: Session, template_id: UUID) -> list[dict]:
    return list(get_template(db, template_id).variables or [])


# --- built-in copies ---

PASSWORD_RESET_VARIABLES = [
    {"name": "ResetURL", "description": "Link to the password reset page, including the token"},
    {"name": "CompanyName", "description": "Company name shown in the email"},
]

_PASSWORD_RESET_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Password Reset</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333333; background-color: #f5f5f5; margin: 0; padding: 0; }
        .container { max-width: 600px; margin: 20px auto; background: #ffffff; border-radius: 8px; overflow: hidden; }
        .header { background: #4f46e5; color: white; padding: 32px 24px; text-align: center; }
        .content { padding: 32px 24px; }
        .button { display: inline-block; background: #4f46e5; color: #ffffff; padding: 12px 28px; border-radius: 6px; text-decoration: none; font-weight: 600; }
        .notice { background: #fff8e1; border-left: 4px solid #f59e0b; padding: 12px 16px; margin: 24px 0; }
        .footer { background: #f8f9fa; padding: 16px 24px; text-align: center; font-size: 14px; color: #6c757d; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{ CompanyName }}</h1>
        </div>
        <div class="content">
            <h2>Reset Your Password</h2>
            <p>You requested a password reset for your account. Click the button below to create a new password:</p>
            <a href="{{ ResetURL }}" class="button">Reset Password</a>
            <div class="notice">
                <strong>Security notice:</strong> This link will expire in 15 minutes. If you didn't request this password reset, please ignore this email.
            </div>
            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p style="word-break: break-all;">{{ ResetURL }}</p>
        </div>
        <div class="footer">
            <p>This email was sent from {{ CompanyName }}. If you have any questions, please contact our support team.</p>
        </div>
    </div>
</body>
</html>
"""

_PASSWORD_RESET_TEXT = """{{ CompanyName }} - Password Reset

You requested a password reset for your account.

Please click or copy the following link to reset your password:
{{ ResetURL }}

SECURITY NOTICE: This link will expire in 15 minutes.
If you didn't request this password reset, please ignore this email.

If you have any questions, please contact our support team.

---
{{ CompanyName }}
"""

BUILTIN_TEMPLATES: dict[str, TemplateContent] = {
    PASSWORD_RESET_TEMPLATE: TemplateContent(
        name=PASSWORD_RESET_TEMPLATE,
        subject="Reset Your Password",
        html_template=_PASSWORD_RESET_HTML,
        text_template=_PASSWORD_RESET_TEXT,
    ),
}
