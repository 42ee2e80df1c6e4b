"""Admin email template endpoints: CRUD, preview and test send."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.core.database import get_db
from app.core.errors import InternalError
from app.schemas.auth import CurrentUser
from app.schemas.email_template import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplatesListResponse,
    EmailTemplateSummary,
    EmailTemplateUpdate,
    SendTestEmailRequest,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
    TemplateVariable,
    TemplateVariablesResponse,
)
from app.schemas.rbac import MessageResponse
from app.services import templates
from app.services.notifications import EmailDeliveryError, EmailSender, get_email_sender

router = APIRouter()


@router.get("/email-templates", response_model=EmailTemplatesListResponse)
def list_templates(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EmailTemplatesListResponse:
    items = [EmailTemplateSummary.model_validate(t) for t in templates.list_templates(db)]
    return EmailTemplatesListResponse(templates=items, total=len(items))


@router.post("/email-templates", response_model=EmailTemplateResponse, status_code=201)
def create_template(
    body: EmailTemplateCreate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EmailTemplateResponse:
    """Create a template; bodies must render with every declared variable set."""
    return EmailTemplateResponse.model_validate(templates.create_template(db, body))


@router.get("/email-templates/{template_id}", response_model=EmailTemplateResponse)
def get_template(
    template_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EmailTemplateResponse:
    return EmailTemplateResponse.model_validate(templates.get_template(db, template_id))


@router.put("/email-templates/{template_id}", response_model=EmailTemplateResponse)
def update_template(
    template_id: UUID,
    body: EmailTemplateUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EmailTemplateResponse:
    return EmailTemplateResponse.model_validate(
        templates.update_template(db, template_id, body)
    )


@router.delete("/email-templates/{template_id}", response_model=MessageResponse)
def delete_template(
    template_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    templates.delete_template(db, template_id)
    return MessageResponse(message="Template deleted successfully")


@router.post("/email-templates/{template_id}/preview", response_model=TemplatePreviewResponse)
def preview_template(
    template_id: UUID,
    body: TemplatePreviewRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> TemplatePreviewResponse:
    rendered = templates.preview_template(db, template_id, body.variables)
    return TemplatePreviewResponse(
        subject=rendered.subject,
        html_content=rendered.html_content,
        text_content=rendered.text_content,
    )


@router.post("/email-templates/{template_id}/test", response_model=MessageResponse)
def send_test_email(
    template_id: UUID,
    body: SendTestEmailRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    sender: Annotated[EmailSender, Depends(get_email_sender)],
) -> MessageResponse:
    try:
        templates.send_test_email(db, template_id, body.email, body.variables, sender)
    except EmailDeliveryError as e:
        raise InternalError("Failed to send test email") from e
    return MessageResponse(message="Test email sent successfully")


@router.get(
    "/email-templates/{template_id}/variables",
    response_model=TemplateVariablesResponse,
)
def get_template_variables(
    template_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> TemplateVariablesResponse:
    variables = templates.get_template_variables(db, template_id)
    return TemplateVariablesResponse(
        variables=[TemplateVariable.model_validate(v) for v in variables]
    )
