"""ORM model for admin-editable notification templates."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from app.models.base import Base, utcnow


class EmailTemplate(Base):
    """
    Named subject/HTML/text triple rendered with Jinja2.

    variables is a list of {"name", "description"} objects; it documents the
    template for admins and is not checked against the template bodies.
    """

    __tablename__ = "email_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True, index=True)
    subject = Column(String(500), nullable=False)
    html_template = Column(Text, nullable=False)
    text_template = Column(Text, nullable=False)
    variables = Column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def variable_names(self) -> list[str]:
        return [v.get("name", "") for v in (self.variables or [])]
