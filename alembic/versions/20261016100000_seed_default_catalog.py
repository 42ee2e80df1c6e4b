"""Seed default roles, permissions, role bundles and the password_reset template.

Revision ID: 20261016100000
Revises: 20261016000000
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.orm import Session

from app.services.seed import DEFAULT_PERMISSIONS, DEFAULT_ROLES, seed_catalog
from app.services.templates import PASSWORD_RESET_TEMPLATE

revision: str = "20261016100000"
down_revision: Union[str, None] = "20261016000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Joins the migration's transaction; seed_catalog's commit does not end it.
    session = Session(bind=op.get_bind())
    seed_catalog(session)


def downgrade() -> None:
    # Links and grants go with their roles and permissions (ON DELETE CASCADE).
    templates = sa.table("email_templates", sa.column("name"))
    roles = sa.table("roles", sa.column("name"))
    permissions = sa.table("permissions", sa.column("name"))
    op.execute(templates.delete().where(templates.c.name == PASSWORD_RESET_TEMPLATE))
    op.execute(roles.delete().where(roles.c.name.in_(list(DEFAULT_ROLES))))
    op.execute(permissions.delete().where(permissions.c.name.in_(list(DEFAULT_PERMISSIONS))))
