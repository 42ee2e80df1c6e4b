"""Authenticated user's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_credential_rules, get_current_user
from app.core.database import get_db
from app.core.validation import CredentialRules
from app.schemas.auth import CurrentUser, ProfileResponse, ProfileUpdateRequest
from app.services import users as user_service

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    return user_service.get_profile(db, current_user.id)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    rules: Annotated[CredentialRules, Depends(get_credential_rules)],
) -> ProfileResponse:
    """Update name, phone or company. Email and roles cannot be changed here."""
    return user_service.update_user(db, current_user.id, body.to_updates(), rules)
