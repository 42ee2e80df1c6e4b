"""Auth routes (register, login, password reset) and the auth/authorization dependencies."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.security import decode_access_token
from app.core.validation import CredentialRules
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.schemas.rbac import MessageResponse
from app.services import auth as auth_service
from app.services.guards import ADMIN_ROLE
from app.services.notifications import EmailSender, get_email_sender
from app.services.resolver import get_roles_for_user, has_permission
from app.services.templates import default_template_source

router = APIRouter()
security = HTTPBearer(auto_error=False)

NO_ROLES = "Access denied: no roles found"
INSUFFICIENT = "Access denied: insufficient permissions"


def get_credential_rules() -> CredentialRules:
    """Dependency: credential and phone rules built from settings."""
    return CredentialRules.from_settings(get_settings())


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer JWT and return the current user.

    Roles come from the database on every request, never from the token, so a
    grant or revocation applies to tokens already issued. Raises 401 if the token
    is missing or invalid or the user no longer exists.
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    claims = decode_access_token(credentials.credentials)
    user = (
        db.query(User)
        .filter(User.id == claims.user_id, User.deleted_at.is_(None))
        .first()
    )
    if user is None:
        raise UnauthorizedError("User not found")
    return CurrentUser(id=user.id, email=user.email, roles=get_roles_for_user(db, user.id))


def require_role(role: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the current user must hold role."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not current_user.roles:
            raise ForbiddenError(NO_ROLES)
        if not current_user.has_role(role):
            raise ForbiddenError(INSUFFICIENT)
        return current_user

    return dependency


def require_any_role(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the current user must hold at least one of roles."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not current_user.roles:
            raise ForbiddenError(NO_ROLES)
        if not any(current_user.has_role(r) for r in roles):
            raise ForbiddenError(INSUFFICIENT)
        return current_user

    return dependency


def require_all_roles(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the current user must hold every one of roles."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not current_user.roles:
            raise ForbiddenError(NO_ROLES)
        if not all(current_user.has_role(r) for r in roles):
            raise ForbiddenError(INSUFFICIENT)
        return current_user

    return dependency


def require_permission(permission: str) -> Callable[..., CurrentUser]:
    """Dependency factory: some role of the current user must grant permission."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
    ) -> CurrentUser:
        if not has_permission(db, current_user.id, permission):
            raise ForbiddenError(INSUFFICIENT)
        return current_user

    return dependency


require_admin = require_role(ADMIN_ROLE)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    rules: Annotated[CredentialRules, Depends(get_credential_rules)],
) -> AuthResponse:
    """Create an account with the default 'user' role and return a token for it."""
    return auth_service.register(db, body, rules)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    return auth_service.login(db, body.email, body.password)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    sender: Annotated[EmailSender, Depends(get_email_sender)],
) -> MessageResponse:
    """Email a reset link. The answer is the same whether or not the account exists."""
    message = auth_service.forgot_password(
        db, body.email, sender, default_template_source(db)
    )
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    rules: Annotated[CredentialRules, Depends(get_credential_rules)],
) -> MessageResponse:
    message = auth_service.reset_password(db, body.token, body.password, rules)
    return MessageResponse(message=message)
