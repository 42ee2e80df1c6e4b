"""
Authentication flows: register, login, forgot-password, reset-password.

Tokens carry identity only; roles in responses are resolved from the database.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import (
    AppError,
    InternalError,
    UnauthorizedError,
    ValidationFailedError,
)
from app.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    reset_token_expiry,
    verify_password,
)
from app.core.validation import CredentialRules
from app.models import PasswordResetToken, User
from app.schemas.auth import AuthResponse, RegisterRequest, UserResponse
from app.services.guards import DEFAULT_ROLE
from app.services.notifications import EmailDeliveryError, EmailSender, send_password_reset
from app.services.resolver import get_roles_for_user, stage_role_grants
from app.services.templates import ChainedTemplateSource
from app.services.users import EMAIL_CONFLICT, build_user, get_user_by_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_RESET_TOKEN = "Invalid or expired reset token"
FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)
RESET_SUCCESS_MESSAGE = "Password has been reset successfully."


def _auth_response(db: Session, user: User) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id, user.email),
        token_type="bearer",
        user=UserResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            roles=get_roles_for_user(db, user.id),
        ),
    )


def register(db: Session, body: RegisterRequest, rules: CredentialRules) -> AuthResponse:
    """
    Create an account holding the default role and return a token for it.

    The user row and its grant commit together; if the default role cannot be
    granted nothing is persisted.
    """
    user = build_user(body.email, body.password, body.name, rules, phone=body.phone)
    with transaction(db, "create user", conflict_message=EMAIL_CONFLICT):
        db.add(user)
        db.flush()
        try:
            stage_role_grants(db, user.id, [DEFAULT_ROLE])
        except ValidationFailedError as e:
            logger.error("Default role missing from catalog", extra={"role": DEFAULT_ROLE})
            raise InternalError("Failed to assign default role") from e
    logger.info("User registered", extra={"user_id": str(user.id)})
    return _auth_response(db, user)


def login(db: Session, email: str, password: str) -> AuthResponse:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    logger.info("User logged in", extra={"user_id": str(user.id)})
    return _auth_response(db, user)


def forgot_password(
    db: Session,
    email: str,
    sender: EmailSender,
    source: ChainedTemplateSource,
) -> str:
    """
    Issue a reset token and email it. Unknown emails get the same answer as known
    ones. Issuing a token invalidates the user's earlier ones.
    """
    user = get_user_by_email(db, email)
    if user is None:
        return FORGOT_PASSWORD_MESSAGE

    raw_token, token_hash = generate_reset_token()
    with transaction(db, "create reset token"):
        db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id
        ).delete()
        db.add(
            PasswordResetToken(
                user_id=user.id,
                token=token_hash,
                expires_at=reset_token_expiry(),
            )
        )

    try:
        send_password_reset(sender, source, user.email, raw_token)
    except (AppError, EmailDeliveryError) as e:
        logger.exception("Failed to send password reset email", extra={"user_id": str(user.id)})
        raise InternalError("Failed to send reset email") from e
    return FORGOT_PASSWORD_MESSAGE


def reset_password(
    db: Session,
    raw_token: str,
    new_password: str,
    rules: CredentialRules,
) -> str:
    """Consume a reset token: set the new password and delete all of the user's tokens."""
    rules.check_password(new_password)
    token = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.token == hash_reset_token(raw_token))
        .first()
    )
    if token is None:
        raise UnauthorizedError(INVALID_RESET_TOKEN)
    if token.is_expired(datetime.now(UTC)):
        with transaction(db, "delete expired reset token"):
            db.delete(token)
        raise UnauthorizedError(INVALID_RESET_TOKEN)

    with transaction(db, "reset password"):
        user = (
            db.query(User)
            .filter(User.id == token.user_id, User.deleted_at.is_(None))
            .first()
        )
        if user is None:
            raise UnauthorizedError(INVALID_RESET_TOKEN)
        user.password_hash = hash_password(new_password)
        db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id
        ).delete()
    logger.info("Password reset", extra={"user_id": str(user.id)})
    return RESET_SUCCESS_MESSAGE
