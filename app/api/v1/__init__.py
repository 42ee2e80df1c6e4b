"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import auth, email_templates, health, permissions, profile, roles, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(profile.router, prefix="/protected", tags=["profile"])
router.include_router(users.router, prefix="/admin", tags=["admin: users"])
router.include_router(roles.router, prefix="/admin", tags=["admin: roles"])
router.include_router(permissions.router, prefix="/admin", tags=["admin: permissions"])
router.include_router(email_templates.router, prefix="/admin", tags=["admin: email templates"])
