"""Shared route dependencies."""
import secrets
from typing import Optional

from fastapi import Header

from ..core.config import app_settings
from ..core.errors import AuthorizationError
from ..core.logging import get_logger

logger = get_logger(__name__)


async def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    """Guard admin routes when an admin key is configured."""
    expected = app_settings.admin_api_key
    if not expected:
        return
    if not x_admin_key or not secrets.compare_digest(x_admin_key, expected):
        logger.warning("admin_key_rejected", provided=bool(x_admin_key))
        raise AuthorizationError(message="Admin key missing or invalid")
