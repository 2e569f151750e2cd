"""
User lookups for authentication and admin authorization.

The acting user is identified by the ``id`` query parameter.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..database.models import User
from ..errors import AuthError, ForbiddenError
from ..models.enums import UserRole

logger = logging.getLogger(__name__)


def authenticate_user(session: Session, user_id: Optional[str]) -> User:
    """
    Resolve the acting user.

    Raises:
        AuthError: If no id was supplied or it matches no user
    """
    if not user_id:
        raise AuthError("Please log in first")
    user = session.get(User, user_id)
    if user is None:
        raise AuthError("Invalid ID provided")
    return user


def authorize_admin(session: Session, user_id: Optional[str]) -> User:
    """
    Resolve the acting user and require the admin role.

    Raises:
        AuthError: 401 for a missing or unknown id
        ForbiddenError: 403 for a user without the admin role
    """
    user = authenticate_user(session, user_id)
    if user.role != UserRole.ADMIN.value:
        logger.info(f"User {user.id} denied admin access")
        raise ForbiddenError("You do not have admin privileges")
    return user
