"""
Request dependencies: the application context and the acting user.

The acting user's id travels in the ``id`` query parameter.
"""

from typing import List, Optional

from fastapi import Depends, Query, Request, UploadFile

from ..context import AppContext
from ..database.models import User
from ..services.auth import authorize_admin
from ..services.images import ImageUpload


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def acting_user_id(user_id: Optional[str] = Query(None, alias="id")) -> Optional[str]:
    return user_id


def require_admin(
    user_id: Optional[str] = Depends(acting_user_id),
    context: AppContext = Depends(get_context),
) -> User:
    """Reject the request unless the acting user is an admin (401/403)."""
    with context.db.get_session_context() as session:
        return authorize_admin(session, user_id)


async def read_uploads(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    uploads: List[ImageUpload] = []
    for upload in files or []:
        uploads.append(ImageUpload(
            filename=upload.filename or "photo",
            content=await upload.read(),
            content_type=upload.content_type,
        ))
    return uploads
