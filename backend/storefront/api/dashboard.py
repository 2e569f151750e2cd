"""
Admin dashboard routes, mounted under ``/dashboard``.
"""

from fastapi import APIRouter, Depends

from ..context import AppContext
from .deps import get_context, require_admin

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(require_admin)])


@router.get("/stats")
async def stats(context: AppContext = Depends(get_context)):
    return {"success": True, "stats": await context.dashboard.stats()}


@router.get("/charts")
async def charts(context: AppContext = Depends(get_context)):
    return {"success": True, "charts": await context.dashboard.charts()}
