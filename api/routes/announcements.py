"""
公告API路由 - FastAPI表现层
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from application.dto import AnnouncementDTO, TextCreateDTO
from application.services.announcement_service import AnnouncementService
from api.dependencies import get_announcement_service, get_current_identity
from core.response import Response as ApiResponse, success_response
from domain.member import Identity

router = APIRouter(
    prefix="/announcements",
    tags=["公告"]
)


@router.post("", summary="发布公告", response_model=ApiResponse[AnnouncementDTO])
async def create_announcement(
    payload: TextCreateDTO,
    identity: Identity = Depends(get_current_identity),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    发布公告（仅组织者），成功后广播 ``announcementCreated``

    - **text**: 公告内容，去除首尾空白后不能为空
    """
    announcement = await service.create(identity, payload.text)
    return success_response(data=announcement, message="Announcement created")


@router.get("", summary="公告列表", response_model=ApiResponse[list[AnnouncementDTO]])
async def list_announcements(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="最多返回条数"),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """最新公告，按时间倒序"""
    return success_response(data=await service.list(limit))
