"""
提醒API路由 - 组织者向某个角色频道推送一次性提醒（不持久化）
"""
from fastapi import APIRouter, Depends

from application.dto import ReminderCreateDTO, ReminderDTO
from application.services.announcement_service import AnnouncementService
from api.dependencies import get_announcement_service, get_current_identity
from core.response import Response as ApiResponse, success_response
from domain.member import Identity

router = APIRouter(
    prefix="/reminders",
    tags=["提醒"]
)


@router.post("", summary="发送提醒", response_model=ApiResponse[ReminderDTO])
async def send_reminder(
    payload: ReminderCreateDTO,
    identity: Identity = Depends(get_current_identity),
    service: AnnouncementService = Depends(get_announcement_service),
):
    reminder = await service.send_reminder(identity, payload.role, payload.message)
    return success_response(data=reminder, message="Reminder sent")
