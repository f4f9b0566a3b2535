"""
投票API路由 - FastAPI表现层
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path

from application.dto import PollCreateDTO, PollSummaryDTO, PollViewDTO, VoteCreateDTO, VoteResultDTO
from application.services.poll_service import PollService
from api.dependencies import get_current_identity, get_optional_identity, get_poll_service
from core.response import Response as ApiResponse, success_response
from domain.member import Identity

router = APIRouter(
    prefix="/polls",
    tags=["投票"]
)


@router.post("", summary="创建投票", response_model=ApiResponse[PollSummaryDTO])
async def create_poll(
    payload: PollCreateDTO,
    identity: Identity = Depends(get_current_identity),
    service: PollService = Depends(get_poll_service),
):
    """
    创建投票（仅组织者）

    - **question**: 问题，去除首尾空白后不能为空
    - **options**: 选项列表，空白选项会被丢弃，至少保留两个
    """
    poll = await service.create(identity, payload.question, payload.options)
    return success_response(data=poll, message="Poll created")


@router.post("/{poll_id}/votes", summary="投票", response_model=ApiResponse[VoteResultDTO])
async def vote_poll(
    payload: VoteCreateDTO,
    poll_id: int = Path(..., description="投票ID"),
    identity: Identity = Depends(get_current_identity),
    service: PollService = Depends(get_poll_service),
):
    """每个用户每个投票只能投一次；重复投票返回 409 并附带之前的选择"""
    result = await service.vote(identity, poll_id, payload.option_index)
    return success_response(data=result, message="Vote recorded")


@router.post("/{poll_id}/close", summary="关闭投票", response_model=ApiResponse[PollSummaryDTO])
async def close_poll(
    poll_id: int = Path(..., description="投票ID"),
    identity: Identity = Depends(get_current_identity),
    service: PollService = Depends(get_poll_service),
):
    """关闭投票（仅组织者）；已关闭的投票再次关闭不报错"""
    poll = await service.close(identity, poll_id)
    return success_response(data=poll, message="Poll closed")


@router.get("", summary="投票列表", response_model=ApiResponse[list[PollViewDTO]])
async def list_polls(
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: PollService = Depends(get_poll_service),
):
    """最近的投票；带令牌时每项包含调用者自己的 ``myVote``"""
    return success_response(data=await service.list(identity))
