"""
问答API路由 - FastAPI表现层
"""
from fastapi import APIRouter, Depends, Path

from application.dto import QuestionDTO, TextCreateDTO
from application.services.question_service import QuestionService
from api.dependencies import get_current_identity, get_question_service
from core.response import Response as ApiResponse, success_response
from domain.member import Identity

router = APIRouter(
    prefix="/questions",
    tags=["问答"]
)


@router.post("", summary="提问", response_model=ApiResponse[QuestionDTO])
async def ask_question(
    payload: TextCreateDTO,
    identity: Identity = Depends(get_current_identity),
    service: QuestionService = Depends(get_question_service),
):
    """任何已认证用户都可以提问，成功后广播 ``questionCreated``"""
    question = await service.ask(identity, payload.text)
    return success_response(data=question, message="Question created")


@router.post("/{question_id}/answers", summary="回答问题", response_model=ApiResponse[QuestionDTO])
async def answer_question(
    payload: TextCreateDTO,
    question_id: int = Path(..., description="问题ID"),
    identity: Identity = Depends(get_current_identity),
    service: QuestionService = Depends(get_question_service),
):
    """
    回答问题（仅组织者）

    返回并广播完整的问题记录（``answerCreated``）。
    """
    question = await service.answer(identity, question_id, payload.text)
    return success_response(data=question, message="Answer created")


@router.get("", summary="问题列表", response_model=ApiResponse[list[QuestionDTO]])
async def list_questions(service: QuestionService = Depends(get_question_service)):
    return success_response(data=await service.list())
