"""
API依赖项 - 认证与应用服务注入

服务实例在 lifespan 中创建并挂在 ``app.state`` 上，HTTP 与 WebSocket 共用同一组实例。
"""
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from application.services.announcement_service import AnnouncementService
from application.services.poll_service import PollService
from application.services.question_service import QuestionService
from application.services.token_service import TokenService
from core.exceptions import UnauthorizedException
from domain.member import Identity

# HTTP Bearer for direct API calls; tokens are issued by the external auth service
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


def app_service(app: Any, name: str):
    svc = getattr(app.state, name, None)
    if svc is None:
        raise RuntimeError(f"{name} not initialized. Ensure lifespan sets app.state.{name}.")
    return svc


async def get_token(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> str:
    """从Bearer token中提取token"""
    if bearer_token and bearer_token.credentials:
        return bearer_token.credentials
    raise UnauthorizedException("Missing credentials")


async def get_token_service(request: Request) -> TokenService:
    return app_service(request.app, "token_service")


async def get_announcement_service(request: Request) -> AnnouncementService:
    return app_service(request.app, "announcement_service")


async def get_question_service(request: Request) -> QuestionService:
    return app_service(request.app, "question_service")


async def get_poll_service(request: Request) -> PollService:
    return app_service(request.app, "poll_service")


async def get_current_identity(
    token: str = Depends(get_token),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """获取当前已验证的调用者身份"""
    return tokens.verify_access_token(token)


async def get_optional_identity(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[Identity]:
    """读接口允许匿名；携带令牌时必须有效"""
    if not bearer_token or not bearer_token.credentials:
        return None
    return tokens.verify_access_token(bearer_token.credentials)
