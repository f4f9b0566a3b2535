"""
令牌服务 - 校验外部认证服务签发的访问令牌

令牌由外部认证服务签发，本服务只负责验证签名与过期时间，并把声明
映射为已验证的 ``Identity``。通过 ``joinRole`` 自报的连接角色只用于路由，
从不作为权限依据。
"""
from typing import Optional

import jwt

from core.config import settings
from core.exceptions import TokenExpiredException, UnauthorizedException
from core.logging_config import get_logger
from domain.member import Identity, Role


logger = get_logger(__name__)


class TokenService:
    """
    访问令牌校验

    支持的声明：
    - ``sub`` 或 ``id``：用户标识（统一转为字符串）
    - ``role``：participant / organizer / judge
    - ``name``：展示名称（缺省时退回用户标识）
    """

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.ALGORITHM

    def decode(self, token: str) -> dict:
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.InvalidTokenError as e:
            logger.warning("invalid_access_token", error=str(e))
            raise UnauthorizedException("Invalid access token")

    def verify_access_token(self, token: str) -> Identity:
        """Verify ``token`` and return the caller's identity.

        - Expired token: raise TokenExpiredException
        - Invalid signature, unknown role or missing subject: raise UnauthorizedException
        """
        payload = self.decode(token)
        if payload.get("type") not in (None, "access"):
            raise UnauthorizedException("Wrong token type")

        user_id = payload.get("sub", payload.get("id"))
        if user_id is None or str(user_id).strip() == "":
            raise UnauthorizedException("Token is missing a subject")

        try:
            role = Role(str(payload.get("role") or "").lower())
        except ValueError:
            logger.warning("token_role_unknown", user_id=str(user_id), role=payload.get("role"))
            raise UnauthorizedException("Token carries an unknown role")

        name = payload.get("name") or payload.get("username") or str(user_id)
        return Identity(id=str(user_id), name=str(name), role=role)
