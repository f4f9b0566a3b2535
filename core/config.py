"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator, model_validator


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./eventhost.db"
    echo: bool = False


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="EventHost Live", env=["PROJECT_NAME", "APP_NAME"])
    VERSION: str = Field(default="1.0.0", env=["VERSION", "APP_VERSION"])
    DEBUG: bool = Field(default=True, env="DEBUG")
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # 存储后端：sql（持久化）| memory（进程内、非持久，降级/离线模式）
    STORE_BACKEND: str = Field(default="sql", env="STORE_BACKEND")

    # 安全配置：仅校验外部认证服务签发的 JWT
    SECRET_KEY: str | None = Field(
        default=None,
        env=["SECRET_KEY", "JWT_SECRET_KEY"],
        description="JWT verification key shared with the auth service",
    )
    ALGORITHM: str = Field(default="HS256", env=["ALGORITHM", "JWT_ALGORITHM"])

    # CORS配置
    CORS_ORIGINS: list = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        env="CORS_ORIGINS"
    )

    # 列表/快照数量
    ANNOUNCEMENT_LIST_LIMIT: int = Field(default=200, env="ANNOUNCEMENT_LIST_LIMIT")
    POLL_LIST_LIMIT: int = Field(default=50, env="POLL_LIST_LIMIT")

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True, env="LOG_REQUEST_BODY_ENABLE_BY_DEFAULT")
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048, env="LOG_REQUEST_BODY_MAX_BYTES")

    # Realtime/WebSocket 配置
    REALTIME_WS_SEND_QUEUE_MAX: int = Field(default=100, env="REALTIME_WS_SEND_QUEUE_MAX")
    REALTIME_WS_SEND_OVERFLOW_POLICY: str = Field(
        default="drop_oldest", env="REALTIME_WS_SEND_OVERFLOW_POLICY",
        description="队列溢出策略: drop_oldest | drop_new | disconnect"
    )
    REALTIME_WS_IDLE_PING_INTERVAL_S: float = Field(default=30.0, env="REALTIME_WS_IDLE_PING_INTERVAL_S")
    REALTIME_WS_PONG_GRACE_S: float = Field(default=10.0, env="REALTIME_WS_PONG_GRACE_S")
    REALTIME_WS_MISSED_PING_LIMIT: int = Field(default=2, env="REALTIME_WS_MISSED_PING_LIMIT")

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_secret_key(self):
        if not self.SECRET_KEY:
            raise ValueError(
                "SECRET_KEY is not configured. Set SECRET_KEY (or JWT_SECRET_KEY) in the environment or .env"
            )
        return self

    @field_validator("STORE_BACKEND")
    @classmethod
    def _validate_store_backend(cls, v: str) -> str:
        v = (v or "sql").strip().lower()
        if v not in {"sql", "memory"}:
            raise ValueError(f"Unsupported STORE_BACKEND: {v}")
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except Exception:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
