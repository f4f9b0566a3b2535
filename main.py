"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import announcements as announcement_routes
from api.routes import polls as poll_routes
from api.routes import questions as question_routes
from api.routes import reminders as reminder_routes
from api.routes import ws as ws_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.services.announcement_service import AnnouncementService
from application.services.poll_service import PollService
from application.services.question_service import QuestionService
from application.services.realtime_service import RealtimeService
from application.services.token_service import TokenService
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.database import create_tables, engine
from infrastructure.memory_store import memory_uow_factory
from infrastructure.realtime.connection_manager import ConnectionManager
from infrastructure.unit_of_work import sqlalchemy_uow_factory


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


def init_services(app: FastAPI, uow_factory, hub: ConnectionManager | None = None) -> None:
    """Wire topic services, the hub and the lifecycle manager onto ``app.state``."""
    hub = hub or ConnectionManager()
    announcements = AnnouncementService(uow_factory=uow_factory, hub=hub)
    questions = QuestionService(uow_factory=uow_factory, hub=hub)
    polls = PollService(uow_factory=uow_factory, hub=hub)
    app.state.uow_factory = uow_factory
    app.state.realtime_connections = hub
    app.state.token_service = TokenService()
    app.state.announcement_service = announcements
    app.state.question_service = questions
    app.state.poll_service = polls
    app.state.realtime_service = RealtimeService(
        connections=hub,
        announcements=announcements,
        questions=questions,
        polls=polls,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    if settings.STORE_BACKEND == "memory":
        uow_factory = memory_uow_factory()
        logger.warning(
            "store_backend_memory",
            message="In-memory store selected; data is lost on restart",
        )
    else:
        uow_factory = sqlalchemy_uow_factory()
        # 启动时创建数据库表（仅开发环境）。生产应使用 Alembic 迁移
        if settings.DEBUG:
            await create_tables()
            logger.info("database_initialized", message="Database tables created (development)")
        else:
            logger.info(
                "database_migrations_required",
                message="No auto-create in production, use Alembic migrations (alembic upgrade head)"
            )

    init_services(app, uow_factory)
    logger.info("realtime_initialized", backend=settings.STORE_BACKEND)

    yield
    # 关闭时的清理工作
    await app.state.realtime_connections.aclose()
    if settings.STORE_BACKEND == "sql":
        await engine.dispose()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="活动现场实时通信：公告、问答与投票",
)

# 添加中间件（注意顺序：从下往上执行）
# 1. Request ID中间件（最先执行，为后续中间件提供request_id）
app.add_middleware(RequestIDMiddleware)

# 2. 日志中间件（依赖request_id）
app.add_middleware(LoggingMiddleware)

# 3. CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(announcement_routes.router, prefix="/api/v1")
app.include_router(question_routes.router, prefix="/api/v1")
app.include_router(poll_routes.router, prefix="/api/v1")
app.include_router(reminder_routes.router, prefix="/api/v1")
app.include_router(ws_routes.router, prefix="/api/v1")


# 根路径
@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        },
    )


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(
        data={
            "status": "healthy",
            "backend": settings.STORE_BACKEND,
            "connections": len(app.state.realtime_connections),
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
