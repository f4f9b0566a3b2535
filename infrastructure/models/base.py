"""
数据库模型基类（SQLAlchemy 2.0 风格）
"""
from datetime import datetime, timezone

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# 约束命名规范，保证 Alembic 生成的约束名稳定（uq_poll_votes_poll_id_user_id 等）
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# 元数据对象用于数据库迁移
metadata = Base.metadata


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite 返回无时区时间，统一视为 UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# 主键列为 Integer；PostgreSQL 上限为 32 位，超出范围的 ID 一定不存在
MAX_ROW_ID = 2**31 - 1


def storable_id(value: int) -> bool:
    return 0 < value <= MAX_ROW_ID
