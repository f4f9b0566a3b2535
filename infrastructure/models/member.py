"""
成员目录模型 - 外部认证身份的展示字段快照
"""
from sqlalchemy import Column, DateTime, String

from .base import Base, utcnow


class MemberModel(Base):
    __tablename__ = "members"

    id = Column(String(64), primary_key=True, comment="外部认证服务的用户ID")
    name = Column(String(200), nullable=False, default="", comment="展示名")
    role = Column(String(20), nullable=False, comment="participant/organizer/judge")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<MemberModel(id='{self.id}', role='{self.role}')>"
