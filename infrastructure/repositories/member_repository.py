"""
成员目录仓储实现 - 使用数据库原生 upsert
"""
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from domain.member import Identity, MemberRepository, Role
from infrastructure.models.member import MemberModel
from infrastructure.models.base import utcnow


class SQLAlchemyMemberRepository(MemberRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: MemberModel) -> Identity:
        return Identity(id=model.id, name=model.name, role=Role(model.role))

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(MemberModel)
        if dialect == "sqlite":
            return sqlite.insert(MemberModel)
        raise RuntimeError(f"member upsert not supported for dialect: {dialect}")

    async def upsert(self, identity: Identity) -> Identity:
        values = {
            "id": identity.id,
            "name": identity.name,
            "role": identity.role.value,
            "updated_at": utcnow(),
        }
        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[MemberModel.id],
            set_={"name": values["name"], "role": values["role"], "updated_at": values["updated_at"]},
        )
        await self.session.execute(stmt)
        return identity

    async def get_many(self, member_ids: Iterable[str]) -> dict[str, Identity]:
        ids = {m for m in member_ids if m}
        if not ids:
            return {}
        result = await self.session.execute(select(MemberModel).where(MemberModel.id.in_(ids)))
        return {m.id: self._to_entity(m) for m in result.scalars().all()}
