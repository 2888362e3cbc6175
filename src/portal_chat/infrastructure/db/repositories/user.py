from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from portal_chat.domain.entities.user import User
from portal_chat.infrastructure.db.mappers import user as mapper
from portal_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        result = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(result) if result else None


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def ensure(self, user: User) -> User:
        stmt = (
            pg_insert(UserModel)
            .values(**mapper.entity_to_values(user))
            .on_conflict_do_nothing(index_elements=[UserModel.id])
        )
        await self._session.execute(stmt)
        return await self._fetch(user.id)

    async def upsert(self, user: User) -> User:
        values = mapper.entity_to_values(user)
        stmt = (
            pg_insert(UserModel)
            .values(**values)
            .on_conflict_do_update(
                index_elements=[UserModel.id],
                set_={"role": values["role"], "name": values["name"], "email": values["email"]},
            )
        )
        await self._session.execute(stmt)
        return await self._fetch(user.id)

    async def _fetch(self, user_id: str) -> User:
        result = await self._session.execute(select(UserModel).where(UserModel.id == user_id))
        return mapper.model_to_entity(result.scalar_one())
