from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_chat.domain.entities.user import User
from portal_chat.infrastructure.db.mappers import user as user_mapper
from portal_chat.infrastructure.db.models.participant import ParticipantModel
from portal_chat.infrastructure.db.models.user import UserModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        stmt = (
            select(ParticipantModel.user_id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_participants(self, conversation_id: str) -> list[User]:
        stmt = (
            select(UserModel)
            .join(ParticipantModel, ParticipantModel.user_id == UserModel.id)
            .where(ParticipantModel.conversation_id == conversation_id)
            .order_by(ParticipantModel.joined_at, UserModel.id)
        )
        result = await self._session.execute(stmt)
        return [user_mapper.model_to_entity(m) for m in result.scalars().all()]
