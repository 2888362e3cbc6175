from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal_chat.application.dto.conversation import (
    ConversationUnreadSnapshot,
    UnreadMessageRef,
)
from portal_chat.domain.entities.conversation import Conversation
from portal_chat.domain.entities.user import User
from portal_chat.infrastructure.db.mappers import conversation as mapper
from portal_chat.infrastructure.db.mappers import user as user_mapper
from portal_chat.infrastructure.db.models.conversation import ConversationModel
from portal_chat.infrastructure.db.models.message import MessageModel
from portal_chat.infrastructure.db.models.participant import ParticipantModel
from portal_chat.infrastructure.db.models.user import UserModel


def _conversation_ids_of(user_id: str):
    return select(ParticipantModel.conversation_id).where(ParticipantModel.user_id == user_id)


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def find_between(self, user_a: str, user_b: str) -> Conversation | None:
        stmt = (
            select(ConversationModel)
            .where(
                ConversationModel.id.in_(_conversation_ids_of(user_a)),
                ConversationModel.id.in_(_conversation_ids_of(user_b)),
            )
            .order_by(ConversationModel.created_at.asc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id.in_(_conversation_ids_of(user_id)))
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_unread_snapshots(self, user_id: str) -> list[ConversationUnreadSnapshot]:
        ids_result = await self._session.execute(_conversation_ids_of(user_id))
        conversation_ids = list(ids_result.scalars().all())
        if not conversation_ids:
            return []

        participants: dict[str, list[User]] = defaultdict(list)
        rows = await self._session.execute(
            select(ParticipantModel.conversation_id, UserModel)
            .join(UserModel, UserModel.id == ParticipantModel.user_id)
            .where(ParticipantModel.conversation_id.in_(conversation_ids))
        )
        for conversation_id, user_model in rows.all():
            participants[conversation_id].append(user_mapper.model_to_entity(user_model))

        unread: dict[str, list[UnreadMessageRef]] = defaultdict(list)
        rows = await self._session.execute(
            select(MessageModel.conversation_id, MessageModel.id, MessageModel.sender_id)
            .where(
                MessageModel.conversation_id.in_(conversation_ids),
                MessageModel.read.is_(False),
            )
        )
        for conversation_id, message_id, sender_id in rows.all():
            unread[conversation_id].append(UnreadMessageRef(id=message_id, sender_id=sender_id))

        return [
            ConversationUnreadSnapshot(
                conversation_id=cid,
                participants=participants[cid],
                unread_messages=unread[cid],
            )
            for cid in conversation_ids
        ]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation, participant_ids: list[str]) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        for user_id in dict.fromkeys(participant_ids):
            self._session.add(ParticipantModel(conversation_id=model.id, user_id=user_id))
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def touch(self, conversation_id: str, ts: datetime) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(updated_at=ts)
        )
        await self._session.execute(stmt)
