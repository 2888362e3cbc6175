from __future__ import annotations

from portal_chat.domain.entities.conversation import Conversation
from portal_chat.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
