"""Import all models so every table is registered on Base.metadata."""
from portal_chat.infrastructure.db.models.conversation import ConversationModel
from portal_chat.infrastructure.db.models.message import MessageModel
from portal_chat.infrastructure.db.models.participant import ParticipantModel
from portal_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "ParticipantModel",
    "UserModel",
]
