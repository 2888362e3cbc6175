from __future__ import annotations

from portal_chat.domain.entities.user import User
from portal_chat.domain.value_objects.enums import Role
from portal_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        role=Role.parse(model.role),
        name=model.name,
        email=model.email,
    )


def entity_to_values(entity: User) -> dict[str, str | None]:
    return {
        "id": entity.id,
        "role": entity.role.value,
        "name": entity.name,
        "email": entity.email,
    }
