from __future__ import annotations

from portal_chat.application.dto.principal import Principal
from portal_chat.application.uow import UnitOfWork
from portal_chat.domain.entities.user import User
from portal_chat.domain.value_objects.enums import Role


async def resolve_principal(user_id: str, uow: UnitOfWork) -> Principal | None:
    """Look the identity up fresh; None when the user does not exist."""
    user = await uow.users.get_by_id(user_id)
    if user is None:
        return None
    return Principal.from_user(user)


async def ensure_user(
    user_id: str,
    uow: UnitOfWork,
    *,
    role: Role = Role.CLIENT,
    name: str | None = None,
    email: str | None = None,
) -> User:
    """Create a placeholder user when missing. Existing users keep their data."""
    user = await uow.users_w.ensure(
        User(
            id=user_id,
            role=role,
            name=name or f"User {user_id}",
            email=email or f"{user_id}@example.com",
        )
    )
    await uow.commit()
    return user


async def ensure_admin(
    user_id: str,
    email: str,
    name: str,
    uow: UnitOfWork,
) -> User:
    user = await uow.users_w.upsert(
        User(id=user_id, role=Role.ADMIN, name=name, email=email)
    )
    await uow.commit()
    return user
