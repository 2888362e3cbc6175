from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from portal_chat.api.deps import UoWDep, get_verifier
from portal_chat.api.v1.schemas.realtime import TokenResponse
from portal_chat.application.ports.auth import TokenIssuer
from portal_chat.services import user_service

router = APIRouter(prefix="/api/v1/realtime", tags=["realtime"])


@router.get("/token", response_model=TokenResponse)
async def issue_token(
    uow: UoWDep,
    verifier: Annotated[TokenIssuer | None, Depends(get_verifier)],
    user_id: str = Query(..., min_length=1),
) -> TokenResponse:
    if verifier is None:
        return TokenResponse(token=None)
    await user_service.ensure_user(user_id, uow)
    return TokenResponse(token=verifier.issue(user_id))
