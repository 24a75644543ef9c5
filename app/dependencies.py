"""
Request-scoped dependencies: injected collaborators and the auth gateway.

``get_current_user`` is the only place a caller's identity is established.
Protected routers declare it once and read ``CurrentUser`` from it.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from app.config import Settings
from app.errors import authentication_error
from app.security import TokenError, authenticate


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    email: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request):
    return request.app.state.store


def get_storage(request: Request):
    return request.app.state.storage


def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    # absent header or a scheme other than "Bearer " -> 401, bad token -> 403
    try:
        claims = authenticate(authorization, secret=settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    except TokenError as exc:
        raise authentication_error(exc)

    return CurrentUser(user_id=claims["userId"], email=claims["email"])
