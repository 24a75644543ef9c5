"""Resolve a resource, compare its owner with the caller, act or reject."""
from typing import Any, Awaitable, Callable, Dict, Optional

from app.errors import APIError

Resource = Dict[str, Any]


async def require_owner(
    resolve: Callable[[], Awaitable[Optional[Resource]]],
    owner_of: Callable[[Resource], Optional[str]],
    caller_id: str,
    *,
    missing: APIError,
    denied: APIError = None,
) -> Resource:
    """Return the resolved resource if ``caller_id`` owns it.

    ``denied`` defaults to ``missing`` so a caller cannot learn whether the
    resource exists.
    """
    resource = await resolve()
    if resource is None:
        raise missing
    if owner_of(resource) != caller_id:
        raise denied if denied is not None else missing
    return resource


def tender_owner(tender: Resource) -> Optional[str]:
    return tender.get("creator_id")
