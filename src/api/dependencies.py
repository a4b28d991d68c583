from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from .context import ApiContext


def get_context(request: Request) -> ApiContext:
    return request.app.state.context


def get_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    context: ApiContext = Depends(get_context),
) -> str:
    """Resolve the caller; authentication happens upstream of this service."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return context.api_settings.default_user_id
