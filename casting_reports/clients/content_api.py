"""HTTP client for the marketplace content service (castings, blogs, news, applications)."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import httpx

from ..config import get_settings
from ..schemas import ContentRef

logger = logging.getLogger(__name__)


class ContentLookupError(RuntimeError):
    """Raised when the content service cannot be reached or answers garbage."""


def is_configured() -> bool:
    return bool(get_settings().content_api_base_url)


def _owner_id(data: dict[str, Any]) -> UUID | None:
    raw = data.get("owner_id") or data.get("ownerId")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        logger.warning("Content service returned a non-UUID owner id: %r", raw)
        return None


def fetch_content(
    kind: str,
    content_id: str,
    *,
    transport: httpx.BaseTransport | None = None,
) -> ContentRef | None:
    """Look up ``{title, excerpt, slug, owner_id}`` for a piece of content.

    Returns ``None`` when the service is not configured or the content does not
    exist; raises :class:`ContentLookupError` for transport and protocol errors.
    """

    settings = get_settings()
    if not settings.content_api_base_url:
        return None

    url = f"{settings.content_api_base_url.rstrip('/')}/{kind}s/{content_id}"
    try:
        with httpx.Client(timeout=settings.content_api_timeout, transport=transport) as client:
            response = client.get(url)
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Content lookup for %s %s failed: %s", kind, content_id, exc)
        raise ContentLookupError(f"Content lookup for {kind} failed") from exc

    if not isinstance(data, dict):
        raise ContentLookupError("Invalid content response")

    return ContentRef(
        id=str(content_id),
        kind=kind,
        title=data.get("title"),
        excerpt=data.get("excerpt"),
        slug=data.get("slug"),
        owner_id=_owner_id(data),
    )


__all__ = ["ContentLookupError", "fetch_content", "is_configured"]
