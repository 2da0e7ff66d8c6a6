"""Read credentials (JWT signing key, storage keys) from the environment.

Values are never logged; placeholder strings copied from sample ``.env`` files
are treated as missing so a misconfigured deployment fails at first use.
"""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """A required credential is unset or still holds a sample value."""


_PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset(
    {
        "changeme",
        "change-me",
        "placeholder",
        "example",
        "sample",
        "your-key-here",
        "your-secret-here",
        "xxx",
    }
)


def is_placeholder(value: str | None) -> bool:
    normalized = (value or "").strip().lower()
    return not normalized or normalized in _PLACEHOLDER_VALUES


def require_secret(name: str) -> str:
    """Return the trimmed value of ``name`` or raise :class:`MissingSecretError`."""

    value = os.getenv(name)
    if value is None or is_placeholder(value):
        raise MissingSecretError(f"{name} must be set to a real credential")
    return value.strip()
