"""
Membership verifier backend selection.

Resolution order, first non-blank value wins:

1. ``prefer`` argument of ``get_backend_type``
2. in-process override (``set_backend_type`` or ``backend_override``)
3. ``ATTESTED_CLAIMS_ZK_BACKEND`` environment variable
4. ``transparent``

Names are matched case-insensitively and surrounding blanks are ignored, so
``ATTESTED_CLAIMS_ZK_BACKEND=" Mock "`` selects ``mock``.

WARNING: the transparent backend reveals the prover's secrets and the mock
backend accepts forgeable proofs. Neither is anonymous.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Final, Iterator, Optional

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

BACKEND_NAMES: Final = ("transparent", "mock")
DEFAULT_BACKEND: Final = "transparent"
ENV_VAR: Final = "ATTESTED_CLAIMS_ZK_BACKEND"

_override: Optional[str] = None


def parse_backend_name(value: Any, *, source: str) -> Optional[str]:
    """
    Canonical backend name of ``value``, or None when it is unset or blank.

    Raises:
        ConfigurationError: If ``value`` names no known backend
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Invalid backend type from {source}: {value!r} is not a string"
        )
    name = value.strip().lower()
    if not name:
        return None
    if name not in BACKEND_NAMES:
        raise ConfigurationError(
            f"Invalid backend type from {source}: {value!r}. "
            f"Valid options: {', '.join(BACKEND_NAMES)}"
        )
    return name


def get_backend_type(prefer: Optional[str] = None) -> str:
    candidates = (
        ("prefer", prefer),
        ("override", _override),
        (ENV_VAR, os.getenv(ENV_VAR)),
    )
    for source, value in candidates:
        name = parse_backend_name(value, source=source)
        if name is not None:
            return name
    return DEFAULT_BACKEND


def set_backend_type(value: Optional[str]) -> None:
    """Force a backend for this process; None or "" clears the override."""
    global _override
    _override = parse_backend_name(value, source="override")
    if _override is not None:
        logger.debug("[BACKEND] override set to %s", _override)


@contextmanager
def backend_override(value: str) -> Iterator[str]:
    """
    Force a backend inside a ``with`` block and restore the previous
    override on exit.

    Example:
        >>> with backend_override("mock"):
        ...     registry = ClaimRegistry(owner)
    """
    global _override
    previous = _override
    set_backend_type(value)
    try:
        yield get_backend_type()
    finally:
        _override = previous
