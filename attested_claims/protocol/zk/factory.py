"""
Backend factory for membership proof verifiers.

WARNING: Backend choice affects security assumptions and this factory does
not validate cryptographic correctness. The mock backend is for testing
only and must not be used in production.
"""

from __future__ import annotations

import importlib
from typing import Final

from ..exceptions import ConfigurationError
from .feature_flags import get_backend_type, parse_backend_name
from .interfaces import MembershipProofVerifier

_PACKAGE: Final[str] = __package__ or "attested_claims.protocol.zk"

BACKEND_REGISTRY: Final[dict[str, str]] = {
    "transparent": f"{_PACKAGE}.transparent.TransparentMembershipVerifier",
    "mock": f"{_PACKAGE}.mock.MockMembershipVerifier",
}


def _registered(name: str, *, source: str) -> str:
    if name not in BACKEND_REGISTRY:
        raise ConfigurationError(
            f"Invalid backend name from {source}: {name!r}. "
            f"Valid options: {', '.join(sorted(BACKEND_REGISTRY))}"
        )
    return name


def _load_backend_class(backend_name: str) -> type[MembershipProofVerifier]:
    import_path = BACKEND_REGISTRY[backend_name]
    module_path, _, class_name = import_path.rpartition(".")
    if not module_path or not class_name:
        raise ConfigurationError(
            f"Invalid backend import path for {backend_name!r}: {import_path!r}"
        )

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import backend module {module_path!r} "
            f"for {backend_name!r}"
        ) from exc

    try:
        backend_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Backend class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(backend_cls, type) or not issubclass(
        backend_cls, MembershipProofVerifier
    ):
        raise TypeError(
            f"Backend reference {import_path!r} does not implement "
            "MembershipProofVerifier"
        )

    return backend_cls


def _resolve_backend_name(
    *, prefer: str | None = None, override: str | None = None
) -> str:
    # explicit arguments beat the process-wide flags
    for source, value in (("override", override), ("prefer", prefer)):
        name = parse_backend_name(value, source=source)
        if name is not None:
            return _registered(name, source=source)
    return _registered(get_backend_type(), source="feature flags")


def get_membership_verifier(
    *, prefer: str | None = None, override: str | None = None
) -> MembershipProofVerifier:
    """
    Return a membership verifier instance based on feature flags.

    Args:
        prefer: Optional backend name hint.
        override: Optional backend name override (testing only).

    Raises:
        ConfigurationError: If a backend name is invalid.
        ImportError: If the backend class cannot be imported.
        TypeError: If the backend class does not implement the interface.
    """
    backend_name = _resolve_backend_name(prefer=prefer, override=override)
    backend_cls = _load_backend_class(backend_name)
    return backend_cls()
