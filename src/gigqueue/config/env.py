"""Typed readers for environment variables.

Blank values count as unset everywhere: ``FOO=`` in a ``.env`` file behaves
like leaving ``FOO`` out.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


def _read(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return every named variable, reporting all missing names at once."""

    values = {name: _read(name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in values.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars([name])[name]


def _env_number[T: (int, float)](name: str, default: T, parse: Callable[[str], T]) -> T:
    raw = _read(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {parse.__name__} for {name}: {raw!r}") from exc


def env_float(name: str, default: float) -> float:
    return _env_number(name, default, float)


def env_int(name: str, default: int) -> int:
    return _env_number(name, default, int)


def env_flag(name: str, *, default: bool = False) -> bool:
    raw = _read(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"Invalid flag for {name}: {raw!r}")
