from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted configuration sources (CLI flags, JSON config
file) and the render engine. Coerces types, injects defaults for missing
keys and rejects values the engine cannot honor.
"""

import logging
from typing import Any, Dict, List, Tuple

from simple_include.domain.config import BINARY_INCLUDE_POLICIES, get_default_config

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a configuration dictionary.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raise on invalid values instead of falling back.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and
                                          the warnings produced on the way.

    Raises:
        TypeError: In strict mode, on a type mismatch.
        ValueError: In strict mode, on an out-of-range value.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update({k: v for k, v in config.items() if k in defaults})

    string_fields = ["source", "target", "include_prefix"]
    bool_fields = ["watch", "verbose"]
    int_fields = ["debounce_ms", "workers", "max_scan_bytes"]

    for field in string_fields:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in bool_fields:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)

    for field in int_fields:
        merged[field] = _as_non_negative_int(merged.get(field), defaults[field], field, warnings, strict)

    merged["binary_includes"] = _as_choice(
        merged.get("binary_includes"),
        defaults["binary_includes"],
        BINARY_INCLUDE_POLICIES,
        "binary_includes",
        warnings,
        strict,
    )

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _reject(msg: str, exc_type: type, warnings: List[str], strict: bool) -> None:
    if strict:
        raise exc_type(msg)
    warnings.append(f"{msg} Using fallback.")
    logger.warning(msg)


def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    if value is None:
        return fallback
    if isinstance(value, str):
        # The prefix is matched literally; only surrounding blanks are dropped
        v = value.strip()
        if v:
            return v
        _reject(f"Invalid field '{field}': empty string.", ValueError, warnings, strict)
        return fallback

    _reject(
        f"Invalid field '{field}': expected str, received {type(value).__name__}.",
        TypeError, warnings, strict,
    )
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False

    _reject(
        f"Invalid field '{field}': expected bool, received {value!r}.",
        TypeError, warnings, strict,
    )
    return fallback


def _as_non_negative_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    if value is None:
        return fallback
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        _reject(
            f"Invalid field '{field}': expected int, received {type(value).__name__}.",
            TypeError, warnings, strict,
        )
        return fallback

    try:
        number = int(value)
    except ValueError:
        _reject(f"Invalid field '{field}': '{value}' is not an integer.", ValueError, warnings, strict)
        return fallback

    if number < 0:
        _reject(f"Invalid field '{field}': must be >= 0, received {number}.", ValueError, warnings, strict)
        return fallback
    return number


def _as_choice(
        value: Any,
        fallback: str,
        choices: Tuple[str, ...],
        field: str,
        warnings: List[str],
        strict: bool,
) -> str:
    if value is None:
        return fallback
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()

    _reject(
        f"Invalid field '{field}': expected one of {', '.join(choices)}, received {value!r}.",
        ValueError, warnings, strict,
    )
    return fallback
