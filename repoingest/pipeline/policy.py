"""Ingest policy loading and per-file filtering.

The policy file is JSON. A missing or malformed file never aborts a run:
the built-in default policy applies instead. Fields present in the file
win over CLI flags; CLI flags win over built-in defaults.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

from repoingest.chunking.binary import is_binary
from repoingest.core.errors import PolicyError
from repoingest.models.types import (
    HandlerContext,
    HandlerOverride,
    IngestPolicy,
    RepositoryFile,
    extension_of,
)

logger = logging.getLogger(__name__)

_OVERRIDE_FIELDS = (
    "chunk_bytes",
    "overlap_bytes",
    "max_file_bytes",
    "heading_depth",
    "max_rows_per_chunk",
)


def _normalize_extension(ext: str) -> str:
    return ext.strip().lstrip(".").lower()


def _string_list(raw: dict[str, Any], key: str, path: str) -> list[str] | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise PolicyError(path, f"{key} must be a list of strings")
    return value


def _non_negative_int(value: Any, key: str, path: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise PolicyError(path, f"{key} must be a non-negative integer")
    return value


def parse_policy(raw: Any, path: str = "<policy>") -> IngestPolicy:
    """Build an IngestPolicy from decoded JSON.

    Args:
        raw: Decoded JSON document
        path: Source path, for error messages

    Returns:
        The parsed policy; unset fields stay None

    Raises:
        PolicyError: If the document has the wrong shape
    """
    if not isinstance(raw, dict):
        raise PolicyError(path, "top level must be an object")

    allow = _string_list(raw, "allow_extensions", path)
    deny = _string_list(raw, "deny_extensions", path)
    disabled = _string_list(raw, "handlers_disabled", path) or []

    threshold = raw.get("binary_threshold")
    if threshold is not None:
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise PolicyError(path, "binary_threshold must be a number")
        if not math.isfinite(threshold):
            raise PolicyError(path, "binary_threshold must be a finite number")
        threshold = min(max(float(threshold), 0.0), 1.0)

    allow_binary = raw.get("allow_binary")
    if allow_binary is not None and not isinstance(allow_binary, bool):
        raise PolicyError(path, "allow_binary must be a boolean")

    manifest_path = raw.get("manifest_path")
    if manifest_path is not None and not isinstance(manifest_path, str):
        raise PolicyError(path, "manifest_path must be a string")

    overrides: dict[str, HandlerOverride] = {}
    raw_overrides = raw.get("handler_overrides") or {}
    if not isinstance(raw_overrides, dict):
        raise PolicyError(path, "handler_overrides must be an object")
    for name, cfg in raw_overrides.items():
        if not isinstance(cfg, dict):
            raise PolicyError(path, f"handler_overrides.{name} must be an object")
        overrides[name.lower()] = HandlerOverride(
            **{
                key: _non_negative_int(cfg.get(key), f"{name}.{key}", path)
                for key in _OVERRIDE_FIELDS
            }
        )

    raw_force = raw.get("force_handlers") or {}
    if not isinstance(raw_force, dict) or not all(
        isinstance(v, str) for v in raw_force.values()
    ):
        raise PolicyError(path, "force_handlers must map extensions to handler names")

    return IngestPolicy(
        allow_extensions=(
            frozenset(_normalize_extension(e) for e in allow) if allow is not None else None
        ),
        deny_extensions=(
            frozenset(_normalize_extension(e) for e in deny) if deny is not None else None
        ),
        max_file_bytes=_non_negative_int(raw.get("max_file_bytes"), "max_file_bytes", path),
        manifest_path=manifest_path,
        binary_threshold=threshold,
        allow_binary=allow_binary,
        handlers_disabled=frozenset(n.lower() for n in disabled),
        handler_overrides=overrides,
        force_handlers={_normalize_extension(k): v for k, v in raw_force.items()},
    )


def load_policy(path: str | Path) -> IngestPolicy:
    """Load the policy file, falling back to IngestPolicy.default().

    A missing, unreadable or malformed file is not fatal.
    """
    policy_path = Path(path)
    try:
        raw = json.loads(policy_path.read_text(encoding="utf-8"))
        return parse_policy(raw, str(policy_path))
    except FileNotFoundError:
        logger.debug("policy_missing path=%s using_defaults=true", policy_path)
    except (OSError, ValueError, PolicyError) as exc:
        logger.warning("policy_invalid path=%s reason=%s using_defaults=true", policy_path, exc)
    return IngestPolicy.default()


def build_context(
    policy: IngestPolicy,
    allow_binary: bool,
    binary_threshold: float,
) -> HandlerContext:
    """Derive the run's HandlerContext; policy values beat the flags."""
    threshold = (
        policy.binary_threshold if policy.binary_threshold is not None else binary_threshold
    )
    return HandlerContext(
        allow_binary=policy.allow_binary if policy.allow_binary is not None else allow_binary,
        binary_threshold=min(max(threshold, 0.0), 1.0),
    )


def effective_max_file_bytes(policy: IngestPolicy, flag_value: int) -> int:
    return policy.max_file_bytes if policy.max_file_bytes is not None else flag_value


def should_skip_extension(path: str, policy: IngestPolicy) -> bool:
    """Deny list wins; with an allow list, anything not on it is skipped."""
    ext = extension_of(path)
    if policy.deny_extensions is not None and ext in policy.deny_extensions:
        return True
    if policy.allow_extensions is not None:
        return ext not in policy.allow_extensions
    return False


def filter_reason(
    file: RepositoryFile,
    policy: IngestPolicy,
    max_file_bytes: int,
    ctx: HandlerContext,
) -> str | None:
    """Why a file should be skipped before dispatch, or None to keep it.

    Args:
        file: The candidate file (already read)
        policy: Run policy
        max_file_bytes: Effective global size limit
        ctx: Run handler context

    Returns:
        A short reason string ("empty", "too_large", "extension",
        "binary") or None
    """
    if file.size == 0 or not file.raw_bytes:
        return "empty"
    if file.size > max_file_bytes:
        return "too_large"
    if should_skip_extension(file.path, policy):
        return "extension"
    if not ctx.allow_binary and is_binary(file.raw_bytes, ctx.binary_threshold):
        return "binary"
    return None
