"""File helpers for the JSON stores: safe names, JSON-safe values, atomic writes."""

from __future__ import annotations

import json
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Optional


def safe_filename(name: str, default: str = 'file', max_length: Optional[int] = None) -> str:
    """Create a safe filename from a user-provided name.

    Keeps alphanumerics, underscores and hyphens; spaces become underscores.

    Example:
        >>> safe_filename("jane doe@example")
        'jane_doeexample'
        >>> safe_filename("", default="user")
        'user'
    """
    if not name:
        return default

    cleaned = ''.join(c for c in name if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')
    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')

    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]

    cleaned = cleaned.rstrip('_')
    return cleaned if cleaned else default


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_json_compat(value: Any) -> Any:
    """Replace NaN/inf floats with None, recursively."""
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, dict):
        return {key: sanitize_json_compat(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_json_compat(item) for item in value]
    return value


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON through a uniquely named temp file and swap it into place.

    The temp file is removed when serialization or the swap fails.

    Raises:
        OSError: If the directory or file cannot be written
        ValueError: If the payload cannot be serialized
    """
    ensure_directory(path.parent)
    with tempfile.NamedTemporaryFile(
        'w', encoding='utf-8', dir=path.parent, prefix=f"{path.name}.", suffix='.tmp', delete=False
    ) as handle:
        tmp_path = Path(handle.name)
        try:
            json.dump(sanitize_json_compat(payload), handle, indent=2, sort_keys=True, allow_nan=False)
        except (OSError, TypeError, ValueError):
            handle.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
