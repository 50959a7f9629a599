# envbind/utils.py
"""
envbind.utils
-------------

Path handling and nested-document flattening shared by the builder's sources.
"""

import os
from typing import Any, Dict, Mapping, Optional


def expand_path(path: Optional[str]) -> Optional[str]:
    """Expand ``~`` and environment variables (``$VAR``, ``${VAR}``) in a path.

    Examples:
        >>> expand_path("~/app.env")
        '/home/user/app.env'
        >>> expand_path(None)
        None
    """
    if path is None:
        return None
    return os.path.expandvars(os.path.expanduser(os.fspath(path)))


def render_scalar(value: Any) -> str:
    """Render a parsed document scalar the way the type converter reads it back."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_mapping(
    data: Mapping[str, Any],
    struct_delim: str,
    slice_delim: str,
    prefix: str = "",
) -> Dict[str, str]:
    """
    Flatten a nested document (e.g. parsed TOML) into flat string entries.

    Nested tables join their keys with ``struct_delim``; arrays of scalars are
    joined with ``slice_delim``. ``None`` values are skipped.

    Examples:
        >>> flatten_mapping({"db": {"host": "h", "ports": [1, 2]}}, "__", " ")
        {'db__host': 'h', 'db__ports': '1 2'}

    Raises:
        ValueError: If the document contains arrays of tables or nested arrays,
            which have no flat representation.
    """
    flat = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if value is None:
            continue
        if isinstance(value, Mapping):
            flat.update(flatten_mapping(value, struct_delim, slice_delim, full_key + struct_delim))
        elif isinstance(value, list):
            if any(isinstance(item, (Mapping, list)) for item in value):
                raise ValueError(f"Cannot flatten nested array or array of tables at '{full_key}'")
            flat[full_key] = slice_delim.join(render_scalar(item) for item in value)
        else:
            flat[full_key] = render_scalar(value)
    return flat
