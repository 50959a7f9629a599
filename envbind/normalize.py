# envbind/normalize.py
"""
envbind.normalize
-----------------

Turns raw ``KEY=VALUE`` lines into the flat, lower-cased mapping the
builder merges.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

log = logging.getLogger(__name__)


def strings_to_map(lines: Iterable[str]) -> Dict[str, str]:
    """
    Build a flat mapping from environment-style ``KEY=VALUE`` strings.

    - Lines without ``=`` are skipped.
    - Only the first ``=`` separates key from value, so values may contain ``=``.
    - Keys are lower-cased.
    - Entries with an empty key or an empty value are skipped.
    - Repeated keys: the last occurrence wins.

    Malformed lines never raise.

    Args:
        lines: Raw lines, e.g. from a file or ``os.environ``.

    Returns:
        Mapping of lower-cased keys to their (untouched) values.
    """
    result = {}
    skipped = 0
    for line in lines:
        key, sep, value = line.partition("=")
        if not sep:
            skipped += 1
            continue
        key = key.lower()
        if key and value:
            result[key] = value
        else:
            skipped += 1
    if skipped:
        log.debug("Skipped %d malformed or empty config line(s).", skipped)
    return result


def normalize_mapping(entries: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """
    Apply the same rules as ``strings_to_map`` to an already split mapping:
    keys are lower-cased, ``None``/empty values and empty keys are dropped,
    and among keys differing only by case the last one wins.
    """
    result = {}
    for key, value in entries.items():
        key = str(key).lower()
        if key and value:
            result[key] = value
    return result
