"""
Codec for WordPress meta and option values.

WordPress stores scalars as plain strings and arrays as PHP-serialized
strings (``a:2:{i:0;s:1:"5";i:1;s:1:"6";}``). Values read from the database go
through ``maybe_unserialize``; values written go through ``maybe_serialize``.
"""
import logging
import re
from typing import Any

import phpserialize

logger = logging.getLogger(__name__)

_SERIALIZED_SCALAR = re.compile(r"^[bid]:[0-9.E+-]+;$")


def is_serialized(value: Any) -> bool:
    """Mirror of WordPress is_serialized(): cheap shape check before decoding."""
    if not isinstance(value, str):
        return False
    data = value.strip()
    if data == "N;":
        return True
    if len(data) < 4 or data[1] != ":":
        return False
    token = data[0]
    if token == "s":
        return data.endswith('";')
    if token in ("a", "O"):
        return data.endswith("}")
    if token in ("b", "i", "d"):
        return bool(_SERIALIZED_SCALAR.match(data))
    return False


def _to_python(value: Any) -> Any:
    """Turn decoded PHP arrays into lists when their keys are 0..n-1."""
    if isinstance(value, dict):
        converted = {k: _to_python(v) for k, v in value.items()}
        if list(converted.keys()) == list(range(len(converted))):
            return list(converted.values())
        return converted
    return value


def maybe_unserialize(value: Any) -> Any:
    """Decode a stored meta value, leaving plain strings untouched."""
    if not is_serialized(value):
        return value
    try:
        decoded = phpserialize.loads(value.strip().encode("utf-8"), decode_strings=True)
    except ValueError:
        logger.warning("Could not unserialize stored value: %.60s", value)
        return value
    return _to_python(decoded)


def maybe_serialize(value: Any) -> str:
    """Encode a value the way update_post_meta() persists it."""
    if isinstance(value, (list, tuple, dict)):
        return phpserialize.dumps(value).decode("utf-8")
    # Strings that already look serialized are wrapped again, so they read back unchanged
    if isinstance(value, str) and is_serialized(value):
        return phpserialize.dumps(value).decode("utf-8")
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)
