"""Opaque identifiers for flows and steps.

Ids use only URL-unreserved characters so they can be embedded in callback paths
without escaping. The first and last characters are always letters.
"""

from __future__ import annotations

import secrets
import string

_LETTERS = string.ascii_uppercase + string.ascii_lowercase
_ALPHABET = _LETTERS + string.digits + "_-.~"

DEFAULT_ID_LENGTH = 16


def gen_id(length: int = DEFAULT_ID_LENGTH) -> str:
    if length < 2:
        raise ValueError("length must be >= 2")
    inner = "".join(secrets.choice(_ALPHABET) for _ in range(length - 2))
    return secrets.choice(_LETTERS) + inner + secrets.choice(_LETTERS)
