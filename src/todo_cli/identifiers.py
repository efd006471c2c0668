from __future__ import annotations

import secrets

from .errors import RandomSourceError

# 6 random bytes render as 12 hex characters.
ID_BYTES = 6


# PUBLIC_INTERFACE
def generate_id() -> str:
    """
    Return a new short opaque identifier.

    The id is ID_BYTES bytes from the OS CSPRNG rendered as lowercase hex.
    No uniqueness check happens here; the store rejects collisions on insert.

    Raises:
        RandomSourceError: the entropy source could not be read.
    """
    try:
        raw = secrets.token_bytes(ID_BYTES)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceError("unable to read from the system random source") from e
    return raw.hex()
