"""Keypair file loading.

Keypair files use the Solana CLI format: a JSON array of the 64 secret key
bytes.
"""

import json
from pathlib import Path

from solders.keypair import Keypair

from .config import expand_tilde
from .errors import KeypairError

# A keypair file is 64 small integers; anything much larger is not one
MAX_KEYPAIR_FILE_SIZE = 4096


def read_keypair_from_path(path: str | Path) -> Keypair:
    """
    Read a signing keypair from a JSON keypair file.

    Args:
        path: Path to the keypair file (leading '~/' is expanded)

    Returns:
        The decoded Keypair

    Raises:
        KeypairError: If the file is missing, unreadable or not a keypair
    """
    resolved = expand_tilde(path)

    try:
        if resolved.stat().st_size > MAX_KEYPAIR_FILE_SIZE:
            raise KeypairError(resolved, "file too large to be a keypair")
        raw = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise KeypairError(resolved, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise KeypairError(resolved, "not a UTF-8 JSON keypair file") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise KeypairError(resolved, f"invalid JSON ({e.msg})") from e

    if not isinstance(data, list) or len(data) != 64:
        raise KeypairError(resolved, "expected a JSON array of 64 bytes")
    if not all(isinstance(b, int) and 0 <= b <= 255 for b in data):
        raise KeypairError(resolved, "keypair bytes must be integers in 0..255")

    try:
        return Keypair.from_bytes(bytes(data))
    except ValueError as e:
        raise KeypairError(resolved, str(e)) from e

