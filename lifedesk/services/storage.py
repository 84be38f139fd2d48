# =============================================================================
# File Storage — Local Object Storage Area
# =============================================================================
#
# Uploaded files are written under `settings.storage_dir`:
#
#   <storage_dir>/documents/<epoch-ms>-<random>.<ext>
#
# The relative key ("documents/<name>") is what the document row stores.
# Names never reuse the client's filename, so two uploads of "notes.pdf"
# cannot collide and no client-supplied path component reaches the disk.
# =============================================================================

from __future__ import annotations

import logging
import secrets
import string
import time
from pathlib import Path, PurePath

from lifedesk.config import settings

logger = logging.getLogger(__name__)

DOCUMENTS_PREFIX = "documents"

_ALPHABET = string.ascii_lowercase + string.digits


def _storage_root() -> Path:
    return Path(settings.storage_dir)


def make_storage_key(filename: str | None) -> str:
    """`documents/<epoch-ms>-<random>.<ext>`; the extension comes from `filename`."""
    ext = PurePath(filename or "").suffix.lstrip(".").lower() or "bin"
    token = "".join(secrets.choice(_ALPHABET) for _ in range(11))
    return f"{DOCUMENTS_PREFIX}/{int(time.time() * 1000)}-{token}.{ext}"


def save_upload(data: bytes, filename: str | None) -> str:
    """Write `data` to a fresh key and return that key."""
    key = make_storage_key(filename)
    target = _storage_root() / key
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)

    logger.info("Saved upload: %s (%d bytes) → %s", filename, len(data), key)
    return key


def resolve(key: str) -> Path:
    """Absolute path for a storage key; rejects keys escaping the root."""
    root = _storage_root().resolve()
    path = (root / key).resolve()
    if not path.is_relative_to(root):
        raise ValueError(f"Storage key escapes the storage area: {key}")
    return path


def delete_file(key: str) -> bool:
    """Remove a stored file. Returns False when it was already gone."""
    path = resolve(key)
    if not path.exists():
        logger.info("Stored file already missing: %s", key)
        return False
    path.unlink()
    logger.info("Deleted stored file: %s", key)
    return True
