"""
auth/avatars.py -- Local filesystem storage for profile avatars.

Files are written under a single directory with a random name so uploads can
never overwrite each other or escape the directory through a crafted
filename. Only the extension of the client-supplied name is kept, and only
if it is a known image type.

Layer rule: no imports from api/, core/, or notify/.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

logger = logging.getLogger("taskpro.auth")

_ALLOWED_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})


class AvatarStorage:
    def __init__(self, root: str | Path, url_prefix: str = "/avatars") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, user_id: int, filename: str, data: bytes) -> str:
        """Write the upload and return the public URL path for it.

        Raises OSError if the file cannot be written.
        """
        suffix = Path(filename or "").suffix.lower()
        if suffix not in _ALLOWED_SUFFIXES:
            suffix = ".png"
        name = f"{user_id}_{secrets.token_hex(8)}{suffix}"
        (self.root / name).write_bytes(data)
        logger.info("Stored avatar for user %s (%d bytes)", user_id, len(data))
        return f"{self.url_prefix}/{name}"
