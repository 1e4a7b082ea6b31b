"""Content fingerprints used for change detection."""

from __future__ import annotations

import hashlib

DIGEST_LENGTH = 40
DEPENDENCY_DIR_PREFIX = "git-"


def content_digest(data: bytes | str) -> str:
    """Return the SHA-1 hex digest of *data* (strings are hashed as UTF-8)."""

    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha1(data).hexdigest()


def dependency_dir_name(identifier: str) -> str:
    """Return the stable cache directory name for an external dependency."""

    return DEPENDENCY_DIR_PREFIX + content_digest(identifier)[1:11]
