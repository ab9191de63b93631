# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Local object storage for uploaded images.

Files land under ``<uploads_dir>/<folder>/`` with a timestamp prefix and are
served by the app under ``/uploads``; the stored path is that public URL.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from postboard.core.errors import UploadError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredUpload:
    path: str  # public URL path
    name: str  # original file name, as declared by the client


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    name = _UNSAFE.sub("_", name).strip("._")
    return name or "upload"


async def store_upload(
    upload: Optional[UploadFile],
    *,
    uploads_dir: Path,
    folder: str,
) -> Optional[StoredUpload]:
    """Persist an uploaded image and return where it can be fetched.

    Returns None when no file was sent with the form.
    """
    if upload is None or not upload.filename:
        return None

    original = Path(upload.filename).name
    ext = Path(original).suffix.lower()
    if ext not in IMAGE_EXTENSIONS:
        raise UploadError(
            f"Unsupported image type '{ext or original}'. Allowed: "
            + ", ".join(sorted(IMAGE_EXTENSIONS))
        )

    target_dir = uploads_dir / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    stored_name = f"{ts}_{uuid4().hex[:8]}__{_safe_name(original)}"
    out_path = target_dir / stored_name

    content = await upload.read()
    out_path.write_bytes(content)
    logger.info("Stored upload %s (%d bytes)", out_path, len(content))

    return StoredUpload(path=f"{PUBLIC_PREFIX}/{folder}/{stored_name}", name=original)


def discard_upload(stored: Optional[StoredUpload], *, uploads_dir: Path) -> None:
    """Remove a stored upload whose owning record was never created."""
    if stored is None or not stored.path.startswith(PUBLIC_PREFIX + "/"):
        return
    rel = stored.path[len(PUBLIC_PREFIX) + 1:]
    target = (uploads_dir / rel).resolve()
    if uploads_dir.resolve() not in target.parents:
        return
    target.unlink(missing_ok=True)
