# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from postboard.auth.accounts import AccountRecord
from postboard.core.errors import PostNotFoundError, PostValidationError
from postboard.core.models import Post

logger = logging.getLogger(__name__)

CONTENT_REQUIRED_MSG = "Post content is required."


@dataclass(frozen=True)
class PostRecord:
    id: int
    content: str
    pic_path: Optional[str]
    pic_name: Optional[str]
    created_at: Optional[datetime]
    owner: Optional[AccountRecord]


def _to_record(p: Post) -> PostRecord:
    return PostRecord(
        id=p.id,
        content=p.content,
        pic_path=p.pic_path,
        pic_name=p.pic_name,
        created_at=p.created_at,
        owner=AccountRecord.from_model(p.owner) if p.owner is not None else None,
    )


def check_post_content(content: str) -> None:
    if not (content or "").strip():
        raise PostValidationError(CONTENT_REQUIRED_MSG)


def create_post(
    db: Session,
    *,
    owner_id: int,
    content: str,
    pic_path: Optional[str] = None,
    pic_name: Optional[str] = None,
) -> PostRecord:
    """Insert one post owned by ``owner_id``.

    The caller is responsible for deriving ``owner_id`` from the authenticated
    principal.
    """
    check_post_content(content)
    post = Post(content=content, owner_id=owner_id, pic_path=pic_path, pic_name=pic_name)
    db.add(post)
    db.commit()
    logger.info("Created post id=%s owner_id=%s", post.id, owner_id)
    return get_post(db, post.id)


def list_posts(db: Session, owner_id: int) -> List[PostRecord]:
    """All posts of one owner, newest first, with the owner joined in."""
    stmt = (
        select(Post)
        .options(joinedload(Post.owner))
        .where(Post.owner_id == owner_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return [_to_record(p) for p in db.execute(stmt).scalars().all()]


def get_post(db: Session, post_id: int) -> PostRecord:
    stmt = select(Post).options(joinedload(Post.owner)).where(Post.id == post_id)
    p = db.execute(stmt).scalar_one_or_none()
    if p is None:
        raise PostNotFoundError(post_id)
    return _to_record(p)
