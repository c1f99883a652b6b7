"""
Cursor pagination over content listings.

Listings are ordered by reaction count (desc), then ``created_at`` (desc),
then ``id`` (desc) so that every cursor names a unique position. ``after``
returns the items that follow the cursor in that order, ``before`` the items
that precede it (still returned in listing order).
"""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from socialnet.config import settings
from socialnet.exceptions import ValidationError
from socialnet.models import Post, Reaction


@dataclass(frozen=True)
class CursorPagination:
    limit: Optional[int] = None
    before: Optional[int] = None
    after: Optional[int] = None

    def resolved_limit(self) -> int:
        if self.limit is None:
            return settings.PAGINATION_DEFAULT_LIMIT
        if self.limit <= 0:
            raise ValidationError("limit must be a positive integer")
        return min(self.limit, settings.PAGINATION_MAX_LIMIT)

    def validate(self) -> None:
        if self.before is not None and self.after is not None:
            raise ValidationError("only one of 'before' and 'after' may be set")
        self.resolved_limit()


def _ranked(db: Session, criteria):
    reaction_count = func.count(Reaction.id).label("reaction_count")
    return (
        db.query(Post.id.label("post_id"), Post.created_at.label("created_at"), reaction_count)
        .outerjoin(Reaction, Reaction.post_id == Post.id)
        .filter(*criteria)
        .group_by(Post.id, Post.created_at)
        .subquery()
    )


def _follows(ranked, cursor):
    return or_(
        ranked.c.reaction_count < cursor.reaction_count,
        and_(ranked.c.reaction_count == cursor.reaction_count, ranked.c.created_at < cursor.created_at),
        and_(
            ranked.c.reaction_count == cursor.reaction_count,
            ranked.c.created_at == cursor.created_at,
            ranked.c.post_id < cursor.post_id,
        ),
    )


def _precedes(ranked, cursor):
    return or_(
        ranked.c.reaction_count > cursor.reaction_count,
        and_(ranked.c.reaction_count == cursor.reaction_count, ranked.c.created_at > cursor.created_at),
        and_(
            ranked.c.reaction_count == cursor.reaction_count,
            ranked.c.created_at == cursor.created_at,
            ranked.c.post_id > cursor.post_id,
        ),
    )


def ordered(db: Session, *criteria) -> List[Post]:
    """All posts matching ``criteria`` in listing order, unpaginated"""
    ranked = _ranked(db, criteria)
    return (
        db.query(Post)
        .join(ranked, ranked.c.post_id == Post.id)
        .order_by(ranked.c.reaction_count.desc(), ranked.c.created_at.desc(), ranked.c.post_id.desc())
        .all()
    )


def paginate(db: Session, options: CursorPagination, *criteria) -> List[Post]:
    """Slice the posts matching ``criteria`` according to ``options``"""
    options.validate()
    limit = options.resolved_limit()
    ranked = _ranked(db, criteria)
    query = db.query(Post).join(ranked, ranked.c.post_id == Post.id)

    cursor_id = options.after if options.after is not None else options.before
    if cursor_id is None:
        return (
            query.order_by(ranked.c.reaction_count.desc(), ranked.c.created_at.desc(), ranked.c.post_id.desc())
            .limit(limit)
            .all()
        )

    cursor = db.query(ranked).filter(ranked.c.post_id == cursor_id).first()
    if cursor is None:
        return []

    if options.after is not None:
        return (
            query.filter(_follows(ranked, cursor))
            .order_by(ranked.c.reaction_count.desc(), ranked.c.created_at.desc(), ranked.c.post_id.desc())
            .limit(limit)
            .all()
        )

    page = (
        query.filter(_precedes(ranked, cursor))
        .order_by(ranked.c.reaction_count.asc(), ranked.c.created_at.asc(), ranked.c.post_id.asc())
        .limit(limit)
        .all()
    )
    page.reverse()
    return page
