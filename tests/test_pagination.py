import pytest

from socialnet.exceptions import ValidationError
from socialnet.models import ReactionType
from socialnet.pagination import CursorPagination
from socialnet.repositories import CommentRepository, PostRepository, ReactionRepository


@pytest.fixture
def thread(db, make_user):
    """A post with five replies; reply 2 has two reactions, reply 4 has one"""
    author = make_user("author")
    fans = [make_user(f"fan{i}") for i in range(2)]
    post = PostRepository(db).create(author.id, "parent")
    comments = CommentRepository(db)
    replies = [comments.comment(post.id, author.id, f"reply {i}") for i in range(1, 6)]

    reactions = ReactionRepository(db)
    reactions.react(replies[1].id, fans[0].id, ReactionType.LIKE)
    reactions.react(replies[1].id, fans[1].id, ReactionType.RETWEET)
    reactions.react(replies[3].id, fans[0].id, ReactionType.LIKE)
    return post, replies


def ids(posts):
    return [p.id for p in posts]


class TestCursorPagination:
    def test_first_page_ordered_by_reactions_then_recency(self, db, thread):
        post, replies = thread
        page = CommentRepository(db).get_post_comments_paginated(post.id, CursorPagination(limit=2))

        assert ids(page) == [replies[1].id, replies[3].id]

    def test_after_continues_without_overlap_or_gap(self, db, thread):
        post, replies = thread
        comments = CommentRepository(db)
        first = comments.get_post_comments_paginated(post.id, CursorPagination(limit=2))
        second = comments.get_post_comments_paginated(post.id, CursorPagination(limit=2, after=first[-1].id))
        third = comments.get_post_comments_paginated(post.id, CursorPagination(limit=2, after=second[-1].id))

        assert ids(second) == [replies[4].id, replies[2].id]
        assert ids(third) == [replies[0].id]
        assert sorted(ids(first + second + third)) == sorted(ids(replies))

    def test_before_returns_preceding_items_in_listing_order(self, db, thread):
        post, replies = thread
        comments = CommentRepository(db)

        page = comments.get_post_comments_paginated(post.id, CursorPagination(limit=2, before=replies[4].id))
        assert ids(page) == [replies[1].id, replies[3].id]

        page = comments.get_post_comments_paginated(post.id, CursorPagination(limit=1, before=replies[3].id))
        assert ids(page) == [replies[1].id]

    def test_restartable(self, db, thread):
        post, replies = thread
        comments = CommentRepository(db)
        options = CursorPagination(limit=3, after=replies[1].id)

        assert ids(comments.get_post_comments_paginated(post.id, options)) == ids(
            comments.get_post_comments_paginated(post.id, options)
        )

    def test_unknown_cursor_yields_empty_page(self, db, thread):
        post, _ = thread
        comments = CommentRepository(db)

        assert comments.get_post_comments_paginated(post.id, CursorPagination(after=9999)) == []
        assert comments.get_post_comments_paginated(post.id, CursorPagination(before=9999)) == []

    def test_cursor_outside_scope_yields_empty_page(self, db, thread):
        post, _ = thread

        assert CommentRepository(db).get_post_comments_paginated(post.id, CursorPagination(after=post.id)) == []

    def test_both_cursors_rejected(self, db, thread):
        post, replies = thread

        with pytest.raises(ValidationError):
            CommentRepository(db).get_post_comments_paginated(
                post.id, CursorPagination(before=replies[0].id, after=replies[1].id)
            )

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_rejected(self, db, thread, limit):
        post, _ = thread

        with pytest.raises(ValidationError):
            CommentRepository(db).get_post_comments_paginated(post.id, CursorPagination(limit=limit))

    def test_default_limit_is_finite(self, db, thread, monkeypatch):
        from socialnet.config import settings

        post, _ = thread
        monkeypatch.setattr(settings, "PAGINATION_DEFAULT_LIMIT", 3)

        assert len(CommentRepository(db).get_post_comments_paginated(post.id, CursorPagination())) == 3

    def test_unpaginated_listing_uses_same_order(self, db, thread):
        post, replies = thread

        assert ids(CommentRepository(db).get_post_comments(post.id)) == [
            replies[1].id, replies[3].id, replies[4].id, replies[2].id, replies[0].id
        ]
