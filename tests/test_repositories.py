import pytest

from socialnet.exceptions import ConflictError
from socialnet.models import Follower, Reaction, ReactionType
from socialnet.repositories import FollowRepository, PostRepository, ReactionRepository, UserRepository


class TestStoreUniqueness:
    """Duplicates that slip past the service checks are rejected by the store."""

    def test_duplicate_reaction_is_conflict(self, db, make_user):
        author = make_user("author")
        fan = make_user("fan")
        post = PostRepository(db).create(author.id, "hello")
        reactions = ReactionRepository(db)
        reactions.react(post.id, fan.id, ReactionType.LIKE)

        with pytest.raises(ConflictError) as exc_info:
            reactions.react(post.id, fan.id, ReactionType.LIKE)
        assert exc_info.value.code == "POST_ALREADY_LIKE"

        # session rolled back and still usable
        reactions.react(post.id, fan.id, ReactionType.RETWEET)
        assert db.query(Reaction).count() == 2

    def test_duplicate_follow_is_conflict(self, db, make_user):
        a = make_user("a")
        b = make_user("b")
        follows = FollowRepository(db)
        follows.follow(a.id, b.id)

        with pytest.raises(ConflictError) as exc_info:
            follows.follow(a.id, b.id)
        assert exc_info.value.code == "ALREADY_FOLLOWED"

        follows.follow(b.id, a.id)
        assert db.query(Follower).count() == 2
        assert follows.is_following(a.id, b.id)


class TestUserLookup:
    def test_email_takes_precedence_over_username(self, db, make_user):
        a = make_user("a")
        b = make_user("b")
        users = UserRepository(db)

        assert users.get_by_email_or_username(email="b@test.com", username="a").id == b.id
        assert users.get_by_email_or_username(email="nobody@test.com", username="a").id == a.id
        assert users.get_by_email_or_username(username="b").id == b.id
        assert users.get_by_email_or_username() is None
