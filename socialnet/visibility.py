"""
Content visibility policy.

A viewer may see an owner's account and content when the owner is public,
when the viewer is the owner, or when the viewer follows the owner. Only the
viewer -> owner follow edge matters. Every content-facing service asks this
class; none re-implements the rule.
"""
from socialnet.exceptions import NotFoundError
from socialnet.logging_config import setup_logger
from socialnet.repositories import FollowRepository, PostRepository, UserRepository

logger = setup_logger(__name__)


class VisibilityPolicy:
    def __init__(self, users: UserRepository, follows: FollowRepository, posts: PostRepository):
        self.users = users
        self.follows = follows
        self.posts = posts

    def can_view_owner(self, viewer_id: int, owner_id: int) -> bool:
        """Raises NotFoundError when the owner does not exist"""
        owner = self.users.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("user")

        allowed = (
            owner.public_account
            or viewer_id == owner.id
            or self.follows.is_following(viewer_id, owner.id)
        )
        if not allowed:
            logger.debug(f"User {viewer_id} cannot see content of private user {owner_id}")
        return bool(allowed)

    def owner_checker(self, viewer_id: int):
        """can_view_owner bound to ``viewer_id``, remembering each owner for one listing"""
        decisions = {}

        def check(owner_id: int) -> bool:
            if owner_id not in decisions:
                decisions[owner_id] = self.can_view_owner(viewer_id, owner_id)
            return decisions[owner_id]

        return check

    def can_view_content(self, viewer_id: int, post_id: int) -> bool:
        """Raises NotFoundError when the post or its author does not exist"""
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("post")
        return self.can_view_owner(viewer_id, post.author_id)
