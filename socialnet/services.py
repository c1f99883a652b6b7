"""
Services for accounts, the follow graph, content and direct messages.

Every read or write of someone else's content goes through
:class:`~socialnet.visibility.VisibilityPolicy`. Invisible content is reported
as ``NotFoundError`` so callers cannot tell it apart from missing content.
"""
from typing import List, Optional

from socialnet import storage
from socialnet.config import settings
from socialnet.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from socialnet.logging_config import log_user_action, setup_logger
from socialnet.models import Post, ReactionType, User
from socialnet.pagination import CursorPagination
from socialnet.repositories import (
    CommentRepository,
    FollowRepository,
    MessageRepository,
    PostRepository,
    ReactionRepository,
    UserRepository,
)
from socialnet.schemas import (
    ExtendedPostOut,
    FollowOut,
    LoginInput,
    MediaUploadOut,
    MessageOut,
    PostOut,
    ReactionOut,
    Token,
    UserCreate,
    UserOut,
    UserUpdate,
    UserView,
)
from socialnet.utils import create_access_token, hash_password, verify_password
from socialnet.visibility import VisibilityPolicy

logger = setup_logger(__name__)


def validate_content(content: str, images: Optional[List[str]] = None) -> None:
    if not content or not content.strip():
        raise ValidationError("content must not be empty")
    if len(content) > settings.CONTENT_MAX_LENGTH:
        raise ValidationError(f"content must be at most {settings.CONTENT_MAX_LENGTH} characters")
    if images and len(images) > settings.MAX_IMAGES:
        raise ValidationError(f"at most {settings.MAX_IMAGES} images are allowed")


def validate_offset(limit: Optional[int], skip: Optional[int]) -> None:
    if limit is not None and limit <= 0:
        raise ValidationError("limit must be a positive integer")
    if skip is not None and skip < 0:
        raise ValidationError("skip must not be negative")


def to_user_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        name=user.name,
        username=user.username,
        profile_picture=storage.sign_key(user.profile_picture_key),
    )


class ContentViews:
    """Builds the extended view of a post or comment returned to clients.

    Counts are computed from the related rows on every call; listings are
    bounded by pagination so the extra queries stay bounded too.
    """

    def __init__(self, users: UserRepository, comments: CommentRepository, reactions: ReactionRepository):
        self.users = users
        self.comments = comments
        self.reactions = reactions

    def to_extended_view(self, post: Post) -> ExtendedPostOut:
        author = self.users.get_by_id(post.author_id)
        if author is None:
            raise NotFoundError("user")
        base = PostOut.model_validate(post).model_dump()
        base["images"] = [storage.sign_url(reference) for reference in post.images or []]
        return ExtendedPostOut(
            **base,
            author=to_user_view(author),
            qty_comments=self.comments.count_post_comments(post.id),
            qty_likes=self.reactions.count_by_post(post.id, ReactionType.LIKE),
            qty_retweets=self.reactions.count_by_post(post.id, ReactionType.RETWEET),
        )


class AuthService:
    def __init__(self, users: UserRepository):
        self.users = users

    def signup(self, data: UserCreate) -> Token:
        if self.users.get_by_email_or_username(data.email, data.username):
            raise ConflictError("USER_ALREADY_EXISTS")

        user = self.users.create(
            username=data.username,
            email=data.email,
            hashed_password=hash_password(data.password),
            name=data.name,
        )
        log_user_action(logger, user.id, "signup")
        return Token(token=create_access_token({"sub": str(user.id)}))

    def login(self, data: LoginInput) -> Token:
        if not data.email and not data.username:
            raise ValidationError("email or username is required")

        user = self.users.get_by_email_or_username(data.email, data.username)
        if not user or not verify_password(data.password, user.hashed_password):
            raise UnauthorizedError("Invalid credentials", code="INCORRECT_PASSWORD")

        return Token(token=create_access_token({"sub": str(user.id)}))


class FollowService:
    def __init__(self, follows: FollowRepository, users: UserRepository):
        self.follows = follows
        self.users = users

    def follow(self, follower_id: int, followed_id: int) -> FollowOut:
        if follower_id == followed_id:
            raise ConflictError("CANNOT_FOLLOW_YOURSELF")
        if self.users.get_by_id(followed_id) is None:
            raise NotFoundError("user")
        if self.follows.is_following(follower_id, followed_id):
            raise ConflictError("ALREADY_FOLLOWED")

        follow = self.follows.follow(follower_id, followed_id)
        log_user_action(logger, follower_id, "follow", f"followed={followed_id}")
        return FollowOut.model_validate(follow)

    def unfollow(self, follower_id: int, followed_id: int) -> FollowOut:
        follow = self.follows.get_follow(follower_id, followed_id)
        if follow is None:
            raise ConflictError("NOT_FOLLOWED")

        view = FollowOut.model_validate(follow)
        self.follows.unfollow(follower_id, followed_id)
        log_user_action(logger, follower_id, "unfollow", f"followed={followed_id}")
        return view

    def is_following(self, follower_id: int, followed_id: int) -> bool:
        return self.follows.is_following(follower_id, followed_id)

    def get_followers(self, user_id: int) -> List[FollowOut]:
        return [FollowOut.model_validate(f) for f in self.follows.get_followers(user_id)]

    def get_following(self, user_id: int) -> List[FollowOut]:
        return [FollowOut.model_validate(f) for f in self.follows.get_following(user_id)]


class UserService:
    def __init__(self, users: UserRepository, follows: FollowRepository, policy: VisibilityPolicy):
        self.users = users
        self.follows = follows
        self.policy = policy

    def get_me(self, user_id: int) -> UserOut:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("user")
        return UserOut.model_validate(user)

    def get_user(self, viewer_id: int, user_id: int) -> UserView:
        if not self.policy.can_view_owner(viewer_id, user_id):
            raise NotFoundError("user")
        return to_user_view(self.users.get_by_id(user_id))

    def get_users_by_username(self, username: str, limit: Optional[int] = None, skip: Optional[int] = None) -> List[UserView]:
        validate_offset(limit, skip)
        return [to_user_view(u) for u in self.users.get_users_by_username(username, limit, skip)]

    def update_user(self, user_id: int, data: UserUpdate) -> UserOut:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        user = self.users.update(user_id, **fields)
        if user is None:
            raise NotFoundError("user")
        log_user_action(logger, user_id, "update profile", ", ".join(sorted(fields)))
        return UserOut.model_validate(user)

    def delete_user(self, user_id: int) -> None:
        if self.users.get_by_id(user_id) is None:
            raise NotFoundError("user")
        self.users.delete(user_id)
        log_user_action(logger, user_id, "delete account")

    def get_user_recommendations(self, user_id: int, limit: Optional[int] = None, skip: Optional[int] = None) -> List[UserView]:
        """Public accounts plus accounts followed by someone the user follows.

        This is account discovery, so it does not go through the visibility
        policy.
        """
        validate_offset(limit, skip)
        following_ids = {f.followed_id for f in self.follows.get_following(user_id)}

        recommended = []
        for candidate in self.users.get_recommended_users_paginated(limit, skip):
            if candidate.id == user_id:
                continue
            if candidate.public_account or self._is_followed_by_a_follow(candidate.id, following_ids):
                recommended.append(to_user_view(candidate))
        return recommended

    def get_profile_picture(self, user_id: int) -> Optional[str]:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("user")
        return storage.sign_key(user.profile_picture_key)

    def upload_profile_picture(self, user_id: int) -> str:
        key = f"profilePictures/{user_id}"
        if self.users.update(user_id, profile_picture_key=key) is None:
            raise NotFoundError("user")
        return storage.presign_upload(key)

    def _is_followed_by_a_follow(self, candidate_id: int, following_ids: set) -> bool:
        if not following_ids:
            return False
        return any(f.follower_id in following_ids for f in self.follows.get_followers(candidate_id))


class PostService:
    def __init__(self, posts: PostRepository, users: UserRepository, policy: VisibilityPolicy, views: ContentViews):
        self.posts = posts
        self.users = users
        self.policy = policy
        self.views = views

    def create_post(self, user_id: int, content: str, images: Optional[List[str]] = None) -> PostOut:
        validate_content(content, images)
        post = self.posts.create(user_id, content, images)
        log_user_action(logger, user_id, "create post", f"post={post.id}")
        return PostOut.model_validate(post)

    def delete_post(self, user_id: int, post_id: int) -> None:
        post = self.posts.get_by_id(post_id)
        if post is None or not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        if post.author_id != user_id:
            raise ForbiddenError()
        self.posts.delete(post_id)
        log_user_action(logger, user_id, "delete post", f"post={post_id}")

    def get_post(self, user_id: int, post_id: int) -> ExtendedPostOut:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        return self.views.to_extended_view(self.posts.get_by_id(post_id))

    def get_latest_posts(self, user_id: int, options: CursorPagination) -> List[ExtendedPostOut]:
        can_view = self.policy.owner_checker(user_id)
        return [
            self.views.to_extended_view(post)
            for post in self.posts.get_all_paginated(options)
            if can_view(post.author_id)
        ]

    def get_posts_by_author(self, user_id: int, author_id: int, options: Optional[CursorPagination] = None) -> List[ExtendedPostOut]:
        if not self.policy.can_view_owner(user_id, author_id):
            raise NotFoundError("user")

        if options is None:
            posts = self.posts.get_by_author_id(author_id)
        else:
            posts = self.posts.get_by_author_paginated(author_id, options)
        return [self.views.to_extended_view(post) for post in posts]

    def get_post_author(self, user_id: int, post_id: int) -> UserView:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        author = self.users.get_by_id(self.posts.get_by_id(post_id).author_id)
        return to_user_view(author)

    def get_upload_media_presigned_url(self, file_type: str) -> MediaUploadOut:
        file_type = file_type.strip().lower()
        if file_type not in settings.ALLOWED_MEDIA_TYPES:
            raise ValidationError(f"File types allowed: {', '.join(settings.ALLOWED_MEDIA_TYPES)}")

        key = storage.random_media_key(file_type)
        return MediaUploadOut(put_object_url=storage.presign_upload(key), object_url=storage.object_url(key))


class CommentService:
    def __init__(self, comments: CommentRepository, policy: VisibilityPolicy, views: ContentViews):
        self.comments = comments
        self.policy = policy
        self.views = views

    def comment(self, user_id: int, post_id: int, content: str, images: Optional[List[str]] = None) -> PostOut:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        validate_content(content, images)

        comment = self.comments.comment(post_id, user_id, content, images)
        log_user_action(logger, user_id, "comment", f"post={post_id} comment={comment.id}")
        return PostOut.model_validate(comment)

    def delete_comment(self, user_id: int, post_id: int, comment_id: int) -> None:
        comment = self.comments.get_comment(post_id, comment_id)
        if comment is None or not self._is_visible(user_id, post_id, comment):
            raise NotFoundError("comment")
        if comment.author_id != user_id:
            raise ForbiddenError()
        self.comments.delete_comment(comment)
        log_user_action(logger, user_id, "delete comment", f"comment={comment_id}")

    def get_comment(self, user_id: int, post_id: int, comment_id: int) -> ExtendedPostOut:
        comment = self.comments.get_comment(post_id, comment_id)
        if comment is None or not self._is_visible(user_id, post_id, comment):
            raise NotFoundError("comment")
        return self.views.to_extended_view(comment)

    def get_post_comments(self, user_id: int, post_id: int, options: Optional[CursorPagination] = None) -> List[ExtendedPostOut]:
        """Replies of a post the user can see, each filtered by its author's visibility.

        An invisible parent yields an empty thread rather than an error.
        """
        if not self.policy.can_view_content(user_id, post_id):
            return []

        if options is None:
            comments = self.comments.get_post_comments(post_id)
        else:
            comments = self.comments.get_post_comments_paginated(post_id, options)

        can_view = self.policy.owner_checker(user_id)
        return [self.views.to_extended_view(c) for c in comments if can_view(c.author_id)]

    def get_comments_by_user(self, user_id: int, author_id: int) -> List[ExtendedPostOut]:
        if not self.policy.can_view_owner(user_id, author_id):
            raise NotFoundError("user")

        visible = []
        for comment in self.comments.get_comments_by_user_id(author_id):
            if self.policy.can_view_content(user_id, comment.parent_id):
                visible.append(self.views.to_extended_view(comment))
        return visible

    def _is_visible(self, user_id: int, post_id: int, comment: Post) -> bool:
        return self.policy.can_view_content(user_id, post_id) and self.policy.can_view_owner(user_id, comment.author_id)


class ReactionService:
    """Likes and retweets.

    Visibility of the post is checked before the existing-reaction conflict,
    so reacting to an invisible post is always a NotFoundError.
    """

    def __init__(self, reactions: ReactionRepository, policy: VisibilityPolicy):
        self.reactions = reactions
        self.policy = policy

    def react(self, user_id: int, post_id: int, reaction_type: ReactionType) -> ReactionOut:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        if self.reactions.get_reaction(post_id, user_id, reaction_type):
            raise ConflictError(f"POST_ALREADY_{reaction_type.value}")

        reaction = self.reactions.react(post_id, user_id, reaction_type)
        log_user_action(logger, user_id, f"react {reaction_type.value}", f"post={post_id}")
        return ReactionOut.model_validate(reaction)

    def unreact(self, user_id: int, post_id: int, reaction_type: ReactionType) -> ReactionOut:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        reaction = self.reactions.get_reaction(post_id, user_id, reaction_type)
        if reaction is None:
            raise ConflictError(f"POST_NOT_{reaction_type.value}")

        view = ReactionOut.model_validate(reaction)
        self.reactions.unreact(reaction)
        log_user_action(logger, user_id, f"unreact {reaction_type.value}", f"post={post_id}")
        return view

    def get_reaction(self, user_id: int, post_id: int, reaction_type: ReactionType) -> Optional[ReactionOut]:
        reaction = self.reactions.get_reaction(post_id, user_id, reaction_type)
        return ReactionOut.model_validate(reaction) if reaction else None

    def likes_by_post(self, user_id: int, post_id: int) -> List[ReactionOut]:
        return self._by_post(user_id, post_id, ReactionType.LIKE)

    def retweets_by_post(self, user_id: int, post_id: int) -> List[ReactionOut]:
        return self._by_post(user_id, post_id, ReactionType.RETWEET)

    def likes_by_user(self, user_id: int, author_id: int) -> List[ReactionOut]:
        return self._by_user(user_id, author_id, ReactionType.LIKE)

    def retweets_by_user(self, user_id: int, author_id: int) -> List[ReactionOut]:
        return self._by_user(user_id, author_id, ReactionType.RETWEET)

    def _by_post(self, user_id: int, post_id: int, reaction_type: ReactionType) -> List[ReactionOut]:
        if not self.policy.can_view_content(user_id, post_id):
            raise NotFoundError("post")
        return [ReactionOut.model_validate(r) for r in self.reactions.get_by_post(post_id, reaction_type)]

    def _by_user(self, user_id: int, author_id: int, reaction_type: ReactionType) -> List[ReactionOut]:
        if not self.policy.can_view_owner(user_id, author_id):
            raise NotFoundError("user")
        return [
            ReactionOut.model_validate(r)
            for r in self.reactions.get_by_user(author_id, reaction_type)
            if self.policy.can_view_content(user_id, r.post_id)
        ]


class MessageService:
    """Direct messages between two accounts that follow each other."""

    def __init__(self, messages: MessageRepository, follows: FollowRepository, users: UserRepository):
        self.messages = messages
        self.follows = follows
        self.users = users

    def can_message(self, sender_id: int, receiver_id: int) -> bool:
        return (
            self.follows.is_following(sender_id, receiver_id)
            and self.follows.is_following(receiver_id, sender_id)
        )

    def send(self, sender_id: int, receiver_id: int, content: str, images: Optional[List[str]] = None) -> MessageOut:
        if self.users.get_by_id(receiver_id) is None:
            raise NotFoundError("user")
        if not self.can_message(sender_id, receiver_id):
            raise ForbiddenError("Users must follow each other to exchange messages", code="MUTUAL_FOLLOW_REQUIRED")
        validate_content(content, images)

        message = self.messages.send(sender_id, receiver_id, content, images)
        log_user_action(logger, sender_id, "send message", f"receiver={receiver_id}")
        return MessageOut.model_validate(message)

    def messages_received(self, user_id: int) -> List[MessageOut]:
        return [MessageOut.model_validate(m) for m in self.messages.messages_received(user_id)]

    def messages_sent(self, user_id: int) -> List[MessageOut]:
        return [MessageOut.model_validate(m) for m in self.messages.messages_sent(user_id)]

    def chat_history(self, user_id: int, other_id: int) -> List[MessageOut]:
        if self.users.get_by_id(other_id) is None:
            raise NotFoundError("user")
        return [MessageOut.model_validate(m) for m in self.messages.chat_history(user_id, other_id)]
