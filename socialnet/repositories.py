"""
Repository (DAO) layer.

Each repository wraps one table and owns its session writes. Uniqueness
violations reported by the store are rolled back and surfaced as conflicts.
"""
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from socialnet import pagination
from socialnet.exceptions import ConflictError
from socialnet.models import Follower, Message, Post, Reaction, ReactionType, User
from socialnet.pagination import CursorPagination


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, username: str, email: str, hashed_password: str, name: Optional[str] = None) -> User:
        user = User(username=username, email=email, hashed_password=hashed_password, name=name or username)
        self.db.add(user)
        self._commit("USER_ALREADY_EXISTS")
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email_or_username(self, email: Optional[str] = None, username: Optional[str] = None) -> Optional[User]:
        """The account holding ``email``, else the one holding ``username``"""
        if email:
            user = self.db.query(User).filter(User.email == email).first()
            if user is not None or not username:
                return user
        if username:
            return self.db.query(User).filter(User.username == username).first()
        return None

    def update(self, user_id: int, **fields) -> Optional[User]:
        user = self.get_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self._commit("USER_ALREADY_EXISTS")
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        user = self.get_by_id(user_id)
        if user is not None:
            self.db.delete(user)
            self.db.commit()

    def get_recommended_users_paginated(self, limit: Optional[int] = None, skip: Optional[int] = None) -> List[User]:
        query = self.db.query(User).order_by(User.id.asc())
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_users_by_username(self, username: str, limit: Optional[int] = None, skip: Optional[int] = None) -> List[User]:
        query = self.db.query(User).filter(User.username.contains(username)).order_by(User.id.asc())
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)
        return query.all()

    def _commit(self, conflict_code: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(conflict_code) from exc


class FollowRepository:
    def __init__(self, db: Session):
        self.db = db

    def follow(self, follower_id: int, followed_id: int) -> Follower:
        follow = Follower(follower_id=follower_id, followed_id=followed_id)
        self.db.add(follow)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("ALREADY_FOLLOWED") from exc
        self.db.refresh(follow)
        return follow

    def unfollow(self, follower_id: int, followed_id: int) -> Optional[Follower]:
        follow = self.get_follow(follower_id, followed_id)
        if follow is not None:
            self.db.delete(follow)
            self.db.commit()
        return follow

    def get_follow(self, follower_id: int, followed_id: int) -> Optional[Follower]:
        return self.db.query(Follower).filter(
            Follower.follower_id == follower_id, Follower.followed_id == followed_id
        ).first()

    def is_following(self, follower_id: int, followed_id: int) -> bool:
        return self.get_follow(follower_id, followed_id) is not None

    def get_followers(self, user_id: int) -> List[Follower]:
        return self.db.query(Follower).filter(Follower.followed_id == user_id).order_by(Follower.id.asc()).all()

    def get_following(self, user_id: int) -> List[Follower]:
        return self.db.query(Follower).filter(Follower.follower_id == user_id).order_by(Follower.id.asc()).all()


class PostRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, author_id: int, content: str, images: Optional[List[str]] = None) -> Post:
        post = Post(author_id=author_id, content=content, images=list(images or []), is_comment=False)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def get_by_id(self, post_id: int) -> Optional[Post]:
        return self.db.get(Post, post_id)

    def delete(self, post_id: int) -> None:
        post = self.get_by_id(post_id)
        if post is not None:
            self.db.delete(post)
            self.db.commit()

    def get_by_author_id(self, author_id: int) -> List[Post]:
        return pagination.ordered(self.db, Post.author_id == author_id, Post.is_comment.is_(False))

    def get_by_author_paginated(self, author_id: int, options: CursorPagination) -> List[Post]:
        return pagination.paginate(self.db, options, Post.author_id == author_id, Post.is_comment.is_(False))

    def get_all_paginated(self, options: CursorPagination) -> List[Post]:
        return pagination.paginate(self.db, options, Post.is_comment.is_(False))


class CommentRepository:
    """Comments are posts flagged ``is_comment`` with a ``parent_id``."""

    def __init__(self, db: Session):
        self.db = db

    def comment(self, post_id: int, user_id: int, content: str, images: Optional[List[str]] = None) -> Post:
        comment = Post(
            author_id=user_id, content=content, images=list(images or []), is_comment=True, parent_id=post_id
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def get_comment(self, post_id: int, comment_id: int) -> Optional[Post]:
        return self.db.query(Post).filter(
            Post.id == comment_id, Post.parent_id == post_id, Post.is_comment.is_(True)
        ).first()

    def delete_comment(self, comment: Post) -> None:
        self.db.delete(comment)
        self.db.commit()

    def get_post_comments(self, post_id: int) -> List[Post]:
        return pagination.ordered(self.db, Post.parent_id == post_id, Post.is_comment.is_(True))

    def get_post_comments_paginated(self, post_id: int, options: CursorPagination) -> List[Post]:
        return pagination.paginate(self.db, options, Post.parent_id == post_id, Post.is_comment.is_(True))

    def count_post_comments(self, post_id: int) -> int:
        return self.db.query(Post).filter(Post.parent_id == post_id, Post.is_comment.is_(True)).count()

    def get_comments_by_user_id(self, user_id: int) -> List[Post]:
        return pagination.ordered(self.db, Post.author_id == user_id, Post.is_comment.is_(True))


class ReactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def react(self, post_id: int, user_id: int, reaction_type: ReactionType) -> Reaction:
        reaction = Reaction(post_id=post_id, user_id=user_id, type=reaction_type)
        self.db.add(reaction)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"POST_ALREADY_{reaction_type.value}") from exc
        self.db.refresh(reaction)
        return reaction

    def unreact(self, reaction: Reaction) -> None:
        self.db.delete(reaction)
        self.db.commit()

    def get_reaction(self, post_id: int, user_id: int, reaction_type: ReactionType) -> Optional[Reaction]:
        return self.db.query(Reaction).filter(
            Reaction.post_id == post_id, Reaction.user_id == user_id, Reaction.type == reaction_type
        ).first()

    def count_by_post(self, post_id: int, reaction_type: ReactionType) -> int:
        return self.db.query(Reaction).filter(Reaction.post_id == post_id, Reaction.type == reaction_type).count()

    def get_by_post(self, post_id: int, reaction_type: ReactionType) -> List[Reaction]:
        return self.db.query(Reaction).filter(
            Reaction.post_id == post_id, Reaction.type == reaction_type
        ).order_by(Reaction.id.asc()).all()

    def get_by_user(self, user_id: int, reaction_type: ReactionType) -> List[Reaction]:
        return self.db.query(Reaction).filter(
            Reaction.user_id == user_id, Reaction.type == reaction_type
        ).order_by(Reaction.id.asc()).all()


class MessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def send(self, sender_id: int, receiver_id: int, content: str, images: Optional[List[str]] = None) -> Message:
        message = Message(sender_id=sender_id, receiver_id=receiver_id, content=content, images=list(images or []))
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def messages_received(self, receiver_id: int) -> List[Message]:
        return self.db.query(Message).filter(Message.receiver_id == receiver_id).order_by(Message.id.asc()).all()

    def messages_sent(self, sender_id: int) -> List[Message]:
        return self.db.query(Message).filter(Message.sender_id == sender_id).order_by(Message.id.asc()).all()

    def chat_history(self, user_id: int, other_id: int) -> List[Message]:
        return self.db.query(Message).filter(
            or_(
                (Message.sender_id == user_id) & (Message.receiver_id == other_id),
                (Message.sender_id == other_id) & (Message.receiver_id == user_id),
            )
        ).order_by(Message.created_at.asc(), Message.id.asc()).all()
