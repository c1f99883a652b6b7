from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from socialnet.models import ReactionType


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=32)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    name: Optional[str] = None

class LoginInput(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: str

class Token(BaseModel):
    token: str
    token_type: str = "bearer"

class UserUpdate(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = Field(default=None, min_length=1, max_length=32)
    email: Optional[EmailStr] = None
    public_account: Optional[bool] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: Optional[str]
    username: str
    email: str
    public_account: bool
    created_at: datetime

class UserView(BaseModel):
    """Public summary of an account, also used as the author of a post."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: Optional[str]
    username: str
    profile_picture: Optional[str] = None


class PostCreate(BaseModel):
    content: str = Field(min_length=1, max_length=240)
    images: List[str] = Field(default_factory=list, max_length=4)

class CommentCreate(PostCreate):
    pass

class MediaUpload(BaseModel):
    file_type: str = Field(min_length=1, max_length=5)

class MediaUploadOut(BaseModel):
    put_object_url: str
    object_url: str

class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    author_id: int
    content: str
    images: List[str]
    created_at: datetime
    is_comment: bool
    parent_id: Optional[int] = None

class ExtendedPostOut(PostOut):
    author: UserView
    qty_comments: int
    qty_likes: int
    qty_retweets: int


class ReactionIn(BaseModel):
    type: ReactionType

class ReactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    post_id: int
    user_id: int
    type: ReactionType


class FollowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    follower_id: int
    followed_id: int
    created_at: datetime


class MessageCreate(BaseModel):
    message: str = Field(min_length=1, max_length=240)
    images: List[str] = Field(default_factory=list, max_length=4)

class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    sender_id: int
    receiver_id: int
    content: str
    images: List[str]
    created_at: datetime
