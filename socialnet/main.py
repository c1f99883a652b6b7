from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from socialnet.database import Base, engine, get_db
from socialnet.exceptions import SocialNetworkError
from socialnet.logging_config import setup_logger
from socialnet.models import ReactionType, User
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
    CommentCreate,
    ExtendedPostOut,
    FollowOut,
    LoginInput,
    MediaUpload,
    MediaUploadOut,
    MessageCreate,
    MessageOut,
    PostCreate,
    PostOut,
    ReactionIn,
    ReactionOut,
    Token,
    UserCreate,
    UserOut,
    UserUpdate,
    UserView,
)
from socialnet.services import (
    AuthService,
    CommentService,
    ContentViews,
    FollowService,
    MessageService,
    PostService,
    ReactionService,
    UserService,
)
from socialnet.utils import verify_access_token
from socialnet.visibility import VisibilityPolicy

logger = setup_logger("socialnet.api")

app = FastAPI(title="Social Network API", version="0.1.0")

Base.metadata.create_all(bind=engine)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


@app.exception_handler(SocialNetworkError)
async def social_network_error_handler(request: Request, exc: SocialNetworkError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# ---- Dependencies ----
def get_current_user_id(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> int:
    payload = verify_access_token(token)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("sub")
    user = db.get(User, int(user_id)) if user_id and str(user_id).isdigit() else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user.id

def get_policy(db: Session = Depends(get_db)) -> VisibilityPolicy:
    return VisibilityPolicy(UserRepository(db), FollowRepository(db), PostRepository(db))

def get_content_views(db: Session = Depends(get_db)) -> ContentViews:
    return ContentViews(UserRepository(db), CommentRepository(db), ReactionRepository(db))

def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))

def get_user_service(db: Session = Depends(get_db), policy: VisibilityPolicy = Depends(get_policy)) -> UserService:
    return UserService(UserRepository(db), FollowRepository(db), policy)

def get_follow_service(db: Session = Depends(get_db)) -> FollowService:
    return FollowService(FollowRepository(db), UserRepository(db))

def get_post_service(
    db: Session = Depends(get_db),
    policy: VisibilityPolicy = Depends(get_policy),
    views: ContentViews = Depends(get_content_views),
) -> PostService:
    return PostService(PostRepository(db), UserRepository(db), policy, views)

def get_comment_service(
    db: Session = Depends(get_db),
    policy: VisibilityPolicy = Depends(get_policy),
    views: ContentViews = Depends(get_content_views),
) -> CommentService:
    return CommentService(CommentRepository(db), policy, views)

def get_reaction_service(db: Session = Depends(get_db), policy: VisibilityPolicy = Depends(get_policy)) -> ReactionService:
    return ReactionService(ReactionRepository(db), policy)

def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(MessageRepository(db), FollowRepository(db), UserRepository(db))

def cursor_options(
    limit: Optional[int] = Query(None),
    before: Optional[int] = Query(None),
    after: Optional[int] = Query(None),
) -> CursorPagination:
    return CursorPagination(limit=limit, before=before, after=after)


@app.get("/health", tags=['Health'])
def health():
    return {"status": "ok"}


# ---- Auth ----
@app.post("/api/auth/signup", response_model=Token, status_code=status.HTTP_201_CREATED, tags=['Auth'])
def signup(data: UserCreate, service: AuthService = Depends(get_auth_service)):
    return service.signup(data)

@app.post("/api/auth/login", response_model=Token, tags=['Auth'])
def login(data: LoginInput, service: AuthService = Depends(get_auth_service)):
    return service.login(data)


# ---- Users ----
@app.get("/api/user", response_model=List[UserView], tags=['Users'])
def get_user_recommendations(
    limit: Optional[int] = None,
    skip: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    return service.get_user_recommendations(user_id, limit, skip)

@app.get("/api/user/me", response_model=UserOut, tags=['Users'])
def read_users_me(user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    return service.get_me(user_id)

@app.post("/api/user/me", response_model=UserOut, tags=['Users'])
def update_me(data: UserUpdate, user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    return service.update_user(user_id, data)

@app.get("/api/user/me/profilePicture", tags=['Users'])
def get_profile_picture(user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    return {"url": service.get_profile_picture(user_id)}

@app.post("/api/user/me/profilePicture", tags=['Users'])
def upload_profile_picture(user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    return {"upload_url": service.upload_profile_picture(user_id)}

@app.get("/api/user/by_username/{username}", response_model=List[UserView], tags=['Users'])
def get_users_by_username(
    username: str,
    limit: Optional[int] = None,
    skip: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    return service.get_users_by_username(username, limit, skip)

@app.get("/api/user/{target_id}", response_model=UserView, tags=['Users'])
def get_user(target_id: int, user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    return service.get_user(user_id, target_id)

@app.delete("/api/user", status_code=status.HTTP_204_NO_CONTENT, tags=['Users'])
def delete_me(user_id: int = Depends(get_current_user_id), service: UserService = Depends(get_user_service)):
    service.delete_user(user_id)


# ---- Follow & Unfollow ----
@app.post("/api/follower/follow/{target_id}", response_model=FollowOut, tags=['Follow & Unfollow'])
def follow_user(target_id: int, user_id: int = Depends(get_current_user_id), service: FollowService = Depends(get_follow_service)):
    return service.follow(user_id, target_id)

@app.post("/api/follower/unfollow/{target_id}", response_model=FollowOut, tags=['Follow & Unfollow'])
def unfollow_user(target_id: int, user_id: int = Depends(get_current_user_id), service: FollowService = Depends(get_follow_service)):
    return service.unfollow(user_id, target_id)

@app.get("/api/follower/{target_id}/followers", response_model=List[FollowOut], tags=['Follow & Unfollow'])
def get_followers(target_id: int, user_id: int = Depends(get_current_user_id), service: FollowService = Depends(get_follow_service)):
    return service.get_followers(target_id)

@app.get("/api/follower/{target_id}/following", response_model=List[FollowOut], tags=['Follow & Unfollow'])
def get_following(target_id: int, user_id: int = Depends(get_current_user_id), service: FollowService = Depends(get_follow_service)):
    return service.get_following(target_id)


# ---- Posts ----
@app.get("/api/post", response_model=List[ExtendedPostOut], tags=['Posts'])
def get_latest_posts(
    options: CursorPagination = Depends(cursor_options),
    user_id: int = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service),
):
    return service.get_latest_posts(user_id, options)

@app.post("/api/post", response_model=PostOut, status_code=status.HTTP_201_CREATED, tags=['Posts'])
def create_post(data: PostCreate, user_id: int = Depends(get_current_user_id), service: PostService = Depends(get_post_service)):
    return service.create_post(user_id, data.content, data.images)

@app.post("/api/post/add_media", response_model=MediaUploadOut, tags=['Posts'])
def add_media(data: MediaUpload, user_id: int = Depends(get_current_user_id), service: PostService = Depends(get_post_service)):
    return service.get_upload_media_presigned_url(data.file_type)

@app.get("/api/post/by_user/{author_id}", response_model=List[ExtendedPostOut], tags=['Posts'])
def get_posts_by_author(
    author_id: int,
    options: CursorPagination = Depends(cursor_options),
    user_id: int = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service),
):
    return service.get_posts_by_author(user_id, author_id, options if options != CursorPagination() else None)

@app.get("/api/post/{post_id}", response_model=ExtendedPostOut, tags=['Posts'])
def get_post(post_id: int, user_id: int = Depends(get_current_user_id), service: PostService = Depends(get_post_service)):
    return service.get_post(user_id, post_id)

@app.get("/api/post/{post_id}/author", response_model=UserView, tags=['Posts'])
def get_post_author(post_id: int, user_id: int = Depends(get_current_user_id), service: PostService = Depends(get_post_service)):
    return service.get_post_author(user_id, post_id)

@app.delete("/api/post/{post_id}", status_code=status.HTTP_204_NO_CONTENT, tags=['Posts'])
def delete_post(post_id: int, user_id: int = Depends(get_current_user_id), service: PostService = Depends(get_post_service)):
    service.delete_post(user_id, post_id)


# ---- Comments ----
@app.get("/api/comment/by_user/{author_id}", response_model=List[ExtendedPostOut], tags=['Comments'])
def get_comments_by_user(author_id: int, user_id: int = Depends(get_current_user_id), service: CommentService = Depends(get_comment_service)):
    return service.get_comments_by_user(user_id, author_id)

@app.get("/api/comment/{post_id}", response_model=List[ExtendedPostOut], tags=['Comments'])
def get_post_comments(
    post_id: int,
    options: CursorPagination = Depends(cursor_options),
    user_id: int = Depends(get_current_user_id),
    service: CommentService = Depends(get_comment_service),
):
    return service.get_post_comments(user_id, post_id, options if options != CursorPagination() else None)

@app.post("/api/comment/{post_id}/comment", response_model=PostOut, status_code=status.HTTP_201_CREATED, tags=['Comments'])
def create_comment(
    post_id: int,
    data: CommentCreate,
    user_id: int = Depends(get_current_user_id),
    service: CommentService = Depends(get_comment_service),
):
    return service.comment(user_id, post_id, data.content, data.images)

@app.get("/api/comment/{post_id}/comment/{comment_id}", response_model=ExtendedPostOut, tags=['Comments'])
def get_comment(post_id: int, comment_id: int, user_id: int = Depends(get_current_user_id), service: CommentService = Depends(get_comment_service)):
    return service.get_comment(user_id, post_id, comment_id)

@app.delete("/api/comment/{post_id}/comment/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, tags=['Comments'])
def delete_comment(post_id: int, comment_id: int, user_id: int = Depends(get_current_user_id), service: CommentService = Depends(get_comment_service)):
    service.delete_comment(user_id, post_id, comment_id)


# ---- Reactions ----
@app.post("/api/reaction/{post_id}", response_model=ReactionOut, status_code=status.HTTP_201_CREATED, tags=['Reactions'])
def react(post_id: int, data: ReactionIn, user_id: int = Depends(get_current_user_id), service: ReactionService = Depends(get_reaction_service)):
    return service.react(user_id, post_id, data.type)

@app.delete("/api/reaction/{post_id}", response_model=ReactionOut, tags=['Reactions'])
def unreact(
    post_id: int,
    reaction_type: ReactionType = Query(..., alias="type"),
    user_id: int = Depends(get_current_user_id),
    service: ReactionService = Depends(get_reaction_service),
):
    return service.unreact(user_id, post_id, reaction_type)

@app.get("/api/reaction/likes/{post_id}", response_model=List[ReactionOut], tags=['Reactions'])
def likes_by_post(post_id: int, user_id: int = Depends(get_current_user_id), service: ReactionService = Depends(get_reaction_service)):
    return service.likes_by_post(user_id, post_id)

@app.get("/api/reaction/retweets/{post_id}", response_model=List[ReactionOut], tags=['Reactions'])
def retweets_by_post(post_id: int, user_id: int = Depends(get_current_user_id), service: ReactionService = Depends(get_reaction_service)):
    return service.retweets_by_post(user_id, post_id)

@app.get("/api/reaction/likes/by_user/{author_id}", response_model=List[ReactionOut], tags=['Reactions'])
def likes_by_user(author_id: int, user_id: int = Depends(get_current_user_id), service: ReactionService = Depends(get_reaction_service)):
    return service.likes_by_user(user_id, author_id)

@app.get("/api/reaction/retweets/by_user/{author_id}", response_model=List[ReactionOut], tags=['Reactions'])
def retweets_by_user(author_id: int, user_id: int = Depends(get_current_user_id), service: ReactionService = Depends(get_reaction_service)):
    return service.retweets_by_user(user_id, author_id)


# ---- Direct messages ----
@app.get("/api/message/received", response_model=List[MessageOut], tags=['Messages'])
def messages_received(user_id: int = Depends(get_current_user_id), service: MessageService = Depends(get_message_service)):
    return service.messages_received(user_id)

@app.get("/api/message/sent", response_model=List[MessageOut], tags=['Messages'])
def messages_sent(user_id: int = Depends(get_current_user_id), service: MessageService = Depends(get_message_service)):
    return service.messages_sent(user_id)

@app.get("/api/message/{other_id}", response_model=List[MessageOut], tags=['Messages'])
def chat_history(other_id: int, user_id: int = Depends(get_current_user_id), service: MessageService = Depends(get_message_service)):
    return service.chat_history(user_id, other_id)

@app.post("/api/message/{receiver_id}", response_model=MessageOut, status_code=status.HTTP_201_CREATED, tags=['Messages'])
def send_message(
    receiver_id: int,
    data: MessageCreate,
    user_id: int = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
):
    return service.send(user_id, receiver_id, data.message, data.images)
