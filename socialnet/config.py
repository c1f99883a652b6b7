import os

class Settings:
    ENV: str = os.getenv("ENV", "production")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./socialnet.db")

    TOKEN_SECRET: str = os.getenv("TOKEN_SECRET", "socialnet-development-secret")
    TOKEN_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    AWS_BUCKET_NAME: str = os.getenv("AWS_BUCKET_NAME", "")
    AWS_BUCKET_REGION: str = os.getenv("AWS_BUCKET_REGION", "us-east-1")
    PRESIGNED_URL_EXPIRES: int = int(os.getenv("PRESIGNED_URL_EXPIRES", "3600"))

    PAGINATION_DEFAULT_LIMIT: int = int(os.getenv("PAGINATION_DEFAULT_LIMIT", "20"))
    PAGINATION_MAX_LIMIT: int = int(os.getenv("PAGINATION_MAX_LIMIT", "100"))

    CONTENT_MAX_LENGTH: int = 240
    MAX_IMAGES: int = 4
    ALLOWED_MEDIA_TYPES = ("jpg", "jpeg", "png")

settings = Settings()
