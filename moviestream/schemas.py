import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .catalog import DEFAULT_RATING, clamp_rating

# 대/소문자, 숫자, 특수문자를 각각 1개 이상 포함한 8자 이상
PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]).{8,}$"
)


def _check_password(value: str) -> str:
    if not PASSWORD_RE.match(value):
        raise ValueError("Password does not meet security requirements")
    return value


# ------------------------------------------------------------
# CamelModel: 요청/응답 JSON 은 camelCase (firstName, videoUrl ...)
# ------------------------------------------------------------
class CamelModel(BaseModel):
    class Config:
        # - alias_generator: 파이썬 필드는 snake_case, JSON 키는 camelCase
        # - populate_by_name: 요청 바디에서 snake_case 키도 허용
        # - from_attributes: ORM 객체로부터 직렬화 허용
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageOut(CamelModel):
    message: str


# ------------------------------------------------------------
# 사용자
# ------------------------------------------------------------
class UserCreate(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    email: EmailStr
    password: str

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password(v)


class UserUpdate(CamelModel):
    # 부분 수정: 보낸 필드만 반영 (model_dump(exclude_unset=True))
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0)
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v) if v is not None else v


class UserOut(CamelModel):
    # password / reset 토큰 필드는 절대 노출하지 않음
    id: int
    first_name: str
    last_name: str
    age: int
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserMessageOut(CamelModel):
    message: str
    user: UserOut


class ProfileOut(CamelModel):
    user: UserOut


class LoginIn(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginOut(CamelModel):
    message: str
    token: str
    user: UserOut


class RecoverPasswordIn(CamelModel):
    email: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordIn(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password(v)


# ------------------------------------------------------------
# 영화 / 댓글
# ------------------------------------------------------------
class MovieCreate(CamelModel):
    # rating 은 댓글 평균으로만 계산되므로 입력받지 않음
    title: str = Field(..., min_length=1)
    genre: Optional[str] = None
    author: Optional[str] = None
    video_url: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1)


class MovieUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    genre: Optional[str] = None
    author: Optional[str] = None
    video_url: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = Field(None, min_length=1)


class CommentIn(CamelModel):
    user: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    # 범위 밖(0, 7 ...)이나 숫자가 아닌 값도 거절하지 않고 [1, 5]로 보정
    rating: int = DEFAULT_RATING

    @field_validator("user", "text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("rating", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_rating(v)


class CommentOut(CamelModel):
    id: int
    user: str
    text: str
    rating: int


class MovieOut(CamelModel):
    id: int
    title: str
    genre: Optional[str] = None
    author: Optional[str] = None
    rating: float = 0
    video_url: str
    image: str
    comments: List[CommentOut] = []


class SubtitleTrack(CamelModel):
    lang: str
    label: str
    src: str
    default: bool = False


class MovieDetailOut(MovieOut):
    # 응답 시점에 subtitles 디렉터리를 스캔해서 채움 (DB에는 저장하지 않음)
    subtitles: List[SubtitleTrack] = []


class MovieDeletedOut(CamelModel):
    message: str
    id: int


class CommentDeletedOut(CamelModel):
    message: str
    movie: MovieOut


class FavoriteToggleOut(CamelModel):
    message: str
    favorites: List[int]


class FavoritesOut(CamelModel):
    message: str
    favorites: List[MovieOut]


# ------------------------------------------------------------
# Pexels
# ------------------------------------------------------------
class PexelsImportIn(CamelModel):
    query: str = Field("movie trailer", min_length=1)
    per_page: int = Field(10, ge=1, le=80)


class PexelsImportOut(CamelModel):
    message: str
    count: int
    imported: List[MovieOut]


# Pexels 프록시 응답은 Pexels 원본 키(snake_case)를 그대로 유지
class PhotoSrc(BaseModel):
    original: Optional[str] = None
    large: Optional[str] = None
    medium: Optional[str] = None
    small: Optional[str] = None
    landscape: Optional[str] = None
    portrait: Optional[str] = None
    tiny: Optional[str] = None


class PhotoOut(BaseModel):
    id: int
    width: Optional[int] = None
    height: Optional[int] = None
    url: Optional[str] = None
    photographer: Optional[str] = None
    photographer_url: Optional[str] = None
    src: PhotoSrc


class PhotosOut(BaseModel):
    photos: List[PhotoOut]


class VideoFileOut(BaseModel):
    id: Optional[int] = None
    quality: Optional[str] = None
    file_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    link: Optional[str] = None


class VideoOut(BaseModel):
    id: int
    width: Optional[int] = None
    height: Optional[int] = None
    url: Optional[str] = None
    image: Optional[str] = None
    duration: Optional[int] = None
    video_files: List[VideoFileOut] = []


class VideosOut(BaseModel):
    total_results: Optional[int] = None
    page: Optional[int] = None
    per_page: Optional[int] = None
    videos: List[VideoOut]


# ------------------------------------------------------------
# 자막
# ------------------------------------------------------------
class AutoSubtitlesIn(CamelModel):
    movie_id: str = Field(..., min_length=1)
    video_url: str = Field(..., min_length=1)


class SubtitlesOut(CamelModel):
    movie_id: str
    subtitles: List[SubtitleTrack]
