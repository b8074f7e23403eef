# --------------------------------------------------------------
# catalog.py - 댓글 평점 집계 / 즐겨찾기 토글 / Pexels 영상 가져오기
# --------------------------------------------------------------

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from .models import Comment, Movie, User

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATING = 3

# Pexels에서 가져온 영상에는 장르 정보가 없어서 고정값 사용
IMPORTED_GENRE = "Desconocido"


class MovieNotFound(LookupError):
    pass


class CommentNotFound(LookupError):
    pass


class UserNotFound(LookupError):
    pass


def clamp_rating(value: Any, default: int = DEFAULT_RATING) -> int:
    """댓글 평점을 [1, 5] 정수로 보정합니다. 범위를 벗어나도 거절하지 않고 잘라냅니다."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        # 큰 정수는 float 변환 시 OverflowError 가 나므로 정수 그대로 자름
        return max(MIN_RATING, min(MAX_RATING, value))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        # 숫자로 해석할 수 없는 값은 기본 평점으로 대체
        return default
    if math.isnan(number):
        return default
    number = max(float(MIN_RATING), min(float(MAX_RATING), number))
    return int(round(number))


def average_rating(ratings: Iterable[int]) -> float:
    values = list(ratings)
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def recompute_rating(movie: Movie) -> float:
    # 불변식: movie.rating == round(mean(댓글 평점), 2), 댓글이 없으면 0
    movie.rating = average_rating(c.rating for c in movie.comments)
    return movie.rating


def get_movie(db: Session, movie_id: int) -> Movie:
    movie = db.get(Movie, movie_id)
    if movie is None:
        raise MovieNotFound(movie_id)
    return movie


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def add_comment(db: Session, movie_id: int, user: str, text: str, rating: Optional[int] = None) -> Movie:
    """
    영화에 댓글을 추가하고 평균 평점을 다시 계산해 저장합니다.

    - rating 이 None 이면 기본값 3
    - 동시 요청에 대한 잠금은 없음 (같은 영화에 동시에 쓰면 나중 커밋이 이김)
    """
    movie = get_movie(db, movie_id)
    movie.comments.append(
        Comment(user=user, text=text, rating=clamp_rating(rating))
    )
    recompute_rating(movie)
    db.commit()
    db.refresh(movie)
    return movie


def delete_comment(db: Session, movie_id: int, comment_id: int) -> Movie:
    movie = get_movie(db, movie_id)

    target = next((c for c in movie.comments if c.id == comment_id), None)
    if target is None:
        # 이미 삭제된 댓글도 여기로 옴: 조용히 성공 처리하지 않음
        raise CommentNotFound(comment_id)

    # delete-orphan cascade 덕분에 리스트에서 빼면 DB에서도 삭제됨
    movie.comments.remove(target)
    recompute_rating(movie)
    db.commit()
    db.refresh(movie)
    return movie


def toggle_favorite(db: Session, user_id: int, movie_id: int) -> bool:
    """
    즐겨찾기 토글. 추가되면 True, 제거되면 False 를 반환합니다.

    사용자와 영화 존재 여부를 먼저 확인하고 (각각 404), 그 다음 읽기-수정-쓰기.
    """
    user = get_user(db, user_id)
    movie = get_movie(db, movie_id)

    if movie in user.favorites:
        user.favorites.remove(movie)
        added = False
    else:
        user.favorites.append(movie)
        added = True

    db.commit()
    return added


def list_favorites(db: Session, user_id: int) -> List[Movie]:
    return list(get_user(db, user_id).favorites)


def _first(items: Optional[List[Dict[str, Any]]], key: str) -> Optional[str]:
    if not items:
        return None
    return items[0].get(key)


def movie_from_pexels_video(video: Dict[str, Any]) -> Optional[Movie]:
    """Pexels 영상 1건을 Movie 로 변환합니다. 재생 가능한 링크가 없으면 None."""
    video_url = _first(video.get("video_files"), "link")
    if not video_url:
        return None

    image = _first(video.get("video_pictures"), "picture") or video.get("image")
    author_name = (video.get("user") or {}).get("name")
    title = author_name or (str(video["id"]) if video.get("id") is not None else None) or "Pexels video"

    return Movie(
        title=title,
        genre=IMPORTED_GENRE,
        author=author_name or "Pexels",
        rating=0.0,
        video_url=video_url,
        image=image or "",
    )


def import_videos(db: Session, videos: Iterable[Dict[str, Any]]) -> List[Movie]:
    """
    Pexels 검색 결과를 카탈로그에 저장합니다.

    - video_url 이 이미 있으면 건너뜀 (같은 배치 안의 중복도 건너뜀)
    - 롤백 없는 best-effort 배치: 저장된 것만 반환
    """
    imported: List[Movie] = []
    seen = set()

    for video in videos:
        movie = movie_from_pexels_video(video)
        if movie is None:
            continue
        if movie.video_url in seen:
            continue
        seen.add(movie.video_url)

        exists = db.query(Movie.id).filter(Movie.video_url == movie.video_url).first()
        if exists:
            continue

        db.add(movie)
        db.commit()
        db.refresh(movie)
        imported.append(movie)

    logger.info("Imported %d movies from Pexels", len(imported))
    return imported
