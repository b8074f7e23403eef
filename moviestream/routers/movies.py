# ---------------------------------------------
# movies.py - 영화 CRUD / 댓글 / Pexels 가져오기 엔드포인트
# ---------------------------------------------

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import catalog
from ..config import Settings
from ..db import EntityId, get_db
from ..models import Movie, user_favorites
from ..pexels import PexelsClient, PexelsError, get_pexels
from ..schemas import (
    CommentDeletedOut,
    CommentIn,
    MovieCreate,
    MovieDeletedOut,
    MovieDetailOut,
    MovieOut,
    MovieUpdate,
    PexelsImportIn,
    PexelsImportOut,
)
from ..security import get_settings
from ..subtitles import build_subtitle_tracks

logger = logging.getLogger(__name__)

# APIRouter 인스턴스 생성
# - prefix: 이 라우터의 모든 엔드포인트 앞에 붙을 공통 경로
# - tags: 자동 문서화(Swagger UI)에서 그룹핑 이름
router = APIRouter(prefix="/api/movies", tags=["movies"])


# "/import/pexels" 는 "/{movie_id}" 보다 먼저 선언해야 경로 충돌이 없음
@router.post("/import/pexels", response_model=PexelsImportOut)
def import_from_pexels(
    payload: Optional[PexelsImportIn] = None,
    db: Session = Depends(get_db),
    pexels: PexelsClient = Depends(get_pexels),
):
    """
    Pexels 영상 검색 결과를 영화로 일괄 등록합니다.

    - 요청 바디: {"query": "movie trailer", "per_page": 10} (둘 다 생략 가능)
    - 재생 링크가 없는 항목, 이미 같은 videoUrl 이 있는 항목은 건너뜀
    - 일부만 성공해도 정상 응답이며 저장된 개수를 count 로 반환
    """
    payload = payload or PexelsImportIn()
    if not pexels.configured:
        raise HTTPException(status_code=500, detail="PEXELS_API_KEY not set")

    try:
        data = pexels.search_videos(payload.query, per_page=payload.per_page)
    except PexelsError:
        logger.exception("Pexels import failed for query %r", payload.query)
        raise HTTPException(status_code=502, detail="Error al obtener videos desde Pexels")

    imported = catalog.import_videos(db, data["videos"])
    return {"message": "Import completed", "count": len(imported), "imported": imported}


@router.post("", response_model=MovieOut, status_code=201)
def create_movie(payload: MovieCreate, db: Session = Depends(get_db)):
    # 새 영화는 댓글이 없으므로 rating = 0
    movie = Movie(**payload.model_dump(), rating=0.0)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.get("", response_model=List[MovieOut])
def list_movies(search: Optional[str] = None, db: Session = Depends(get_db)):
    """
    영화 목록. ?search= 가 있으면 제목 부분일치(대소문자 무시)로 필터링합니다.
    - 예) GET /api/movies?search=man
    """
    query = db.query(Movie)
    if search and search.strip():
        query = query.filter(Movie.title.ilike(f"%{search.strip()}%"))
    return query.order_by(Movie.id).all()


@router.get("/{movie_id}", response_model=MovieDetailOut)
def get_movie(
    movie_id: EntityId,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        movie = catalog.get_movie(db, movie_id)
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")

    # 자막 트랙은 응답 시점에 디렉터리를 스캔해서 붙임 (DB 저장 X)
    tracks = build_subtitle_tracks(str(movie.id), settings.subtitles_dir)
    return MovieDetailOut(**MovieOut.model_validate(movie).model_dump(), subtitles=tracks)


@router.put("/{movie_id}", response_model=MovieOut)
def update_movie(movie_id: EntityId, payload: MovieUpdate, db: Session = Depends(get_db)):
    try:
        movie = catalog.get_movie(db, movie_id)
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")

    # 필수 컬럼에 null 이 들어오지 않도록 None 값은 제외
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "video_url", "image"):
            continue
        setattr(movie, field, value)
    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{movie_id}", response_model=MovieDeletedOut)
def delete_movie(movie_id: EntityId, db: Session = Depends(get_db)):
    try:
        movie = catalog.get_movie(db, movie_id)
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")

    # Movie 쪽에는 즐겨찾기 역참조가 없으므로 교차 테이블 행을 직접 정리
    db.execute(user_favorites.delete().where(user_favorites.c.movie_id == movie_id))
    db.delete(movie)
    db.commit()
    return {"message": "Deleted", "id": movie_id}


# ---------------------------------------------
# 댓글 (영화에 종속)
# ---------------------------------------------
@router.post("/{movie_id}/comments", response_model=MovieOut, status_code=201)
def add_comment(movie_id: EntityId, payload: CommentIn, db: Session = Depends(get_db)):
    """
    댓글을 추가하고 영화 평균 평점을 다시 계산합니다.

    요청 바디 예:
    {
      "user": "a",
      "text": "good",
      "rating": 5
    }
    """
    try:
        return catalog.add_comment(db, movie_id, payload.user, payload.text, payload.rating)
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")


@router.delete("/{movie_id}/comments/{comment_id}", response_model=CommentDeletedOut)
def delete_comment(movie_id: EntityId, comment_id: EntityId, db: Session = Depends(get_db)):
    try:
        movie = catalog.delete_comment(db, movie_id, comment_id)
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except catalog.CommentNotFound:
        raise HTTPException(status_code=404, detail="Comment not found")

    return {"message": "Comment deleted", "movie": movie}
