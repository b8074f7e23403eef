# ---------------------------------------------
# pexels.py - Pexels 사진/영상 검색 프록시 엔드포인트
# ---------------------------------------------

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..pexels import MAX_PER_PAGE, PexelsClient, PexelsError, get_pexels
from ..schemas import PhotosOut, VideosOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pexels", tags=["pexels"])


def _require_query(query: str) -> str:
    if not query.strip():
        raise HTTPException(status_code=400, detail='Parámetro "query" es requerido')
    return query


@router.get("/photos", response_model=PhotosOut)
def get_photos(
    query: str = "",
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1),
    orientation: Optional[Literal["landscape", "portrait", "square"]] = None,
    size: Optional[Literal["large", "medium", "small"]] = None,
    color: Optional[str] = None,
    locale: Optional[str] = None,
    pexels: PexelsClient = Depends(get_pexels),
):
    """
    - 예) GET /api/pexels/photos?query=matrix&orientation=portrait&page=1&per_page=10
    - per_page 는 최대 80으로 잘라냄
    """
    _require_query(query)
    try:
        data = pexels.search_photos(
            query,
            page=page,
            per_page=min(per_page, MAX_PER_PAGE),
            orientation=orientation,
            size=size,
            color=color or None,
            locale=locale or None,
        )
    except PexelsError:
        logger.exception("[Pexels Photos] Error")
        raise HTTPException(status_code=502, detail="Error al obtener fotos desde Pexels")

    return {"photos": data["photos"]}


@router.get("/videos", response_model=VideosOut)
def get_videos(
    query: str = "",
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1),
    min_width: Optional[int] = None,
    min_height: Optional[int] = None,
    min_duration: Optional[int] = None,
    max_duration: Optional[int] = None,
    pexels: PexelsClient = Depends(get_pexels),
):
    # 예) GET /api/pexels/videos?query=matrix&page=1&per_page=10
    _require_query(query)
    try:
        data = pexels.search_videos(
            query,
            page=page,
            per_page=min(per_page, MAX_PER_PAGE),
            min_width=min_width,
            min_height=min_height,
            min_duration=min_duration,
            max_duration=max_duration,
        )
    except PexelsError:
        logger.exception("[Pexels Videos] Error")
        raise HTTPException(status_code=502, detail="Error al obtener videos desde Pexels")

    return {**data, "videos": [PexelsClient.normalize_video(v) for v in data["videos"]]}
