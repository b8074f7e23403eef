# --------------------------------------------------------------
# subtitles.py - 자막 트랙 조회 / Whisper 자동 생성 엔드포인트
# --------------------------------------------------------------

import logging
import os
import re

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..config import Settings
from ..schemas import AutoSubtitlesIn, SubtitlesOut
from ..security import get_settings
from ..subtitles import (
    SubtitleError,
    SubtitleGenerator,
    build_subtitle_tracks,
    get_subtitle_generator,
    label_for_lang,
)

logger = logging.getLogger(__name__)

VTT_FILENAME_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z-]+\.vtt$")

router = APIRouter(prefix="/api/subtitles", tags=["subtitles"])


@router.post("/auto", response_model=SubtitlesOut)
def auto_subtitles(
    payload: AutoSubtitlesIn,
    generator: SubtitleGenerator = Depends(get_subtitle_generator),
):
    """
    영상을 받아 스페인어/영어 WebVTT 를 생성하고 트랙 목록을 반환합니다.

    - 요청 바디: {"movieId": "...", "videoUrl": "..."}
    - 외부 네트워크에 묶인 느린 동기 작업 (재시도 없음)
    - 결과는 DB에 저장하지 않음
    """
    if not generator.configured:
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY is not set")

    try:
        urls = generator.generate(payload.movie_id, payload.video_url)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SubtitleError:
        logger.exception("AutoSubtitles error for movie %s", payload.movie_id)
        raise HTTPException(status_code=500, detail="Failed to generate subtitles")

    subtitles = [
        {"lang": "es", "label": label_for_lang("es"), "src": urls["es"], "default": True},
        {"lang": "en", "label": label_for_lang("en"), "src": urls["en"], "default": False},
    ]
    return {"movie_id": payload.movie_id, "subtitles": subtitles}


@router.get("/{movie_id}", response_model=SubtitlesOut)
def list_subtitles(movie_id: str, settings: Settings = Depends(get_settings)):
    # 파일이 하나도 없으면 빈 리스트 (404 아님)
    return {"movie_id": movie_id, "subtitles": build_subtitle_tracks(movie_id, settings.subtitles_dir)}


# --------------------------------------------------------------
# /subtitles/<file>.vtt 정적 서빙 (Content-Type: text/vtt)
# --------------------------------------------------------------
static_router = APIRouter(prefix="/subtitles", tags=["subtitles"])


@static_router.get("/{filename}")
def serve_subtitle(filename: str, settings: Settings = Depends(get_settings)):
    # "<movieId>.<lang>.vtt" 형태만 허용 (경로 탐색 방지)
    if not VTT_FILENAME_RE.match(filename):
        raise HTTPException(status_code=404, detail="Subtitle not found")

    path = os.path.join(settings.subtitles_dir, filename)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="Subtitle not found")
    return FileResponse(path, media_type="text/vtt")
