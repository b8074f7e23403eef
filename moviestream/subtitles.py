# --------------------------------------------------------------
# subtitles.py - WebVTT 자막 트랙 조회 및 Whisper 기반 자동 생성
# --------------------------------------------------------------

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)

OPENAI_BASE = "https://api.openai.com/v1"
WHISPER_MODEL = "whisper-1"

# 영상 다운로드는 고정 90초 타임아웃 (재시도 없음)
DOWNLOAD_TIMEOUT = 90.0

# 자막 파일 public 경로 prefix (routers/subtitles.py 의 static_router 가 서빙)
PUBLIC_PREFIX = "/subtitles"

LANG_LABELS: Dict[str, str] = {
    "es": "Español",
    "en": "English",
    "fr": "Français",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "pt-BR": "Português (Brasil)",
}

# 파일명에 그대로 쓰이므로 경로 구분자 등은 허용하지 않음
MOVIE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class SubtitleError(RuntimeError):
    pass


def label_for_lang(lang: str) -> str:
    return LANG_LABELS.get(lang, lang.upper())


def build_subtitle_tracks(movie_id: str, directory: str) -> List[Dict[str, object]]:
    """
    "<movieId>.<lang>.vtt" 패턴의 파일로 자막 트랙 목록을 만듭니다.

    - DB에 저장하지 않고 API 응답에만 붙입니다.
    - "es" 트랙이 있으면 default, 없으면 첫 번째 트랙이 default
    - 디렉터리가 없거나 일치하는 파일이 없으면 빈 리스트
    """
    if not os.path.isdir(directory):
        return []

    rx = re.compile(rf"^{re.escape(str(movie_id))}\.([A-Za-z-]+)\.vtt$")
    tracks: List[Dict[str, object]] = []

    for filename in sorted(os.listdir(directory)):
        match = rx.match(filename)
        if not match:
            continue
        lang = match.group(1)
        tracks.append(
            {
                "lang": lang,
                "label": label_for_lang(lang),
                "src": f"{PUBLIC_PREFIX}/{filename}",
                "default": False,
            }
        )

    if tracks:
        es_idx = next((i for i, t in enumerate(tracks) if str(t["lang"]).lower() == "es"), 0)
        tracks[es_idx]["default"] = True

    return tracks


class SubtitleGenerator:
    """
    영상을 내려받아 OpenAI Whisper 로 스페인어/영어 WebVTT 파일을 생성합니다.

    외부 네트워크에 묶인 느린 동기 작업이며, 실패 시 재시도하지 않고 SubtitleError 를 올립니다.
    """

    def __init__(
        self,
        api_key: Optional[str],
        subtitles_dir: str,
        tmp_dir: str,
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.subtitles_dir = Path(subtitles_dir)
        self.tmp_dir = Path(tmp_dir)
        self.http = http or httpx.Client(timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self.http.close()

    def _ensure_dirs(self) -> None:
        self.subtitles_dir.mkdir(parents=True, exist_ok=True)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)

    def download(self, url: str, out_path: Path) -> Path:
        # 응답 본문을 메모리에 올리지 않고 디스크로 스트리밍
        with self.http.stream("GET", url, timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as r:
            r.raise_for_status()
            with open(out_path, "wb") as f:
                for chunk in r.iter_bytes():
                    f.write(chunk)
        return out_path

    def _whisper(self, endpoint: str, source: Path, language: Optional[str] = None) -> str:
        data = {"model": WHISPER_MODEL, "response_format": "vtt"}
        if language:
            data["language"] = language
        with open(source, "rb") as f:
            r = self.http.post(
                f"{OPENAI_BASE}/audio/{endpoint}",
                headers={"Authorization": f"Bearer {self.api_key}"},
                data=data,
                files={"file": (source.name, f, "video/mp4")},
            )
        r.raise_for_status()
        return r.text

    def generate(self, movie_id: str, video_url: str) -> Dict[str, str]:
        """
        자막 파일을 생성하고 public 경로를 반환합니다. {"es": "/subtitles/<id>.es.vtt", "en": ...}
        """
        if not self.api_key:
            raise SubtitleError("OPENAI_API_KEY is not set")
        if not MOVIE_ID_RE.match(movie_id):
            raise ValueError(f"Invalid movie id: {movie_id!r}")

        self._ensure_dirs()
        tmp_file = self.tmp_dir / f"{movie_id}.source.mp4"

        try:
            # 1) 원본 영상 다운로드
            self.download(video_url, tmp_file)

            # 2) 스페인어 전사 (transcriptions, language=es)
            es_vtt = self._whisper("transcriptions", tmp_file, language="es")
            (self.subtitles_dir / f"{movie_id}.es.vtt").write_text(es_vtt, encoding="utf-8")

            # 3) 영어 번역 (translations 엔드포인트는 항상 영어로 출력)
            en_vtt = self._whisper("translations", tmp_file)
            (self.subtitles_dir / f"{movie_id}.en.vtt").write_text(en_vtt, encoding="utf-8")
        except httpx.HTTPError as exc:
            raise SubtitleError(f"Subtitle generation failed for movie {movie_id}: {exc}") from exc
        finally:
            # 임시 파일 정리 (없으면 무시)
            tmp_file.unlink(missing_ok=True)

        logger.info("Generated subtitles for movie %s", movie_id)
        return {
            "es": f"{PUBLIC_PREFIX}/{movie_id}.es.vtt",
            "en": f"{PUBLIC_PREFIX}/{movie_id}.en.vtt",
        }


def get_subtitle_generator(request: Request) -> SubtitleGenerator:
    return request.app.state.subtitle_generator
