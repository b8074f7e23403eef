# --------------------------------------------------------------
# pexels.py - Pexels 사진/영상 검색 API 클라이언트 (httpx)
# --------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)

PEXELS_BASE = "https://api.pexels.com"
MAX_PER_PAGE = 80


class PexelsError(RuntimeError):
    """Pexels 호출 실패 (네트워크 오류, 4xx/5xx, 예상과 다른 응답 형태)."""


class PexelsClient:
    def __init__(self, api_key: Optional[str], http: Optional[httpx.Client] = None, timeout: float = 30.0):
        self.api_key = api_key
        self.http = http or httpx.Client(base_url=PEXELS_BASE, timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self.http.close()

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise PexelsError("PEXELS_API_KEY not set")
        # None 값은 쿼리스트링에서 제외
        params = {k: v for k, v in params.items() if v is not None}
        try:
            r = self.http.get(path, params=params, headers={"Authorization": self.api_key})
            r.raise_for_status()
            return r.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PexelsError(f"Pexels request to {path} failed: {exc}") from exc

    # ----- public helpers -----
    def search_photos(
        self,
        query: str,
        page: int = 1,
        per_page: int = 15,
        orientation: Optional[str] = None,
        size: Optional[str] = None,
        color: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> Dict[str, Any]:
        data = self._get(
            "/v1/search",
            {
                "query": query,
                "page": page,
                "per_page": min(per_page, MAX_PER_PAGE),
                "orientation": orientation,
                "size": size,
                "color": color,
                "locale": locale,
            },
        )
        if not isinstance(data.get("photos"), list):
            raise PexelsError("Unexpected response from Pexels photos search")
        return {
            "total_results": data.get("total_results"),
            "page": data.get("page", page),
            "per_page": data.get("per_page", per_page),
            "photos": [self.normalize_photo(p) for p in data["photos"]],
        }

    def search_videos(
        self,
        query: str,
        page: int = 1,
        per_page: int = 15,
        min_width: Optional[int] = None,
        min_height: Optional[int] = None,
        min_duration: Optional[int] = None,
        max_duration: Optional[int] = None,
    ) -> Dict[str, Any]:
        data = self._get(
            "/videos/search",
            {
                "query": query,
                "page": page,
                "per_page": min(per_page, MAX_PER_PAGE),
                "min_width": min_width,
                "min_height": min_height,
                "min_duration": min_duration,
                "max_duration": max_duration,
            },
        )
        if not isinstance(data.get("videos"), list):
            logger.error("Unexpected response from Pexels videos search: %r", data)
            raise PexelsError("Unexpected response from Pexels videos search")
        return {
            "total_results": data.get("total_results"),
            "page": data.get("page", page),
            "per_page": data.get("per_page", per_page),
            "videos": data["videos"],
        }

    @staticmethod
    def normalize_photo(p: Dict[str, Any]) -> Dict[str, Any]:
        src = p.get("src") or {}
        return {
            "id": p.get("id"),
            "width": p.get("width"),
            "height": p.get("height"),
            "url": p.get("url"),
            "photographer": p.get("photographer"),
            "photographer_url": p.get("photographer_url"),
            "src": {
                key: src.get(key)
                for key in ("original", "large", "medium", "small", "landscape", "portrait", "tiny")
            },
        }

    @staticmethod
    def normalize_video(v: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": v.get("id"),
            "width": v.get("width"),
            "height": v.get("height"),
            "url": v.get("url"),
            "image": v.get("image"),
            "duration": v.get("duration"),
            "video_files": [
                {
                    "id": f.get("id"),
                    "quality": f.get("quality"),
                    "file_type": f.get("file_type"),
                    "width": f.get("width"),
                    "height": f.get("height"),
                    "link": f.get("link"),
                }
                for f in v.get("video_files") or []
            ],
        }


def get_pexels(request: Request) -> PexelsClient:
    return request.app.state.pexels
