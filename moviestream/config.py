# -------------------------------------------------------
# config.py - 환경변수 기반 설정 로딩
# -------------------------------------------------------

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# .env 파일의 환경변수를 현재 프로세스 환경에 주입
# - 운영환경에서는 .env 대신 실제 환경변수로 주입하는 것을 권장
load_dotenv()


@dataclass(frozen=True)
class Settings:
    """
    애플리케이션 전체 설정 값 묶음.

    - from_env()로 환경변수에서 생성하고, 테스트에서는 직접 생성해서 create_app()에 넘깁니다.
    - database_url 은 필수이며, 나머지 외부 서비스 키는 없으면 해당 기능만 비활성화됩니다.
    """

    database_url: str
    jwt_secret: str = "default_secret"
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 2

    # 외부 서비스 키 (없으면 해당 기능만 503/500 응답)
    pexels_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # 비밀번호 재설정 메일 발송용 SMTP 계정
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465

    # 재설정 링크가 가리킬 프런트엔드 주소
    frontend_url: str = "http://localhost:5173"

    subtitles_dir: str = "subtitles"
    tmp_dir: str = "tmp"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        # DATABASE_URL 이 없으면 서버를 띄우지 않음 (startup 단계에서 치명적 오류)
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL is required. Put it in your environment or .env file.")

        return cls(
            database_url=database_url,
            jwt_secret=os.getenv("JWT_SECRET", "default_secret"),
            jwt_expires_hours=int(os.getenv("JWT_EXPIRES_HOURS", "2")),
            pexels_api_key=os.getenv("PEXELS_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            email_user=os.getenv("EMAIL_USER") or None,
            email_pass=os.getenv("EMAIL_PASS") or None,
            smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=int(os.getenv("SMTP_PORT", "465")),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            subtitles_dir=os.getenv("SUBTITLES_DIR", "subtitles"),
            tmp_dir=os.getenv("TMP_DIR", "tmp"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
