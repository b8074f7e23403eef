# ------------------------------------------------------------
# main.py - FastAPI 앱 팩토리/미들웨어/라우터 등록 진입점
# ------------------------------------------------------------

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .db import Base, make_engine, make_session_factory
from .mailer import Mailer
from .pexels import PexelsClient
from .routers import auth, movies, pexels, subtitles, users  # 도메인별 라우터
from .subtitles import SubtitleGenerator

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    # [{"loc": ("body", "email"), "msg": "..."}] -> "email: ..."
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        parts.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """
    모든 에러 응답을 {"message": ...} 형태로 통일합니다.

    - HTTPException           -> 지정한 상태코드 + message
    - RequestValidationError  -> 400 + message + error(필드별 사유)
    - SQLAlchemyError/기타 예외 -> 500, 내부 정보는 로그에만 남기고 응답에는 숨김
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "error": _format_validation_errors(exc)},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    애플리케이션 팩토리.

    - settings 를 넘기지 않으면 startup 시점에 환경변수에서 읽음
      (DATABASE_URL 이 없으면 RuntimeError 로 서버가 뜨지 않음)
    - DB 엔진/메일러/Pexels/자막 생성기 핸들은 lifespan 에서 만들어 app.state 에 보관하고
      shutdown 때 정리합니다. 라우터는 Depends(get_db) 등으로 꺼내 씀
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or Settings.from_env()
        configure_logging(cfg.log_level)

        # ORM 메타데이터 기준으로 "존재하지 않는 테이블만" 생성
        engine = make_engine(cfg.database_url)
        Base.metadata.create_all(bind=engine)

        app.state.settings = cfg
        app.state.engine = engine
        app.state.session_factory = make_session_factory(engine)
        app.state.mailer = Mailer(
            cfg.email_user,
            cfg.email_pass,
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            frontend_url=cfg.frontend_url,
        )
        app.state.pexels = PexelsClient(cfg.pexels_api_key)
        app.state.subtitle_generator = SubtitleGenerator(cfg.openai_api_key, cfg.subtitles_dir, cfg.tmp_dir)

        # 선택 기능은 키가 없으면 해당 엔드포인트만 비활성화
        for name, handle in (
            ("mailer", app.state.mailer),
            ("pexels", app.state.pexels),
            ("subtitles", app.state.subtitle_generator),
        ):
            if not handle.configured:
                logger.warning("%s is not configured; related endpoints will be unavailable", name)

        logger.info("moviestream started")
        try:
            yield
        finally:
            app.state.pexels.close()
            app.state.subtitle_generator.close()
            engine.dispose()
            logger.info("moviestream stopped")

    app = FastAPI(title="Movie Streaming API", lifespan=lifespan)

    # -------------------------------
    # CORS 설정
    # -------------------------------
    # - 개발 단계에서는 "*" 로 넓게 두고, 운영에서는 FRONTEND_URL 로 제한 권장
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # -------------------------------
    # 라우터 등록
    # -------------------------------
    # - users:     /api/users (+ 비밀번호 복구, 즐겨찾기)
    # - auth:      /api/login, /api/profile
    # - movies:    /api/movies (+ 댓글, Pexels 가져오기)
    # - pexels:    /api/pexels
    # - subtitles: /api/subtitles, /subtitles/<file>.vtt
    app.include_router(users.router)
    app.include_router(auth.router)
    app.include_router(movies.router)
    app.include_router(pexels.router)
    app.include_router(subtitles.router)
    app.include_router(subtitles.static_router)

    # 상태 확인(헬스체크)용 루트 엔드포인트
    @app.get("/")
    def root():
        return {"ok": True, "service": "moviestream"}

    return app


# uvicorn moviestream.main:app
app = create_app()
