# -------------------------------------------------------
# security.py - 비밀번호 해시(bcrypt) / JWT 발급·검증(python-jose)
# -------------------------------------------------------

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends, Header, HTTPException, Request
from jose import JWTError, jwt

from .config import Settings


def hash_password(plain: str) -> str:
    """
    평문 비밀번호를 bcrypt 해시로 변환합니다.

    비밀번호 필드를 DB에 쓰는 모든 곳(회원가입/수정/재설정)에서 저장 직전에 명시적으로 호출합니다.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # 저장된 값이 bcrypt 해시 형식이 아닌 경우
        return False


def create_access_token(settings: Settings, user_id: int, email: str) -> str:
    # 토큰 payload: 사용자 id/email + 만료시각(exp, 기본 2시간)
    expires = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expires_hours)
    payload = {"id": user_id, "email": email, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    # 서명 불일치/만료/형식 오류는 모두 JWTError
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def verify_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Authorization: Bearer <token> 헤더를 검증하는 FastAPI 의존성.

    - 헤더가 없거나 Bearer 형식이 아니면 403
    - 토큰이 잘못됐거나 만료되었으면 401
    - 성공 시 디코딩된 payload(dict) 반환
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=403, detail="Access denied. No token provided.")

    token = authorization.split(" ", 1)[1].strip()
    try:
        return decode_access_token(settings, token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
