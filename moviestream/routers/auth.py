# -----------------------------------------------------------
# auth.py - 로그인(JWT 발급) / 프로필 조회 엔드포인트
# -----------------------------------------------------------

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..models import User
from ..schemas import LoginIn, LoginOut, ProfileOut
from ..security import create_access_token, get_settings, verify_password, verify_token

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    이메일/비밀번호로 로그인하고 2시간짜리 JWT 를 발급합니다.

    - 등록되지 않은 이메일과 틀린 비밀번호는 같은 401 "Invalid credentials" 로 응답
      (어느 쪽이 틀렸는지 노출하지 않음)
    """
    user = db.query(User).filter(User.email == payload.email).one_or_none()
    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(settings, user.id, user.email)
    return {"message": "Login successful", "token": token, "user": user}


@router.get("/profile", response_model=ProfileOut)
def profile(claims: Dict[str, Any] = Depends(verify_token), db: Session = Depends(get_db)):
    # verify_token 이 헤더 누락(403) / 토큰 오류(401)를 먼저 걸러냄
    user_id = claims.get("id")
    user = db.get(User, user_id) if user_id is not None else None
    if not user:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")
    return {"user": user}
