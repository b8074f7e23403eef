# -----------------------------------------------------------
# users.py - 사용자 CRUD / 비밀번호 복구 / 즐겨찾기 REST 엔드포인트
# -----------------------------------------------------------

import logging
import secrets
import smtplib
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException  # APIRouter: 라우팅 모듈화 / Depends: 의존성 주입 / HTTPException: 에러 응답
from sqlalchemy.orm import Session                     # SQLAlchemy ORM 세션 타입 힌트

from .. import catalog
from ..db import EntityId, get_db                                # DB 세션 의존성 (요청마다 세션 열고 응답 후 닫음)
from ..mailer import Mailer, get_mailer
from ..models import User
from ..schemas import (
    FavoritesOut,
    FavoriteToggleOut,
    MessageOut,
    RecoverPasswordIn,
    ResetPasswordIn,
    UserCreate,
    UserMessageOut,
    UserOut,
    UserUpdate,
)
from ..security import hash_password

logger = logging.getLogger(__name__)

# 재설정 토큰 유효시간: 1시간
RESET_TOKEN_TTL = timedelta(hours=1)

# 이 모듈의 엔드포인트는 "/api/users"로 시작
router = APIRouter(prefix="/api/users", tags=["users"])


def _utcnow() -> datetime:
    # DB에는 naive UTC 로 저장
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


@router.post("", response_model=UserMessageOut, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """
    회원가입.
    - 필수 필드/이메일 형식/비밀번호 규칙은 UserCreate 스키마에서 검증 (실패 시 400)
    - 이미 등록된 이메일이면 409
    - 비밀번호는 저장 직전에 hash_password()로 명시적으로 해시
    """
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=409, detail="Correo ya registrado")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        age=payload.age,
        email=payload.email,
        password=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {"message": "Usuario creado con éxito", "user": user}


@router.get("", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id).all()  # SELECT * FROM users


# 주의: "/recover-password", "/reset-password" 는 "/{user_id}" 계열보다 먼저 선언
@router.post("/recover-password", response_model=MessageOut)
def recover_password(
    payload: RecoverPasswordIn,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    비밀번호 복구 메일 발송.
    1) 이메일로 사용자 조회 (없으면 404)
    2) 랜덤 토큰 + 1시간 만료시각을 함께 저장
    3) 재설정 링크를 메일로 발송 (메일 설정이 없으면 503, 발송 실패는 502)
    """
    if not mailer.configured:
        raise HTTPException(status_code=503, detail="Mail service not configured")

    user = db.query(User).filter(User.email == payload.email).one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    token = secrets.token_hex(32)
    user.reset_password_token = token
    user.reset_password_expires = _utcnow() + RESET_TOKEN_TTL
    db.commit()

    try:
        mailer.send_recovery_email(user.email, token)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send recovery email to %s", user.email)
        raise HTTPException(status_code=502, detail="No se pudo enviar el correo de recuperación")

    return {"message": "Correo de recuperación enviado"}


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    """
    토큰으로 비밀번호 재설정.
    - 토큰이 일치하고 만료시각이 현재보다 미래여야 함 (아니면 400)
    - 성공 시 새 비밀번호를 해시해 저장하고, 토큰/만료시각을 함께 지움
    """
    user = (
        db.query(User)
        .filter(
            User.reset_password_token == payload.token,
            User.reset_password_expires > _utcnow(),
        )
        .one_or_none()
    )
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    user.password = hash_password(payload.new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.commit()

    return {"message": "Contraseña cambiada con éxito"}


@router.put("/{user_id}", response_model=UserMessageOut)
def update_user(user_id: EntityId, payload: UserUpdate, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    updates = payload.model_dump(exclude_unset=True)
    # null 로 보낸 필수 필드는 무시 (NOT NULL 컬럼)
    updates = {k: v for k, v in updates.items() if v is not None}

    if "email" in updates and _email_taken(db, updates["email"], exclude_id=user_id):
        raise HTTPException(status_code=409, detail="Correo ya registrado")
    if "password" in updates:
        updates["password"] = hash_password(updates["password"])

    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    return {"message": "Usuario actualizado con éxito", "user": user}


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(user_id: EntityId, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    db.delete(user)
    db.commit()
    return {"message": "Usuario eliminado correctamente"}


# -----------------------------------------------------------
# 즐겨찾기 (사용자 ↔ 영화)
# -----------------------------------------------------------
@router.post("/{user_id}/favorites/{movie_id}", response_model=FavoriteToggleOut)
def toggle_favorite(user_id: EntityId, movie_id: EntityId, db: Session = Depends(get_db)):
    """
    즐겨찾기 토글: 없으면 추가, 있으면 제거.
    같은 (user, movie)로 두 번 호출하면 원래 상태로 돌아옵니다.
    """
    try:
        added = catalog.toggle_favorite(db, user_id, movie_id)
    except catalog.UserNotFound:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")
    except catalog.MovieNotFound:
        raise HTTPException(status_code=404, detail="Película no encontrada")

    favorites = [m.id for m in catalog.list_favorites(db, user_id)]
    message = "Película añadida a favoritos" if added else "Película eliminada de favoritos"
    return {"message": message, "favorites": favorites}


@router.get("/{user_id}/favorites", response_model=FavoritesOut)
def get_favorites(user_id: EntityId, db: Session = Depends(get_db)):
    try:
        favorites = catalog.list_favorites(db, user_id)
    except catalog.UserNotFound:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    return {"message": "Favoritos obtenidos con éxito", "favorites": favorites}
