# ------------------------------------------------------------
# models.py - SQLAlchemy ORM 모델 정의 (users/movies/comments/favorites)
# ------------------------------------------------------------

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Table, Text, func
from sqlalchemy.orm import relationship
from .db import Base  # Declarative Base: 모든 ORM 모델의 베이스 클래스


# ------------------------------
# user_favorites: 사용자 ↔ 영화 즐겨찾기 교차 테이블
# ------------------------------
# - (user_id, movie_id) 복합 PK
# - 중복 추가 방지는 catalog.toggle_favorite()에서 애플리케이션 레벨로 처리
user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("movie_id", Integer, ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True),
)


# ------------------------------
# Movie: 영화 테이블
# ------------------------------
class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    genre = Column(String(100))
    author = Column(String(255))

    # 댓글 평점의 평균(소수점 2자리). 댓글이 없으면 0
    # - 직접 입력받지 않고 catalog.recompute_rating()이 댓글 변경 때마다 다시 계산
    rating = Column(Float, nullable=False, default=0.0)

    video_url = Column(String(1000), nullable=False, index=True)
    image = Column(String(1000), nullable=False)

    # 1:N 댓글 관계
    # - order_by=Comment.id: 삽입 순서 유지 (삭제해도 나머지 순서는 그대로)
    # - cascade="all, delete-orphan": 영화가 삭제되거나 리스트에서 빠진 댓글은 함께 삭제
    comments = relationship(
        "Comment",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )


# ------------------------------
# Comment: 영화에 종속된 댓글 테이블
# ------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)

    # 작성자 식별자(문자열). users 테이블의 FK가 아님
    user = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)

    # 1~5 사이 정수. 범위 보정은 schemas.CommentIn 에서 수행
    rating = Column(Integer, nullable=False, default=3)

    movie = relationship("Movie", back_populates="comments")


# ------------------------------
# User: 사용자 테이블
# ------------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)

    # bcrypt 해시만 저장 (평문 저장 금지)
    password = Column(String(255), nullable=False)

    # 비밀번호 재설정 토큰/만료시각은 항상 함께 설정되고 함께 지워짐
    reset_password_token = Column(String(128), nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # 즐겨찾기 영화 목록 (Movie 쪽에는 역참조를 두지 않음)
    favorites = relationship("Movie", secondary=user_favorites, order_by="Movie.id")
