# --------------------------------------------------------------
# mailer.py - 비밀번호 복구 메일 발송 (SMTP over SSL)
# --------------------------------------------------------------

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from fastapi import Request

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP(SSL) 로 비밀번호 재설정 링크를 보냅니다. 계정 정보가 없으면 configured=False."""

    def __init__(
        self,
        user: Optional[str],
        password: Optional[str],
        host: str = "smtp.gmail.com",
        port: int = 465,
        frontend_url: str = "http://localhost:5173",
        timeout: float = 30.0,
    ):
        self.user = user
        self.password = password
        self.host = host
        self.port = port
        self.frontend_url = frontend_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def recovery_url(self, token: str) -> str:
        return f"{self.frontend_url}/change-password?token={token}"

    def send_recovery_email(self, email: str, token: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = "Recuperación de contraseña"
        msg["From"] = self.user
        msg["To"] = email
        msg.set_content(
            "Para recuperar tu contraseña, haz clic en el siguiente enlace: "
            f"{self.recovery_url(token)}"
        )

        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(msg)
        logger.info("Recovery email sent to %s", email)


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
