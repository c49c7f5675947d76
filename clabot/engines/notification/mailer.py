"""Mailer — async SMTP email sending via asyncio.to_thread."""

from __future__ import annotations

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from clabot.config import SmtpSettings


class Mailer:
    """Thin async wrapper around smtplib SMTP + STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        user: str = "",
        password: str = "",
        from_addr: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr or user

    @classmethod
    def from_settings(cls, smtp: SmtpSettings) -> Mailer:
        return cls(
            host=smtp.host,
            port=smtp.port,
            user=smtp.user,
            password=smtp.password,
            from_addr=smtp.from_addr,
        )

    async def send(self, to: str, subject: str, html_body: str, text_body: str = "") -> None:
        """Send an HTML email (with optional plain-text part) in a background thread."""
        await asyncio.to_thread(self._send_sync, to, subject, html_body, text_body)

    def _send_sync(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to
        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.sendmail(self.from_addr, [to], msg.as_string())
