from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

import aiosmtplib

logger = logging.getLogger("mailer")


class Mailer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        use_tls: bool,
        username: str | None,
        password: str | None,
        sender: str,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def build_message(self, *, to: str, subject: str, html: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=False)
        message["Message-ID"] = make_msgid()
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, *, to: str, subject: str, html: str, text: str) -> bool:
        message = self.build_message(to=to, subject=subject, html=html, text=text)
        auth = {}
        if self.username and self.password:
            auth = {"username": self.username, "password": self.password}
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                use_tls=self.use_tls,
                timeout=self.timeout,
                **auth,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email", exc_info=exc, extra={"smtp_host": self.host})
            return False
        logger.info("Email sent", extra={"smtp_host": self.host})
        return True
