"""
Report delivery by email.

Mail goes out over SMTP with XOAUTH2 authentication. The access token is
obtained from a refresh token before connecting; nothing is retried.
"""

import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Optional

import requests

from .config import MailSettings

logger = logging.getLogger("dev-report.mailer")

TOKEN_TIMEOUT_SECONDS = 30


class MailDeliveryError(RuntimeError):
    """Raised when the mail transport cannot authenticate or send."""


def refresh_access_token(settings: MailSettings) -> str:
    """
    Exchange the refresh token for an access token.

    Raises:
        requests.HTTPError: If the token endpoint rejects the request
        MailDeliveryError: If the response carries no access token
    """
    response = requests.post(
        settings.token_url,
        data={
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
            "refresh_token": settings.refresh_token,
            "grant_type": "refresh_token",
        },
        timeout=TOKEN_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    data = response.json()
    token = data.get("access_token")
    if not token:
        raise MailDeliveryError(data.get("error_description") or "Token endpoint returned no access token")
    logger.debug("Obtained access token for %s", settings.user_email)
    return token


def xoauth2_string(user_email: str, access_token: str) -> str:
    return f"user={user_email}\x01auth=Bearer {access_token}\x01\x01"


class OAuth2Transport:
    """
    SMTP-over-TLS connection authenticated with XOAUTH2.

    Use as a context manager; the connection is closed on exit.
    """

    def __init__(self, settings: MailSettings, access_token: Optional[str] = None) -> None:
        self.settings = settings
        self.access_token = access_token
        self._server: Optional[smtplib.SMTP] = None

    def __enter__(self) -> "OAuth2Transport":
        if not self.access_token:
            self.access_token = refresh_access_token(self.settings)
        server = smtplib.SMTP_SSL(self.settings.smtp_host, self.settings.smtp_port)
        try:
            server.ehlo()
            auth = xoauth2_string(self.settings.user_email, self.access_token)
            server.auth("XOAUTH2", lambda challenge=None: auth)
        except smtplib.SMTPException as e:
            server.close()
            raise MailDeliveryError(f"SMTP authentication failed for {self.settings.user_email}: {e}") from e
        self._server = server
        logger.info("Authenticated to %s as %s", self.settings.smtp_host, self.settings.user_email)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._server is not None:
            try:
                self._server.quit()
            except smtplib.SMTPServerDisconnected:
                logger.debug("SMTP server already disconnected")
            self._server = None

    def send(self, message: EmailMessage) -> None:
        if self._server is None:
            raise MailDeliveryError("Transport is not connected")
        self._server.send_message(message)


def build_message(settings: MailSettings, subject: str, body: str, filename: str) -> EmailMessage:
    """Build a message carrying the report inline and as a Markdown attachment."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.user_email
    msg["To"] = ", ".join(settings.recipients)
    msg.set_content(body)
    msg.add_attachment(
        body.encode("utf-8"),
        maintype="text",
        subtype="markdown",
        filename=os.path.basename(filename),
    )
    return msg


def send_report(settings: MailSettings, subject: str, body: str, filename: str) -> None:
    """Send the rendered report to the configured recipients."""
    message = build_message(settings, subject, body, filename)
    with OAuth2Transport(settings, access_token=settings.access_token) as transport:
        transport.send(message)
    logger.info("Report emailed to %s", ", ".join(settings.recipients))
    print(f" 📧 Report sent to {', '.join(settings.recipients)}")
