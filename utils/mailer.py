"""SMTP mailer for verification and password-reset messages."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Environment

logger = logging.getLogger(__name__)

# Autoescaped: the name comes straight from registration input
_html = Environment(autoescape=True)

_BUTTON_TEMPLATE = _html.from_string("""<div style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: Arial, sans-serif;">
  <h2 style="color: #333; text-align: center;">{{ title }}</h2>
  <p>Hello {{ name }},</p>
  <p>{{ intro }}</p>
  <div style="text-align: center; margin: 30px 0;">
    <a href="{{ url }}" style="background-color: {{ color }}; color: white; padding: 12px 24px;
       text-decoration: none; border-radius: 5px; display: inline-block;">{{ button }}</a>
  </div>
  <p>If the button doesn't work, you can copy and paste this link into your browser:</p>
  <p style="word-break: break-all; color: #666;">{{ url }}</p>
  <p>This link will expire in {{ lifetime }}.</p>
  <p>{{ ignore }}</p>
</div>""")

_TEXT_TEMPLATE = """Hello {name},

{intro}
{url}

This link will expire in {lifetime}.

{ignore}
"""


class MailDeliveryError(Exception):
    pass


class Mailer:
    """
    Sends multipart (text + HTML) mail over SMTP.

    With suppress=True nothing leaves the process; messages are appended to
    self.outbox instead (used by the test suite).
    """

    def __init__(self, host: str, port: int = 587, username: str = "", password: str = "",
                 sender: str = "noreply@yourapp.com", use_tls: bool = True,
                 frontend_url: str = "http://localhost:3000", suppress: bool = False,
                 timeout: int = 30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.frontend_url = frontend_url.rstrip("/")
        self.suppress = suppress
        self.timeout = timeout
        self.outbox: list[dict] = []

    @classmethod
    def from_config(cls, config) -> "Mailer":
        return cls(
            host=config["MAIL_HOST"],
            port=config["MAIL_PORT"],
            username=config["MAIL_USERNAME"],
            password=config["MAIL_PASSWORD"],
            sender=config["MAIL_FROM"],
            use_tls=config["MAIL_USE_TLS"],
            frontend_url=config["FRONTEND_URL"],
            suppress=config["MAIL_SUPPRESS_SEND"],
        )

    def send(self, to: str, subject: str, html: str, text: str) -> None:
        if self.suppress:
            self.outbox.append({"to": to, "subject": subject, "html": html, "text": text})
            logger.info("Mail suppressed: %r to %s", subject, to)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                if self.use_tls:
                    server.starttls()
                    server.ehlo()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Error sending %r to %s: %s", subject, to, exc)
            raise MailDeliveryError(str(exc)) from exc
        logger.info("Mail sent: %r to %s", subject, to)

    def _send_link(self, user, subject: str, **parts) -> None:
        fields = dict(parts, name=user.first_name)
        self.send(
            to=user.email,
            subject=subject,
            html=_BUTTON_TEMPLATE.render(**fields),
            text=_TEXT_TEMPLATE.format(**fields),
        )

    def send_verification_email(self, user, token: str) -> None:
        self._send_link(
            user,
            "Verify Your Email Address",
            title="Email Verification",
            intro="Thank you for registering! Please click the link below to verify your email address:",
            url=f"{self.frontend_url}/verify-email?token={token}",
            color="#007bff",
            button="Verify Email Address",
            lifetime="24 hours",
            ignore="If you didn't create an account, please ignore this email.",
        )

    def send_password_reset_email(self, user, token: str) -> None:
        self._send_link(
            user,
            "Password Reset Request",
            title="Password Reset",
            intro="You requested a password reset. Please click the link below to reset your password:",
            url=f"{self.frontend_url}/reset-password?token={token}",
            color="#dc3545",
            button="Reset Password",
            lifetime="1 hour",
            ignore="If you didn't request a password reset, please ignore this email.",
        )
