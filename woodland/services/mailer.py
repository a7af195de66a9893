from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from woodland.config import Settings, settings
from woodland.schemas.contact import ContactForm, JoinForm

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, config: Settings | None = None):
        self.config = config or settings
        self.enabled = self.config.email_enabled
        self.host = self.config.email_smtp_host
        self.port = self.config.email_smtp_port
        self.user = self.config.email_smtp_username
        self.passwd = self.config.email_smtp_password
        self.use_ssl = self.config.email_smtp_ssl
        self.use_starttls = self.config.email_smtp_starttls

    def send(
        self,
        subject: str,
        body_text: str,
        from_addr: str | None = None,
        to_addr: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """Send one plain-text message. Returns False when email is disabled."""
        if not self.enabled:
            logger.info("Email disabled; not sending %r", subject)
            return False

        msg = EmailMessage()
        from_addr = from_addr or self.config.email_from_addr
        to_addr = to_addr or self.config.email_to_addr
        msg["From"] = f"{self.config.email_from_name} <{from_addr}>"
        msg["To"] = to_addr
        if reply_to:
            msg["Reply-To"] = reply_to
        msg["Subject"] = subject
        msg.set_content(body_text)

        if self.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, context=context) as smtp:
                if self.user:
                    smtp.login(self.user, self.passwd)
                smtp.send_message(msg)
            return True

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_starttls:
                context = ssl.create_default_context()
                smtp.starttls(context=context)
            if self.user:
                smtp.login(self.user, self.passwd)
            smtp.send_message(msg)
        return True

    def send_password_reset(self, to_addr: str, name: str, token: str) -> bool:
        url = f"{self.config.base_url}/reset-password?token={token}"
        minutes = self.config.password_reset_expires_minutes
        body = (
            f"{name or to_addr},\n\n"
            "We received a request to reset your password.\n"
            f"Open the link below within {minutes} minutes to choose a new one:\n\n"
            f"{url}\n\n"
            "If you did not ask for this, you can ignore this message.\n\n"
            f"{self.config.site_name}\n"
        )
        return self.send(
            f"[{self.config.site_name}] Password reset", body, to_addr=to_addr
        )

    def send_invitation(self, to_addr: str, name: str, token: str) -> bool:
        url = f"{self.config.base_url}/verify?token={token}"
        body = (
            f"{name},\n\n"
            f"An account has been created for you on {self.config.site_name}.\n"
            "Open the link below to set your password and activate it:\n\n"
            f"{url}\n\n"
            f"The link expires in {self.config.verification_expires_hours} hours.\n"
        )
        return self.send(
            f"[{self.config.site_name}] Activate your account", body, to_addr=to_addr
        )

    def send_contact(self, form: ContactForm) -> bool:
        body = (
            f"Name: {form.name}\n"
            f"Email: {form.email}\n"
            f"Member: {form.member_type.value}\n"
            f"Subject: {form.subject}\n\n"
            f"{form.message}\n"
        )
        return self.send(f"[Contact] {form.subject}", body, reply_to=str(form.email))

    def send_join_application(self, form: JoinForm) -> bool:
        lines = [
            f"Membership: {form.member_type.value}",
            f"Name: {form.name} ({form.furigana})",
            f"Email: {form.email}",
            f"Tel: {form.tel}",
            f"Address: {form.address}",
            f"Birth date: {form.birth_date}",
            f"Occupation: {form.occupation or '-'}",
            "",
            "Experience:",
            form.experience or "-",
            "",
            "Motivation:",
            form.motivation,
        ]
        return self.send(
            f"[Membership application] {form.name}",
            "\n".join(lines) + "\n",
            reply_to=str(form.email),
        )


mailer = Mailer()


def get_mailer() -> Mailer:
    return mailer
