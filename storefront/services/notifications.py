# storefront/services/notifications.py
# Диспетчер уведомлений: одна попытка отправки письма, ошибки только в логах.
# Транспорт подключаемый; без SMTP_HOST диспетчер ничего не отправляет.
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from storefront.core.config import Settings, settings as default_settings
from storefront.core.errors import NotificationFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str
    attachment: Optional[Attachment] = None


class MailTransport(ABC):
    """Абстрактный транспорт почты."""

    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Отправляет письмо или бросает NotificationFailed."""
        ...


class SmtpMailTransport(MailTransport):
    def __init__(self, config: Settings):
        self.config = config

    def _build(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.config.SMTP_SENDER
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)
        if message.attachment is not None:
            maintype, _, subtype = message.attachment.mime_type.partition("/")
            email.add_attachment(
                message.attachment.content,
                maintype=maintype,
                subtype=subtype,
                filename=message.attachment.filename,
            )
        return email

    def send(self, message: MailMessage) -> None:
        email = self._build(message)
        try:
            with smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=self.config.SMTP_TIMEOUT) as smtp:
                if self.config.SMTP_USE_TLS:
                    smtp.starttls()
                if self.config.SMTP_USER:
                    smtp.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFailed(f"SMTP delivery to {message.to} failed: {e}") from e


class NotificationDispatcher:
    """Best-effort отправка: никогда не бросает исключения наверх."""

    def __init__(self, transport: Optional[MailTransport]):
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        attachment: Optional[Attachment] = None,
    ) -> bool:
        if not self.enabled:
            logger.info(f"Mail transport not configured, skipping '{subject}' to {to}")
            return True

        message = MailMessage(to=to, subject=subject, body=body, attachment=attachment)
        try:
            self.transport.send(message)
        except NotificationFailed as e:
            logger.error(f"❌ Notification failed: {e.detail}")
            return False
        except Exception as e:
            logger.error(f"❌ Notification to {to} failed: {e}", exc_info=True)
            return False

        logger.info(f"✅ Sent '{subject}' to {to}")
        return True


def build_dispatcher(config: Settings = default_settings) -> NotificationDispatcher:
    transport = SmtpMailTransport(config) if config.mail_configured else None
    return NotificationDispatcher(transport)
