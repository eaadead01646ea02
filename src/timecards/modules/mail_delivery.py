from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from pydantic_models.config.delivery_config import DeliveryConfig
from pydantic_models.data.timecard_request import DeliveryRequest
from shared_modules.config import Config
from timecards.modules.errors import DeliveryError

ATTACHMENT_TYPES = {
    ".xlsx": ("application", "vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    ".pdf": ("application", "pdf"),
    ".zip": ("application", "zip"),
}


class DeliveryReceipt(BaseModel):
    recipients: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    message: str = ""


def smtp_password(config: Config) -> Optional[str]:
    """
    SMTP-Passwort aus der Umgebung: SMTP_PASSWORD_ENC (Fernet, FERNET_KEY) oder SMTP_PASSWORD (Klartext).
    """
    try:
        password = config.get_decrypted_secret("SMTP_PASSWORD_ENC")
    except RuntimeError as exc:
        raise DeliveryError(f"SMTP-Passwort konnte nicht entschlüsselt werden: {exc}") from exc
    return password or config.get_secret("SMTP_PASSWORD")


class SmtpMailer:
    """
    Versendet die erzeugte Timecard per E-Mail über SMTP.
    'smtp_factory' ist austauschbar, Standard ist smtplib.SMTP.
    """

    def __init__(
        self,
        settings: DeliveryConfig,
        password: Optional[str] = None,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ):
        self.settings = settings
        self.password = password
        self.smtp_factory = smtp_factory

    def _check_configured(self) -> str:
        if not self.settings.smtp_host:
            logger.error("delivery.smtp_host ist nicht gesetzt.")
            raise DeliveryError("SMTP ist nicht konfiguriert.")
        if self.settings.smtp_user and not self.password:
            logger.error("SMTP_PASSWORD_ENC oder SMTP_PASSWORD muss gesetzt sein.")
            raise DeliveryError("SMTP-Passwort fehlt.")
        sender = self.settings.sender or self.settings.smtp_user
        if not sender:
            raise DeliveryError("Kein Absender (delivery.sender oder delivery.smtp_user) konfiguriert.")
        return sender

    def build_message(self, sender: str, message: DeliveryRequest, attachments: Sequence[Path]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = sender
        msg["To"] = ", ".join(message.to)
        if message.cc:
            msg["Cc"] = ", ".join(message.cc)
        msg["Subject"] = message.subject
        msg.set_content(message.body or "")
        for path in attachments:
            maintype, subtype = ATTACHMENT_TYPES.get(path.suffix.lower(), ("application", "octet-stream"))
            msg.add_attachment(path.read_bytes(), maintype=maintype, subtype=subtype, filename=path.name)
        return msg

    def send(self, message: DeliveryRequest, attachments: Sequence[Path]) -> DeliveryReceipt:
        sender = self._check_configured()
        msg = self.build_message(sender, message, attachments)
        recipients = list(message.to) + list(message.cc)
        logger.info(f"Versende Timecard für {message.employee_name} an {', '.join(recipients)}")
        try:
            with self.smtp_factory(
                self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.timeout_seconds
            ) as smtp:
                if self.settings.use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if self.settings.smtp_user:
                    smtp.login(self.settings.smtp_user, self.password)
                smtp.send_message(msg, from_addr=sender, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"E-Mail-Versand fehlgeschlagen: {exc}")
            raise DeliveryError(f"E-Mail-Versand fehlgeschlagen: {exc}") from exc

        return DeliveryReceipt(
            recipients=recipients,
            attachments=[path.name for path in attachments],
            message=f"E-Mail an {', '.join(message.to)} gesendet",
        )
