from typing import Optional
from pydantic import BaseModel

class DeliveryConfig(BaseModel):
    """
    SMTP-Zugang für den Mailversand. Das Passwort steht nie in der Config-Datei,
    sondern kommt aus SMTP_PASSWORD_ENC (Fernet) bzw. SMTP_PASSWORD.
    """
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    sender: Optional[str] = None
    use_tls: bool = True
    timeout_seconds: float = 30.0
