from typing import Optional

from pydantic import BaseModel


class LoggingConfig(BaseModel):
    """
    loguru-Einstellungen. Ohne log_file wird nur nach stderr geloggt.
    rotation/retention werden unverändert an loguru übergeben (z. B. "10 MB", "10 days").
    """
    log_file: Optional[str] = "timecards.log"
    log_level: str = "INFO"
    rotation: Optional[str] = None
    retention: Optional[str] = None
