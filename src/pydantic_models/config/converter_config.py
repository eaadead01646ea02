from typing import Optional
from pydantic import BaseModel, Field

class ConverterConfig(BaseModel):
    """
    Einstellungen für die PDF-Konvertierung über LibreOffice.
    """
    enabled: bool = True
    command: Optional[str] = "soffice"
    timeout_seconds: float = Field(60.0, gt=0)
