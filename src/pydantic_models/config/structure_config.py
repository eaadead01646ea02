from typing import Optional
from pydantic import BaseModel

class StructureConfig(BaseModel):
    """
    Modell für die Struktur-Konfiguration des Projekts.

    Attribute:
        prj_root (str): Wurzelverzeichnis des Projekts. Relative Angaben gelten ab dem
            Verzeichnis der Konfigurationsdatei.
        template_path (Optional[str]): Pfad zum Template-Verzeichnis (Standard: "templates").
        output_path (Optional[str]): Pfad zum Ausgabeverzeichnis der CLI (Standard: "output").
        tmp_path (Optional[str]): Basis für die temporären Arbeitsverzeichnisse pro Anfrage.
            Ohne Angabe wird das System-Temp-Verzeichnis verwendet.
    """
    prj_root: str = "."
    template_path: Optional[str] = "templates"
    output_path: Optional[str] = "output"
    tmp_path: Optional[str] = None
