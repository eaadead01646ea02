import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from cryptography.fernet import Fernet, InvalidToken
from loguru import logger
from pydantic import ValidationError

from pydantic_models.config.config_data import ConfigData

DEFAULT_CONFIG_PATH = Path(__file__).parents[2] / ".config" / "timecard_config.yaml"


def default_config_path() -> Path:
    """
    Pfad der Config-Datei: TIMECARD_CONFIG aus der Umgebung, sonst .config/timecard_config.yaml.
    """
    env_path = os.getenv("TIMECARD_CONFIG")
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


class Config:
    """
    Singleton für das Laden und Prüfen der Konfiguration.
    Nutzt statische Pydantic-Modelle für alle Abschnitte.
    Pfade werden einmalig beim Laden geprüft ("prüfe einmal und dann traue").
    """

    _instance: Optional["Config"] = None

    def __new__(cls, config_path: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        # Fallback-Logger für Fehler beim Laden der Config
        logger.remove()
        logger.add(sys.stderr, level="WARNING")
        self.config_path = Path(config_path) if config_path else default_config_path()
        try:
            self.raw_config: Dict[str, Any] = self._load_config()
            self.data = ConfigData(**self.raw_config)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.error(f"Fehler beim Laden der Konfiguration: {e}")
            raise

        self.logging = self.data.logging
        self._setup_logging()
        logger.debug(f"Konfiguration geladen von {self.config_path}")

        self.structure = self.data.structure
        self.templates = self.data.templates
        self.converter = self.data.converter
        self.delivery = self.data.delivery
        self.output = self.data.output
        self.server = self.data.server

        self._validate_structure_and_paths()
        logger.debug("Konfiguration erfolgreich geladen und validiert.")
        self._initialized = True

    def _setup_logging(self) -> None:
        """
        Initialisiert loguru mit den Einstellungen aus der Config-Datei.
        """
        logger.remove()
        log_file = self.logging.log_file
        log_level = self.logging.log_level
        if log_file:
            logger.add(log_file, level=log_level, rotation=self.logging.rotation, retention=self.logging.retention)
        logger.add(sys.stderr, level=log_level)

    def _load_config(self) -> Dict[str, Any]:
        """
        Lädt die YAML-Konfigurationsdatei. Eine leere Datei ergibt die Defaults.
        """
        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @property
    def prj_root(self) -> Path:
        # relative Angaben gelten ab dem Verzeichnis der Konfigurationsdatei
        root = Path(self.structure.prj_root).expanduser()
        if not root.is_absolute():
            root = self.config_path.parent / root
        return root.resolve()

    @property
    def template_file(self) -> Path:
        template_dir = self.prj_root / (self.structure.template_path or "templates")
        return template_dir / self.templates.timecard_template

    @property
    def output_dir(self) -> Path:
        return self.prj_root / (self.structure.output_path or "output")

    @property
    def tmp_dir(self) -> Optional[Path]:
        if not self.structure.tmp_path:
            return None
        return self.prj_root / self.structure.tmp_path

    def _validate_structure_and_paths(self) -> None:
        """
        Prüft einmalig alle Pfad- und Pflichtangaben. Scheitern die Prüfungen,
        wird die Konfiguration verworfen. Eine fehlende Vorlage ist beim Start nur
        eine Warnung; die Anfrage selbst scheitert dann mit einem Template-Fehler.
        """
        prj_root = self.prj_root
        if not prj_root.exists():
            logger.error(f"Projektwurzel existiert nicht: {prj_root}")
            raise FileNotFoundError(f"Projektwurzel nicht gefunden: {prj_root}")

        if not self.templates.timecard_template:
            logger.error("templates.timecard_template ist nicht gesetzt.")
            raise ValueError("templates.timecard_template ist Pflicht.")

        if not self.template_file.exists():
            logger.warning(f"Timecard-Template nicht gefunden: {self.template_file}")

        if self.tmp_dir is not None and not self.tmp_dir.exists():
            logger.warning(f"Temp-Verzeichnis existiert nicht und wird bei Bedarf angelegt: {self.tmp_dir}")

        if self.converter.enabled and not self.converter.command:
            logger.error("converter.command ist nicht gesetzt.")
            raise ValueError("converter.command ist Pflicht, wenn der Konverter aktiv ist.")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Roh-Wert aus der YAML-Datei per Punkt-Pfad, z. B. get("templates.layout.max_weeks").
        """
        node: Any = self.raw_config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                logger.debug(f"Config-Schlüssel '{key}' fehlt, verwende Default {default!r}")
                return default
            node = node[part]
        return node

    def get_secret(self, key: str, default: Any = None) -> Optional[str]:
        """Klartext-Secret aus der Umgebung (bzw. .env)."""
        value = os.getenv(key)
        logger.debug(f"Secret '{key}' {'gefunden' if value else 'nicht gesetzt'}.")
        return value if value is not None else default

    def get_decrypted_secret(
        self, key: str, fernet_key_env: str = "FERNET_KEY", default: Any = None
    ) -> Optional[str]:
        """
        Fernet-verschlüsseltes Secret aus der Umgebung (erzeugt mit encrypt_secret.py).
        Fehlen Secret oder Schlüssel, kommt der Default zurück; ein falscher
        Schlüssel oder ein beschädigtes Token ist dagegen ein Fehler.
        """
        token = os.getenv(key)
        fernet_key = os.getenv(fernet_key_env)
        if not token or not fernet_key:
            logger.debug(f"'{key}' oder '{fernet_key_env}' nicht gesetzt.")
            return default
        try:
            plain = Fernet(fernet_key.encode()).decrypt(token.encode()).decode()
        except (InvalidToken, ValueError) as e:
            logger.error(f"'{key}' konnte nicht entschlüsselt werden: {e}")
            raise RuntimeError(f"Entschlüsselung von '{key}' fehlgeschlagen") from e
        logger.debug(f"'{key}' entschlüsselt.")
        return plain


if __name__ == "__main__":
    config = Config()
    logger.info("Projektwurzel: {}", config.prj_root)
    logger.info("Template: {}", config.template_file)
