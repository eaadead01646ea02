from pydantic import BaseModel, Field

from .structure_config import StructureConfig
from .logging_config import LoggingConfig
from .templates_config import TemplatesConfig
from .converter_config import ConverterConfig
from .delivery_config import DeliveryConfig
from .output_config import OutputConfig
from .server_config import ServerConfig


class ConfigData(BaseModel):
    """
    Modell für die gesamte Konfiguration des Projekts.
    Das sind die Sektionen in der Config-Datei; fehlende Sektionen fallen auf die Defaults zurück.
    """
    structure: StructureConfig = Field(default_factory=StructureConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
