import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from pydantic_models.data.timecard_request import TimecardRequest
from shared_modules.config import Config
from shared_modules.utils import ensure_dir
from timecards.modules.errors import TimecardError
from timecards.modules.timecard_processor import TimecardProcessor


def main(argv: Optional[List[str]] = None) -> int:
    """
    Einstiegspunkt für die Kommandozeile: liest eine Timecard-Anfrage (JSON)
    und schreibt das Ergebnis (xlsx bzw. zip) ins Ausgabeverzeichnis.

    Aufruf: python generate_timecard.py <anfrage.json> [ausgabeverzeichnis]
    """
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Bitte Pfad zur Anfrage-Datei (JSON) übergeben.")
        return 2

    request_file = Path(args[0])
    config = Config()
    output_dir = ensure_dir(Path(args[1]) if len(args) > 1 else config.output_dir)

    try:
        with open(request_file, "r", encoding="utf-8") as f:
            request = TimecardRequest.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error(f"Anfrage {request_file} konnte nicht gelesen werden: {exc}")
        return 1

    try:
        bundle = TimecardProcessor(config).generate(request)
    except TimecardError as exc:
        logger.error(f"Timecard konnte nicht erzeugt werden: {exc}")
        return 1

    target = output_dir / bundle.filename
    target.write_bytes(bundle.content)
    logger.success(f"Timecard gespeichert: {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
