import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure le logger racine (stderr) une seule fois.
    Les appels suivants ne font qu'ajuster le niveau.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_studybuddy", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._studybuddy = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # Bibliothèques trop bavardes en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
