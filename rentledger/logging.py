import logging

from rich.console import Console
from rich.logging import RichHandler

from rentledger.settings import settings

# Libraries that are chatty below WARNING.
QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine")


def _json_handler() -> logging.Handler:
    from pythonjsonlogger.json import JsonFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields={"app": "rentledger"},
        )
    )
    return handler


def _console_handler() -> logging.Handler:
    # Logs go to stderr so they never interleave with the menus on stdout.
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    return handler


def configure_logging() -> None:
    """Install one root handler: JSON lines when ``log_json`` is set, rich console output otherwise."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(_json_handler() if settings.log_json else _console_handler())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
