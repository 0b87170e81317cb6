# app/core/logging.py
import logging

from app.core.config import get_settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging once per process.

    Uvicorn installs its own handlers; we only set the format and level for
    application loggers (``app.*``).
    """
    global _configured
    if _configured:
        return

    settings = get_settings()
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=settings.log_format,
    )
    # SQLAlchemy engine logging is noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
