from __future__ import annotations

import logging

from talentgate.config import Settings, get_settings

# PDF rendering libraries log every CSS and font decision at INFO/DEBUG.
NOISY_LOGGERS: tuple[str, ...] = ("xhtml2pdf", "fontTools", "reportlab", "multipart")

_LOG_CONFIGURED = False


def configure_logging(settings: Settings | None = None) -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _LOG_CONFIGURED = True
