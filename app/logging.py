"""
Logging configuration.

Level comes from LOG_LEVEL. The OpenAI SDK and its httpx transport log every model
request at INFO; the app already logs one line per analysis call with token usage
(app/services/analyze.py), so they are held at WARNING unless running at DEBUG.
"""
import logging
import sys

# Third-party loggers that duplicate app/services/analyze.py request logging
CHATTY_LOGGERS = ("openai", "httpx", "httpcore")


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    logging.getLogger("labreports").setLevel(level)
    logging.getLogger("app").setLevel(level)
    quiet = level if level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
