import logging

_NOISY_LOGGERS = (
    "engineio",
    "engineio.server",
    "socketio",
    "socketio.server",
    "sqlalchemy.engine",
    "aiosqlite",
    "uvicorn.access",
)


def configure_logging(debug: bool = False, level: str = "INFO") -> None:
    """Install the root handler once and quiet transport/database chatter."""

    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if debug:
        return
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
