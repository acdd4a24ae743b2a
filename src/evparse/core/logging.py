import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Silent until the host application opts in; its own sinks are left alone.
logger.disable("evparse")

_console_sink_id: int | None = None


def _stderr_sink(message: str) -> None:
    # Resolve sys.stderr per message so redirected streams (CLI runners, pytest) are honored.
    sys.stderr.write(message)


def _add_console_sink(level: str) -> int:
    return logger.add(_stderr_sink, format=CONSOLE_FORMAT, level=level, colorize=sys.stderr.isatty())


def configure_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Enable evparse logging with a console sink at `level`.

    The first call drops loguru's default handler; later calls only replace
    the console sink installed here. `log_file` adds a rotating file sink.
    """
    global _console_sink_id
    if _console_sink_id is None:
        # Remove default logger
        logger.remove()
    else:
        logger.remove(_console_sink_id)
    _console_sink_id = _add_console_sink(level)
    logger.enable("evparse")
    if log_file:
        logger.add(
            log_file,
            rotation="100 MB",
            retention="7 days",
            format=FILE_FORMAT,
            level=level,
            backtrace=True,
            diagnose=False,
        )


__all__ = ["logger", "configure_logging"]
