import logging
import os
from typing_extensions import override

from rich.console import Console
from rich.markup import escape

_console = Console(stderr=True)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_log_level() -> tuple[int, bool]:
    """Get the log level and verbosity from `LOG_LEVEL` and `VERBOSE_LOGS`.

    Verbose logs include the source location of every record and are on by
    default only for debug logs.
    """
    level_str = os.environ.get("LOG_LEVEL", "info")

    try:
        level = LOG_LEVELS[level_str.lower()]
    except KeyError:
        level = logging.INFO
        _console.print(
            f"Warning: invalid log level `{level_str}`, expected one of: {', '.join(LOG_LEVELS)}, defaulting to INFO",
            markup=False,
        )

    match os.environ.get("VERBOSE_LOGS", ""):
        case "":
            verbose = level == logging.DEBUG
        case "0":
            verbose = False
        case _:
            verbose = True

    return level, verbose


class LogFormatter(logging.Formatter):
    """A custom formatter for `setup_logging`."""

    def __init__(self, verbose: bool = False):
        super().__init__()

        self.verbose: bool = verbose

    @override
    def format(self, record: logging.LogRecord) -> str:
        dim_color = "dim white"
        default_color = "white"

        match record.levelno:
            case logging.DEBUG:
                head_color = dim_color
                message_color = dim_color
                name = "Debug"
            case logging.INFO:
                head_color = "blue"
                message_color = default_color
                name = "Info"
            case logging.WARNING:
                head_color = "yellow"
                message_color = default_color
                name = "Warning"
            case logging.ERROR | logging.CRITICAL:
                head_color = "red"
                message_color = "red"
                name = "Error"
            case _:
                return logging.Formatter().format(record)

        # Messages contain paths and brackets which must not be read as markup.
        text = escape(record.getMessage())
        message = f"[{head_color}]{name}[/{head_color}][{message_color}]: {text}[/{message_color}]"

        if self.verbose:
            message = f"{message}\n\
-> [{dim_color}]{record.pathname}:{record.funcName}:{record.lineno}[/{dim_color}]"

        with _console.capture() as capture:
            _console.print(message, end="")

        return capture.get()


def setup_logging() -> None:
    """Configure the root logger."""
    logger = logging.getLogger()

    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    level, verbose = get_log_level()

    handler.setFormatter(LogFormatter(verbose))
    logger.setLevel(level)

    logger.addHandler(handler)
