import inspect
import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

PACKAGE_LOGGER = "kgload"
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"


class PprintLogger:
    """A logger wrapper that pretty-prints structured messages.

    Upload summaries and reports are Pydantic models; logging them directly
    shows their JSON dump instead of a one-line repr.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        if not pprint or isinstance(msg, str):
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120)

    def _log(self, level: int, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.log(level, self._format_message(msg, pprint=pprint), *args, stacklevel=3, **kwargs)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, pprint=pprint, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, pprint=pprint, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, pprint=pprint, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, pprint=pprint, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, pprint=pprint, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def setup_logging(level: int | None = None, name: str | None = None) -> PprintLogger:
    """Configure the package logger and return a PprintLogger.

    A stream handler is attached to the ``kgload`` logger once, so every
    ``logging.getLogger(__name__)`` inside the package reports through it.
    When `level` is None the level already configured is kept (INFO if none
    was). The returned logger is a child of ``kgload`` named after `name`, or
    after the calling function when `name` is None.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if level is None:
        level = package_logger.level or logging.INFO
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    if name is None:
        frame = inspect.currentframe().f_back  # type: ignore[union-attr]
        name = f"{PACKAGE_LOGGER}.{frame.f_code.co_name}"  # type: ignore[union-attr]
    return PprintLogger(logging.getLogger(name))
