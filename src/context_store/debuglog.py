"""Debug logger that tags records with the application and call site.

Every message is rewritten to::

    [<app name>] [DEBUG] <<module>:<function>> <message>

before it reaches any handler.  Records propagate to the parent loggers
only while the logger is enabled; handlers attached directly to
:attr:`DebugLogger.logger` receive records either way.
Loggers are shared per application name.

Classes
-------
- DebugLogger  — ``logging.LoggerAdapter`` with the prefixed format
"""
from __future__ import annotations

import logging

_DEBUG_PREFIX = "DEBUG"
_LOGGER_NAMESPACE = "context_store.debug"


class _CallSiteFilter(logging.Filter):
    def __init__(self, app_name: str) -> None:
        super().__init__()
        self.app_name = app_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = (
            f"[{self.app_name}] [{_DEBUG_PREFIX}] "
            f"<{record.module}:{record.funcName}> {record.getMessage()}"
        )
        record.args = ()
        return True


class DebugLogger(logging.LoggerAdapter):
    """Logger for verbose diagnostics.

    Parameters
    ----------
    app_name:
        Name shown at the start of every message.
    enabled:
        Whether records are passed on to parent handlers.

    Like ``logging.getLogger``, instances created with the same
    ``app_name`` share one underlying logger, so ``enabled`` is shared
    too: constructing or toggling any of them sets it for all.
    """

    def __init__(self, app_name: str, enabled: bool = True) -> None:
        logger = logging.getLogger(f"{_LOGGER_NAMESPACE}.{app_name}")
        logger.setLevel(logging.DEBUG)
        if not any(isinstance(f, _CallSiteFilter) for f in logger.filters):
            logger.addFilter(_CallSiteFilter(app_name))
        super().__init__(logger, {})
        self.app_name = app_name
        self.enabled = enabled

    @property
    def enabled(self) -> bool:
        return self.logger.propagate

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.logger.propagate = value

    def __repr__(self) -> str:
        return f"DebugLogger(app_name={self.app_name!r}, enabled={self.enabled})"
