import logging

from fleetops.core.interfaces.logging import LoggingPort
from fleetops.core.logging_config import coerce_level


class LoggingAdapter(LoggingPort):
    """LoggingPort backed by a named stdlib logger.

    Sinks, format and correlation ids belong to `configure_logging`; this
    adapter only sets its own level and lets records propagate to root.
    """

    def __init__(self, name: str = "fleetops", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(coerce_level(log_level))
        self.logger.propagate = True

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def exception(self, msg: str, *args):
        self.logger.exception(msg, *args)
