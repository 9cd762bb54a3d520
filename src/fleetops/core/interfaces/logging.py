from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Logging seam used by core code.

    Messages are either preformatted f-strings or %-style templates with
    `args`; implementations must not format eagerly when the level is off.
    """

    @abstractmethod
    def debug(self, msg: str, *args):
        pass

    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args):
        pass

    @abstractmethod
    def error(self, msg: str, *args):
        pass

    @abstractmethod
    def exception(self, msg: str, *args):
        """Log at ERROR level with the active exception's traceback attached."""
        pass
