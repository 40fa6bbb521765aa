import logging
import sys

# Loggers of the storage SDK's HTTP stack, chatty at INFO.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hpack")


class Log:
    """Process-wide logging facade.

    Every line carries the thread name, so output from the pool's workers,
    lease keepers and reaper can be told apart.
    """

    _logger: logging.Logger = logging.getLogger("wasteflow")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and install a single stdout handler."""
        level = log_level.upper()
        cls._logger.setLevel(level)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(message)s")
            )
            cls._logger.addHandler(handler)
        if level != "DEBUG":
            for name in _NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Error with the active exception's traceback. Call from an except block."""
        cls._logger.exception(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
