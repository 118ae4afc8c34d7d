import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAIN_LOG_FILE = "portal-cli.log"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


def parse_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Level number for a name such as "debug" or "WARNING"."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else default


class LoggingConfig:
    """
    Where the portal writes its logs.

    The CLI logs to the console and to ``portal-cli.log``; grade changes also
    go to their own file (``audit.log``) through a specialized logger. Files
    live in ``PORTAL_LOG_DIR``, created on first use.
    """

    def __init__(self, logs_dir: Optional[str] = None):
        self.logs_dir = Path(logs_dir or os.getenv("PORTAL_LOG_DIR", "logs"))
        self._configured = False

    def _file_handler(self, log_file: str) -> logging.handlers.RotatingFileHandler:
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            self.logs_dir / log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return handler

    def setup_logging(
        self,
        log_level: str = "INFO",
        console_level: Optional[str] = None,
        file_level: Optional[str] = None,
    ) -> None:
        """
        Attach the console handler and the rotating main log file to the root logger.

        Only the first call has an effect.
        """
        if self._configured:
            return

        default = parse_level(log_level)
        console = parse_level(console_level, default)
        file = parse_level(file_level, default)

        root_logger = logging.getLogger()
        root_logger.setLevel(min(console, file))
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(console)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(console_handler)

        file_handler = self._file_handler(MAIN_LOG_FILE)
        file_handler.setLevel(file)
        root_logger.addHandler(file_handler)

        self._configured = True
        logging.getLogger(__name__).debug(
            f"Logging configured - Console: {logging.getLevelName(console)}, "
            f"File: {logging.getLevelName(file)}"
        )

    def create_specialized_logger(
        self, name: str, log_file: str, level: str = "INFO"
    ) -> logging.Logger:
        """
        A logger that also writes to ``log_file`` in the logs directory.

        Calling it again for the same file does not add a second handler.
        """
        logger = logging.getLogger(name)
        logger.setLevel(parse_level(level))

        log_path = str((self.logs_dir / log_file).absolute())
        if not any(
            isinstance(h, logging.handlers.RotatingFileHandler)
            and h.baseFilename == log_path
            for h in logger.handlers
        ):
            logger.addHandler(self._file_handler(log_file))
        return logger


_logging_config = LoggingConfig()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def create_specialized_logger(name: str, log_file: str, **kwargs) -> logging.Logger:
    return _logging_config.create_specialized_logger(name, log_file, **kwargs)


def configure_from_env() -> None:
    """Configure logging from LOG_LEVEL, CONSOLE_LOG_LEVEL and FILE_LOG_LEVEL."""
    _logging_config.setup_logging(
        log_level=os.getenv("LOG_LEVEL", "WARNING"),
        console_level=os.getenv("CONSOLE_LOG_LEVEL"),
        file_level=os.getenv("FILE_LOG_LEVEL", "INFO"),
    )
