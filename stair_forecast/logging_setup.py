import logging
import logging.handlers
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from stair_forecast.config import config

class Logger:
    """Logging manager for the Stair Forecast system.

    Every named logger writes to ``<log directory>/<name>.log`` and, when
    ``console_output`` is on, to stderr. Batch jobs (sheet uploads, seeding)
    additionally report start, duration and totals to the ``batch`` logger.
    """

    _instance = None
    _loggers = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        settings = config.log_config
        self._level = getattr(logging, settings['level'].upper(), logging.INFO)
        self._formatter = logging.Formatter(settings['format'])
        self._console = settings['console_output']
        self._max_bytes = settings['max_size_mb'] * 1024 * 1024
        self._backup_count = settings['backup_count']
        self._log_dir = Path(settings['directory'])
        self._log_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(self._level)
        root_logger.handlers = [self._console_handler()] if self._console else []

        self._app_logger = self.get_logger('app')
        self._initialized = True

    def _console_handler(self):
        handler = logging.StreamHandler()
        handler.setFormatter(self._formatter)
        return handler

    def _file_handler(self, name):
        # delay=True: no file is created until the first record
        handler = logging.handlers.RotatingFileHandler(
            self._log_dir / f"{name}.log",
            maxBytes=self._max_bytes,
            backupCount=self._backup_count,
            delay=True
        )
        handler.setFormatter(self._formatter)
        return handler

    def get_logger(self, name):
        """Get (and configure on first use) the logger for a name."""
        if name not in self._loggers:
            named_logger = logging.getLogger(name)
            named_logger.setLevel(self._level)
            named_logger.handlers = [self._file_handler(name)]
            if self._console:
                named_logger.addHandler(self._console_handler())
            named_logger.propagate = False
            self._loggers[name] = named_logger
        return self._loggers[name]

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with its stack trace on the named logger."""
        text = f"{message}: {exception}" if message else str(exception)
        self.get_logger(logger_name).error(text, exc_info=exception)

    @property
    def app_logger(self):
        return self._app_logger

    @contextmanager
    def batch(self, process_name, params=None):
        """Report a batch job (upload, seed) to the ``batch`` log.

        Args:
            process_name: Job name, e.g. 'forecast_upload'
            params: Job parameters recorded with the start line

        Yields:
            Dictionary the job fills with its totals; logged on completion

        A job that raises is logged as failed and the error propagates.
        """
        batch_logger = self.get_logger('batch')
        started = datetime.now()
        batch_logger.info(f"{process_name} started {params or ''}".rstrip())

        totals = {}
        try:
            yield totals
        except Exception:
            batch_logger.error(f"{process_name} failed after {datetime.now() - started}")
            raise

        batch_logger.info(f"{process_name} finished in {datetime.now() - started}")
        if totals:
            batch_logger.info(f"{process_name} totals: {totals}")

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
