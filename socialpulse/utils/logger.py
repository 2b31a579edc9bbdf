import logging
import logging.handlers
import os
from datetime import datetime

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class DailyLogFileHandler(logging.handlers.WatchedFileHandler):
    """
    Writes to <base>/<YYYY>/<MM>/log-<YYYY-MM-DD>.log and moves to the next
    file on the first record of a new day. The file is opened lazily, so
    importing the logger never touches the disk.
    """

    def __init__(self, base_log_dir, encoding='utf-8'):
        self.base_log_dir = base_log_dir
        self.current_date = None
        super().__init__(self._path_for(datetime.now()), encoding=encoding, delay=True)

    def _path_for(self, moment):
        folder = os.path.join(self.base_log_dir, moment.strftime("%Y"), moment.strftime("%m"))
        os.makedirs(folder, exist_ok=True)
        return os.path.join(folder, f"log-{moment.strftime('%Y-%m-%d')}.log")

    def emit(self, record):
        try:
            now = datetime.now()
            today = now.strftime("%Y-%m-%d")
            if self.current_date != today:
                if self.stream and not self.stream.closed:
                    self.stream.close()
                self.current_date = today
                self.baseFilename = self._path_for(now)
                self.stream = self._open()

            super().emit(record)
        except Exception:
            self.handleError(record)


def get_base_log_dir():
    """APP_LOG_DIR, or storage/logs next to the package."""
    return os.environ.get("APP_LOG_DIR") or os.path.abspath(
        os.path.join(os.path.dirname(__file__), '../../storage/logs')
    )


def _build_logger(name="socialpulse"):
    logger = logging.getLogger(name)
    logger.setLevel(os.getenv("LOG_LEVEL", "DEBUG").upper())
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    # off for tests and read-only containers
    if os.getenv("APP_LOG_TO_FILE", "true").lower() == "true":
        handlers.append(DailyLogFileHandler(get_base_log_dir()))

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


Log = _build_logger()

__all__ = ["Log"]
