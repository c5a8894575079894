"""Logging configuration with FIFO-style log file management."""

import logging
import os
from .config import LOG_FILE_NAME, LOG_MAX_BYTES, LOG_CHECK_INTERVAL, LOG_TRIM_TARGET_RATIO


class FIFOFileHandler(logging.FileHandler):
    """File handler that keeps a single log file trimmed from the top.

    Once the file grows past max_bytes, the oldest lines are dropped until
    it fits within LOG_TRIM_TARGET_RATIO of the limit.
    """

    def __init__(self, filename, max_bytes=LOG_MAX_BYTES, encoding='utf-8',
                 check_interval=LOG_CHECK_INTERVAL):
        os.makedirs(os.path.dirname(os.path.abspath(filename)), exist_ok=True)
        super().__init__(filename, mode='a', encoding=encoding)
        self.max_bytes = max_bytes
        self._check_interval = max(1, check_interval)
        self._write_count = 0

    def emit(self, record):
        """Write log record and trim file if it exceeds max size."""
        super().emit(record)
        self._write_count += 1

        # Size is only checked every N writes
        if self._write_count % self._check_interval == 0:
            self._trim_if_needed()

    def _trim_if_needed(self):
        """Trim log file to max_bytes by removing oldest entries."""
        try:
            if not os.path.exists(self.baseFilename):
                return
            file_size = os.path.getsize(self.baseFilename)
            if file_size <= self.max_bytes:
                return

            self.flush()
            with open(self.baseFilename, 'r', encoding=self.encoding) as f:
                lines = f.readlines()

            target_size = int(self.max_bytes * LOG_TRIM_TARGET_RATIO)

            start = 0
            current_size = file_size
            while current_size > target_size and start < len(lines) - 1:
                current_size -= len(lines[start].encode(self.encoding))
                start += 1

            with open(self.baseFilename, 'w', encoding=self.encoding) as f:
                f.writelines(lines[start:])
        except OSError:
            # Logging the failure here would recurse into this handler
            pass


def setup_logging(log_dir=None, level=logging.INFO):
    """Configure logging with FIFO file handler and console output.

    Args:
        log_dir: Directory for log file. If None, uses current directory.
        level: Level applied to both handlers.

    Returns:
        Logger instance
    """
    if log_dir is None:
        log_dir = os.getcwd()

    log_file = os.path.join(log_dir, LOG_FILE_NAME)
    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s')

    file_handler = FIFOFileHandler(log_file, max_bytes=LOG_MAX_BYTES, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[file_handler, console_handler],
        force=True,
    )

    return logging.getLogger("rvu_tracker")


logger = logging.getLogger("rvu_tracker")


__all__ = ['FIFOFileHandler', 'setup_logging', 'logger']
