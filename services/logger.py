import logging
import sys
import os
from datetime import datetime

import services.util as u

# ANSI color codes
COLORS = {
    'DBG': '\033[36m',   # cyan
    'INF': '\033[32m',   # green
    'WRN': '\033[33m',   # yellow
    'ERR': '\033[31m',   # red
    'CRT': '\033[91m\033[1m',  # bold bright red
    'RST': '\033[0m'
}

# Whether stdout is a terminal
IS_TTY = sys.stdout.isatty()

# Console threshold, e.g. DRIVERS_LOG_LEVEL=DEBUG
LOG_LEVEL = (u.get_env('DRIVERS_LOG_LEVEL') or 'INFO').strip().upper()

# File logging is only enabled when a directory is configured
LOG_DIR = u.get_env('DRIVERS_LOG_DIR')


class CustomFormatter(logging.Formatter):
    replaces = {
        'DEBUG': '[DBG]',
        'INFO': '[INF]',
        'WARNING': '[WRN]',
        'ERROR': '[ERR]',
        'CRITICAL': '[CRT]'
    }

    def format(self, record):
        timestamp = datetime.now().strftime('[%Y-%m-%d %H:%M:%S]')
        levelname = record.levelname

        # Replaced level tag, e.g. [DBG]
        level = self.replaces.get(levelname, f'[{levelname}]')

        if level.startswith('[') and len(level) >= 4:
            color_key = level[1:4]
        else:
            color_key = levelname.upper()[:3]

        if IS_TTY and color_key in COLORS:
            colored_level = COLORS[color_key] + level + COLORS['RST']
        else:
            colored_level = level

        try:
            file = os.path.relpath(record.pathname)
        except ValueError:
            file = record.pathname

        line = record.lineno
        message = record.getMessage()

        return f"{timestamp} {colored_level} | {file}:{line} | {message}"


def _make_file_handler(log_dir: str) -> logging.FileHandler:
    os.makedirs(log_dir, exist_ok=True)
    # File name like 20250915-150316160.log (millisecond precision)
    filename = datetime.now().strftime("%Y%m%d-%H%M%S%f")[:-3] + ".log"
    handler = logging.FileHandler(os.path.join(log_dir, filename), encoding='utf-8')
    handler.setFormatter(logging.Formatter(
        '[%(asctime)s] [%(levelname)s] | %(filename)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    handler.setLevel(logging.DEBUG)  # file receives every level
    return handler


# Main logger
logger = logging.getLogger('drivers')
logger.setLevel(logging.DEBUG)

# Drop existing handlers to avoid duplicates on re-import
if logger.handlers:
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
logger.propagate = False

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(CustomFormatter())
console_handler.setLevel(logging.getLevelNamesMapping().get(LOG_LEVEL, logging.INFO))
logger.addHandler(console_handler)

if LOG_DIR:
    logger.addHandler(_make_file_handler(LOG_DIR.strip()))


def get_logger(name=None):
    """Return the configured logger (currently one shared instance)."""
    return logger
