import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(app):
    """Attach console and (optionally) rotating file handlers to the package logger.

    Safe to call once per app instance; handlers are not duplicated when the
    test suite builds many apps in the same process.
    """
    logger = logging.getLogger('growlog')
    logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = app.config.get('LOG_DIR')
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        # 5MB max, keep 5 backups
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'growlog.log'),
            maxBytes=5 * 1024 * 1024,
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
