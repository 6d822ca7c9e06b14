"""
Shared logging setup.
INFO records are printed as bare messages, everything else keeps level and logger name.
"""

import logging
import os

class CustomFormatter(logging.Formatter):
    def format(self, record):
        if record.levelno == logging.INFO:
            self._style._fmt = '%(message)s'
        else:
            self._style._fmt = '%(levelname)s [%(name)s] %(message)s'
        return super().format(record)

def get_logger(name: str) -> logging.Logger:
    """Return a module logger with the custom formatter attached once"""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
    return logger
