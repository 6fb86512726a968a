"""Logging setup for scripts and notebooks driving the circuit builders.

Library modules only call ``logging.getLogger(__name__)``; attaching a
handler is left to the application, which can use :func:`setup_logger`.
"""

import logging
import sys


def setup_logger(name: str = "zkgcm", level: int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to *name* once and return the logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', datefmt='%H:%M:%S')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
