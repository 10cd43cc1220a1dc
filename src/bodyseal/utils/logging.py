import logging
import os
import sys

LOGGER_NAME = "bodyseal"

def get_logger():
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s"))
        logger.addHandler(h)
        logger.setLevel(os.getenv("BODYSEAL_LOG_LEVEL", "INFO").upper())
    return logger
