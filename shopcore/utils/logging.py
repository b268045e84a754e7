# shopcore/utils/logging.py
import logging

from shopcore.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=LOG_LEVEL, format=_FORMAT)

#osobny logger dla zdarzen bezpieczenstwa (np. zly podpis platnosci)
SECURITY_LOGGER = "shopcore.security"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_security_logger() -> logging.Logger:
    return logging.getLogger(SECURITY_LOGGER)
