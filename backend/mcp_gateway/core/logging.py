import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger("mcp-gateway")


def setup_logging(level: str = "INFO") -> logging.Logger:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger.setLevel(level.upper())
    return logger
