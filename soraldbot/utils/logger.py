"""
Logging configuration
"""
import logging
import sys

from soraldbot.core.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger("soraldbot")

if settings.DEBUG:
    logger.setLevel(logging.DEBUG)
