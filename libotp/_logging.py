import logging

logger = logging.getLogger("libotp")
