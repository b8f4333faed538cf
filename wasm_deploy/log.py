"""Logging setup shared by the CLI and the pipeline steps."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level=logging.INFO, log_file: Optional[str] = None):
    """Setup basic logging configuration"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    # botocore logs every request at DEBUG.
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
    return logging.getLogger("wasm_deploy")
