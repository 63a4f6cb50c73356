"""
Logging setup for the order registry: console output plus a daily
rotating file under the configured log directory.
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_dir: Optional[str] = ".run") -> logging.Logger:
    """Configure the root logger. Safe to call more than once."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)
    
    if not any(getattr(h, "_orderswap_console", False) for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._orderswap_console = True
        root_logger.addHandler(console)
    
    if log_dir:
        setup_log_rotation(log_dir)
    
    return root_logger


def setup_log_rotation(log_dir: str = ".run") -> Optional[TimedRotatingFileHandler]:
    """Setup daily log rotation for registry logs."""
    root_logger = logging.getLogger()
    filename = os.path.join(log_dir, "orderswap.log")
    
    for handler in root_logger.handlers:
        if isinstance(handler, TimedRotatingFileHandler) and handler.baseFilename == os.path.abspath(filename):
            return handler
    
    try:
        # Ensure log directory exists
        os.makedirs(log_dir, exist_ok=True)
        
        # Create rotating file handler
        handler = TimedRotatingFileHandler(
            filename=filename,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        
        # Add to root logger
        root_logger.addHandler(handler)
        
        logger.info("Log rotation configured (daily, keep 7 days)")
        return handler
        
    except Exception as e:
        logger.error(f"Failed to setup log rotation: {e}")
        return None


def configure_logging(cfg) -> logging.Logger:
    """Apply a RegistryConfig's log level and log directory."""
    return setup_logging(cfg.log_level, cfg.log_dir or None)
