"""
Shared logger configuration for the site mapper service.
"""

import os

from dotenv import find_dotenv, load_dotenv

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

_configured = False


def log_database_config(config, logger_instance=None):
    """Log database configuration details at debug level.

    Args:
        config: DatabaseConfig whose settings should be logged.
        logger_instance: Optional logger instance to use. If not provided, uses the default logger.
    """
    from loguru import logger
    log = logger_instance or logger

    # PostgreSQL Configuration
    log.debug("PostgreSQL Configuration:")
    log.debug(f"  Host: {config.postgres_host}")
    log.debug(f"  Port: {config.postgres_port}")
    log.debug(f"  Database: {config.postgres_db}")
    log.debug(f"  User: {config.postgres_user}")
    log.debug(f"  Password: {'set' if config.postgres_password else 'not set'}")

    # Redis Configuration
    log.debug("Redis Configuration:")
    log.debug(f"  Host: {config.redis_host}")
    log.debug(f"  Port: {config.redis_port}")
    log.debug(f"  DB: {config.redis_db}")


def setup_logger(name: str):
    """Configure logger for a service module.

    Sinks are installed once per process; later calls only bind a new name.

    Args:
        name: Name of the module for log identification

    Returns:
        Configured logger instance
    """
    from loguru import logger

    global _configured
    if not _configured:
        # .env from the working directory, read before the level is chosen
        load_dotenv(find_dotenv(usecwd=True))

        # Remove default logger
        logger.remove()

        log_level = os.getenv("LOG_LEVEL", "DEBUG")
        log_file = os.getenv("LOG_FILE", "server.log")

        # Add file handler with rotation and retention
        if log_file:
            logger.add(
                log_file,
                rotation="100 MB",
                retention="5 days",
                compression="zip",
                level=log_level,
                enqueue=True,  # Thread-safe logger
                format=_LOG_FORMAT,
            )

        # Add stderr handler for console output
        logger.add(
            lambda msg: print(msg, end="", flush=True),
            level=log_level,
            format=_LOG_FORMAT,
        )
        logger.configure(extra={"name": "site_mapper"})
        _configured = True

    return logger.bind(name=name)
