"""
Configuration for the chat response visualization engine.
Everything is read from the environment (or a local .env file).
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# Application Configuration
APP_CONFIG = {
    "debug": os.getenv("DEBUG", "true").lower() == "true",
    "name": "Chat Visualization Engine",
    "version": "1.0.0",

    # Server settings
    "host": os.getenv("HOST", "0.0.0.0"),
    "port": int(os.getenv("PORT", "8000")),

    # Empty means the API-key gate is disabled
    "api_key": os.getenv("API_KEY", ""),
}

# Logging Configuration
LOG_CONFIG = {
    "level": "INFO" if not APP_CONFIG["debug"] else "DEBUG",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "file": os.getenv("LOG_FILE", ""),
}

# Chart selection thresholds
VIZ_CONFIG = {
    "max_metrics": 6,
    "pie_max_rows": 8,
    "pie_dominance_threshold": 0.80,
    "list_max_items": 10,  # exclusive upper bound
    "list_label_max_length": 30,
    "min_time_series_points": 2,
}


def check_config():
    """Check configuration and provide helpful messages."""
    import logging

    logger = logging.getLogger(__name__)

    if not APP_CONFIG["api_key"]:
        logger.info("API_KEY not set. Endpoints are open (no X-API-Key check).")

    if APP_CONFIG["debug"]:
        logger.info(f"Starting {APP_CONFIG['name']} (Debug Mode)")
        logger.info(
            f"Pie guard: <= {VIZ_CONFIG['pie_max_rows']} rows, "
            f"max share < {VIZ_CONFIG['pie_dominance_threshold']:.0%}"
        )

    if LOG_CONFIG["file"]:
        logger.info(f"Logging to file: {LOG_CONFIG['file']}")


# Run config check on import
check_config()
