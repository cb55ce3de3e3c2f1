import logging, logging.config


def setup_logging(level: str = "INFO", access_log: bool = True):
    """Route app, uvicorn and library loggers to stderr."""
    level = level.upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%Y-%m-%d %H:%M:%S"},
            # Uvicorn access lines arrive already formatted
            "bare": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
            "access": {"class": "logging.StreamHandler", "formatter": "bare"},
        },
        "loggers": {
            "nextup": {"level": level},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO" if access_log else "WARNING",
                               "handlers": ["access"], "propagate": False},
            "stripe": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console"]},
    })
