import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter

# Third-party loggers that are chatty at INFO.
NOISY_LOGGERS = ("botocore", "aiobotocore", "uvicorn.access")


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    handler.setFormatter(UTCJsonFormatter(fmt))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel("WARNING")
