"""Logging setup for entry points. Library modules only ever call `logging.getLogger(__name__)`."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    # websockets logs every frame at DEBUG; only interesting when debugging the library itself
    logging.getLogger("websockets").setLevel(logging.INFO)
