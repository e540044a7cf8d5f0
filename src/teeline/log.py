"""Logging to STDERR. All diagnostics go through here, never to stdout."""

from __future__ import annotations
import logging
import sys


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)  # stdout carries data only
        fmt = logging.Formatter("%(name)s: %(levelname)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger
