"""
RegimePulse – Logging configuration
====================================
Formato legible de una línea por evento. Todos los módulos obtienen su
logger vía get_logger() y comparten el namespace "regimepulse.*", así el
nivel del motor se ajusta sin tocar el de las librerías.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# websockets loguea cada frame en DEBUG; urllib3 cada conexión REST
NOISY_LOGGERS = ("websockets", "uvicorn.access", "urllib3")


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configura el root logger al arranque.

    Acepta nivel numérico o nombre ("DEBUG", "info"). Llamarla de nuevo
    solo cambia el nivel: nunca duplica el handler.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"regimepulse.{name}")
