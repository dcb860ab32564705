#!/usr/bin/env python3

"""Global utility functions."""

import logging
import logging.handlers
import pathlib
import sys
from typing import Optional

# Return code for operations which modify the database. Zero means that
# nothing happened, a positive value signals success.
DefaultReturnCode = int


class ConfigError(RuntimeError):
    """
    Exception for signalling an unusable configuration, like a missing config
    file or a login role without password entry.
    """


def n_(x: str) -> str:
    """
    Alias of the identity for i18n.
    Identity function that shadows the gettext alias to trick pybabel into
    adding string to the translated strings.
    """
    return x


def setup_logger(name: str, logfile_path: Optional[pathlib.Path],
                 log_level: int, syslog_level: int = None,
                 console_log_level: int = None) -> logging.Logger:
    """Configure the :py:mod:`logging` module.

    Since this works hierarchical, it should only be necessary to call this
    once and then every child logger is routed through this configured logger.

    :param logfile_path: If this is None, no file handler is installed.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        logger.debug(f"Logger {name} already initialized.")
        return logger
    logger.propagate = False
    logger.setLevel(log_level)
    formatter = logging.Formatter(
        '[%(asctime)s,%(name)s,%(levelname)s] %(message)s')
    if logfile_path:
        file_handler = logging.FileHandler(str(logfile_path), delay=True)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    if syslog_level:
        syslog_handler = logging.handlers.SysLogHandler()
        syslog_handler.setLevel(syslog_level)
        syslog_handler.setFormatter(formatter)
        logger.addHandler(syslog_handler)
    if console_log_level:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
