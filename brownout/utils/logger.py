# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# native lib
import getpass
import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum


class LogFormat(Enum):
    """The Enum class of the log format.

    Example:
        - ``LogFormat.full``: full time | host | user | pid | tag | level | msg
        - ``LogFormat.simple``: simple time | tag | level | msg
        - ``LogFormat.trace``: simulated time | tag | level | msg
    """
    full = 1
    simple = 2
    trace = 3
    none = 4


FORMAT_NAME_TO_FILE_FORMAT = {
    LogFormat.full: logging.Formatter(
        fmt='%(asctime)s | %(host)s | %(user)s | %(process)d | %(tag)s | %(levelname)s | %(message)s'),
    LogFormat.simple: logging.Formatter(
        fmt='%(asctime)s | %(tag)s | %(levelname)s | %(message)s', datefmt='%H:%M:%S'),
    LogFormat.trace: logging.Formatter(
        fmt='%(tag)s | %(levelname)-7s | %(message)s'),
    LogFormat.none: None
}

FORMAT_NAME_TO_STDOUT_FORMAT = {
    # Trace output is read next to the simulated clock, wall time is noise there.
    LogFormat.trace: logging.Formatter(fmt='%(message)s'),
}

level_map = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARN,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def msgformat(logfunc):
    """The decorator used to construct the log msg."""

    def _msgformatter(self, msg, *args):
        if args:
            logfunc(self, "%s %s", isinstance(msg, str) and msg or repr(msg), repr(args))
        else:
            logfunc(self, "%s", isinstance(msg, str) and msg or repr(msg))

    return _msgformatter


class Logger(object):
    """A simple wrapper for logging.

    The Logger hosts a stdout handler and, when ``dump_folder`` is given, a file
    handler. The file handler is set to ``DEBUG`` level and will dump all the
    logging info to ``dump_folder``. The logging level of the stdout handler is
    decided by the ``stdout_level``, and can be redirected by setting the
    environment variable ``LOG_LEVEL``.

    Example:
        ``$ export LOG_LEVEL=INFO``

    Args:
        tag (str): Log tag for stream and file output.
        format_ (LogFormat): Predefined formatter. Defaults to ``LogFormat.simple``.
        dump_folder (str): Log dumped folder. Defaults to None, which disables the
            file handler. The full path of the dumped log file is `dump_folder/tag.log`.
        dump_mode (str): Write log file mode. Defaults to ``w``. Use ``a`` to
            append log.
        extension_name (str): Final dumped file extension name. Defaults to `log`.
        auto_timestamp (bool): Add a timestamp to the dumped log file name or not.
            E.g: `tag.1574953673.137387.log`.
        stdout_level (str): the logging level of the stdout handler. Defaults to
            ``INFO``.
    """

    def __init__(
        self, tag: str, format_: LogFormat = LogFormat.simple, dump_folder: str = None, dump_mode: str = 'w',
        extension_name: str = 'log', auto_timestamp: bool = False, stdout_level="INFO"
    ):
        self._file_format = FORMAT_NAME_TO_FILE_FORMAT[format_]
        self._stdout_format = FORMAT_NAME_TO_STDOUT_FORMAT[format_] \
            if format_ in FORMAT_NAME_TO_STDOUT_FORMAT else \
            FORMAT_NAME_TO_FILE_FORMAT[format_]
        self._stdout_level = os.environ.get('LOG_LEVEL') or stdout_level
        if isinstance(self._stdout_level, str):
            self._stdout_level = level_map.get(self._stdout_level.upper(), logging.INFO)
        self._logger = logging.getLogger(tag)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._extension_name = extension_name

        # Several simulations may share a tag, only the latest handlers are kept.
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        if dump_folder is not None:
            os.makedirs(dump_folder, exist_ok=True)

            if auto_timestamp:
                filename = f'{tag}.{datetime.now().timestamp()}'
            else:
                filename = f'{tag}'

            filename += f'.{self._extension_name}'

            # File handler
            fh = logging.FileHandler(
                filename=f'{os.path.join(dump_folder, filename)}', mode=dump_mode, encoding="utf-8"
            )
            fh.setLevel(logging.DEBUG)
            if self._file_format is not None:
                fh.setFormatter(self._file_format)
            self._logger.addHandler(fh)

        # Stdout handler
        sh = logging.StreamHandler(sys.stdout)
        sh.setLevel(self._stdout_level)
        if self._stdout_format is not None:
            sh.setFormatter(self._stdout_format)

        self._logger.addHandler(sh)

        self._extra = {'host': socket.gethostname(), 'user': getpass.getuser(), 'tag': tag}

    @property
    def name(self) -> str:
        return self._logger.name

    @msgformat
    def debug(self, msg, *args):
        """Add a log with ``DEBUG`` level."""
        self._logger.debug(msg, *args, extra=self._extra)

    @msgformat
    def info(self, msg, *args):
        """Add a log with ``INFO`` level."""
        self._logger.info(msg, *args, extra=self._extra)

    @msgformat
    def warn(self, msg, *args):
        """Add a log with ``WARN`` level."""
        self._logger.warning(msg, *args, extra=self._extra)

    @msgformat
    def error(self, msg, *args):
        """Add a log with ``ERROR`` level."""
        self._logger.error(msg, *args, extra=self._extra)

    @msgformat
    def critical(self, msg, *args):
        """Add a log with ``CRITICAL`` level."""
        self._logger.critical(msg, *args, extra=self._extra)


class DummyLogger:
    """A dummy Logger, which is used when disabling logs."""

    def __init__(self):
        pass

    def debug(self, msg, *args):
        pass

    def info(self, msg, *args):
        pass

    def warn(self, msg, *args):
        pass

    def error(self, msg, *args):
        pass

    def critical(self, msg, *args):
        pass
