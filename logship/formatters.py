"""
Record formatters — turn a logging.LogRecord into one buffer line.

A formatter is any function LogRecord -> str. It is injected into
DurableLogHandler at construction; raw_formatter is the default.

  raw_formatter   — the unformatted message template (record.msg)
  param_formatter — the first positional argument, or the template when there is none

    logger.info("%s", '{"event": "signup"}')   # param_formatter → {"event": "signup"}
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

RecordFormatter = Callable[[logging.LogRecord], str]


def raw_formatter(record: logging.LogRecord) -> str:
    return str(record.msg)


def param_formatter(record: logging.LogRecord) -> str:
    args = record.args
    if isinstance(args, Mapping) and args:
        return str(next(iter(args.values())))
    if isinstance(args, tuple) and args:
        return str(args[0])
    return str(record.msg)
