# This file is part of guestmeta. See LICENSE file for license information.

import collections.abc
import io
import logging
import logging.config
import os
import sys
import time
from contextlib import suppress

DEFAULT_LOG_FORMAT = "%(asctime)s - %(filename)s[%(levelname)s]: %(message)s"


def setup_basic_logging(level=logging.DEBUG, formatter=None):
    formatter = formatter or logging.Formatter(DEFAULT_LOG_FORMAT)
    root = logging.getLogger()
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(level)
    root.addHandler(console)
    root.setLevel(level)


def flush_loggers(root):
    if not root:
        return
    for h in root.handlers:
        if isinstance(h, (logging.StreamHandler)):
            with suppress(IOError):
                h.flush()
    flush_loggers(root.parent)


def setup_logging(cfg=None):
    """Configure logging from the 'log_cfgs' entries of cfg.

    Each entry is either the path of a logging.config.fileConfig file or the
    text of such a config. The first one that loads wins. When none load,
    basic stderr logging is set up unless 'log_basic' is false.
    """
    if not cfg:
        cfg = {}

    log_cfgs = []
    for a_cfg in cfg.get("log_cfgs") or []:
        if isinstance(a_cfg, str):
            log_cfgs.append(a_cfg)
        elif isinstance(a_cfg, (collections.abc.Iterable)):
            cfg_str = [str(c) for c in a_cfg]
            log_cfgs.append("\n".join(cfg_str))
        else:
            log_cfgs.append(str(a_cfg))

    # See if any of them actually load...
    am_tried = 0

    for log_cfg in log_cfgs:
        # A handler may point at a file whose directory does not exist yet
        # in early boot, so an exception on that is expected.
        with suppress(FileNotFoundError):
            am_tried += 1

            # If the value is not a filename, assume that it is a config.
            if not (log_cfg.startswith("/") and os.path.isfile(log_cfg)):
                log_cfg = io.StringIO(log_cfg)

            logging.config.fileConfig(log_cfg, disable_existing_loggers=False)

            # Use the first valid configuration.
            return

    # If it didn't work, at least setup a basic logger (if desired)
    basic_enabled = cfg.get("log_basic", True)

    if am_tried:
        sys.stderr.write(
            "WARN: no logging configured! (tried %s configs)\n" % (am_tried)
        )
    if basic_enabled:
        setup_basic_logging(logging.INFO)


def reset_logging():
    """Remove all current handlers and unset log level."""
    log = logging.getLogger()
    handlers = list(log.handlers)
    for h in handlers:
        h.flush()
        h.close()
        log.removeHandler(h)
    log.setLevel(logging.NOTSET)


def configure_root_logger():
    """Customize the root logger for guestmeta"""

    # Always format logging timestamps as UTC time
    logging.Formatter.converter = time.gmtime
    reset_logging()
