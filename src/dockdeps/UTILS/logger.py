"""
Logging setup for the command line. The library itself only creates
module-level loggers and never configures handlers.
"""
import logging
import os
import sys

import colorlog


def setup_logger(debug: bool = False) -> None:
    """
    Configures the root logger with colored output on a terminal.

    :param debug: Log at DEBUG instead of WARNING. Listings go to stdout, so
        routine progress stays quiet unless asked for.
    """
    logger = logging.getLogger()
    level = logging.DEBUG if debug else logging.WARNING
    logger.setLevel(level)

    # Prevent duplicate handlers if this function is called multiple times
    if logger.handlers:
        return

    # Respect NO_COLOR env var (https://no-color.org/)
    use_colors = sys.stderr.isatty() and not os.environ.get("NO_COLOR")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.NOTSET)

    if use_colors:
        formatter = colorlog.ColoredFormatter(
            '%(log_color)s[%(levelname).4s]%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            },
            reset=True,
            style='%'
        )
    else:
        formatter = logging.Formatter('[%(levelname).4s] %(name)s: %(message)s')

    handler.setFormatter(formatter)
    logger.addHandler(handler)
