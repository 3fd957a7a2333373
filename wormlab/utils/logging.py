"""A print-based logger for the circuit engines.

The engines run inside notebooks, tutoring back-ends and test sessions
alike, where standard logging is often silenced unless configured. Every
message goes to stdout with a timestamp and level label, and optionally to
a second stream.

Usage:
    from wormlab.utils import get_logger
    log = get_logger("simulation.engine")
    log.info("Propagated through %d neurons", 12)
"""

import sys
from datetime import datetime

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def get_logger(name, out=None, level="DEBUG"):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, displayed in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).
    level : str
        Lowest level that is printed.

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods.
    """
    prefix = f"wormlab:{name}"
    line_length = 72
    outputs = [sys.stdout] + ([out] if out else [])
    floor = LEVELS[level]

    def _header(level):
        now = datetime.now().strftime("%H:%M:%S")
        for dest in outputs:
            print(f"{'_' * line_length}", file=dest)
            print(f"{prefix} {level} [{now}]", file=dest)

    def log(level, msg, args):
        if LEVELS[level] < floor:
            return
        _header(level)
        for dest in outputs:
            try:
                print(msg % args, file=dest)
            except TypeError:
                print(msg, file=dest)

    log.debug = lambda msg, *args: log("DEBUG", msg, args)
    log.info = lambda msg, *args: log("INFO", msg, args)
    log.warning = lambda msg, *args: log("WARNING", msg, args)
    log.error = lambda msg, *args: log("ERROR", msg, args)

    return log
