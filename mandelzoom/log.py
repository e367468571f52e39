"""Console output helpers shared by the renderer and the CLI."""

from __future__ import annotations

import sys

VERBOSE = False


def set_verbose(enabled: bool) -> None:
    global VERBOSE
    VERBOSE = bool(enabled)


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


def report(message, *args, **kwargs):
    """Print ``message`` to stderr regardless of verbosity."""

    kwargs.setdefault("file", sys.stderr)
    print(message, *args, **kwargs)
