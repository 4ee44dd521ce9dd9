"""Signal handling that lets cleanup code run on termination.

SIGINT already surfaces as KeyboardInterrupt. SIGTERM and SIGHUP kill the
interpreter without unwinding the stack by default, which would leave the
temporary kubeconfig and any background tunnel behind.
"""

import signal
from contextlib import contextmanager
from typing import Iterator

import structlog

logger = structlog.get_logger(__name__)

_HANDLED_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGHUP", None)) if sig is not None
)


def _raise_system_exit(signum, frame):
    logger.debug("signal.received", signal=signum)
    raise SystemExit(128 + signum)


@contextmanager
def terminate_on_signals() -> Iterator[None]:
    """Turn SIGTERM/SIGHUP into SystemExit while the block runs."""
    previous = {}
    for sig in _HANDLED_SIGNALS:
        try:
            previous[sig] = signal.signal(sig, _raise_system_exit)
        except ValueError:
            # Not in the main thread; leave the default disposition.
            pass
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
