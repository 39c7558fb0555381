import time


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds. Only interfaces call this directly."""
    return int(time.time() * 1000)
