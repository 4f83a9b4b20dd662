"""examples/basic_usage.py - tracegate demo.

Demonstrates the two facilities together:
    - ``trace(...)`` call sites that only exist when the level is DEBUG
    - ``with_progress(...)`` reporting through the shared hook

Run:
    python examples/basic_usage.py            # progress only
    TRACEGATE_LOG_LEVEL=debug python examples/basic_usage.py
"""

import logging
import time

from tracegate import StreamSink, set_default_sink, trace, traced, update_progress, with_progress

# ---------------------------------------------------------------------------
# Standard logger setup: progress lines go through the "tracegate.progress"
# logger at INFO.
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Trace output to stderr instead of the "tracegate.trace" logger.
set_default_sink(StreamSink())


@traced
def fetch_page(number: int) -> list:
    """Simulate fetching one page of results."""
    time.sleep(0.01)
    rows = [number * 10 + i for i in range(3)]
    trace("fetched", number, len(rows))
    update_progress()
    return rows


@traced
def fetch_all(pages: int) -> list:
    rows = []
    with with_progress("Fetching", 0, pages):
        for number in range(pages):
            rows.extend(fetch_page(number))
    trace("total", len(rows))
    return rows


if __name__ == "__main__":
    print(f"fetched {len(fetch_all(4))} rows")
