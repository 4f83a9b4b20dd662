"""examples/custom_sink_usage.py - Implement and plug in a custom sink.

Shows how to subclass TraceSink to collect trace messages, and how to route
single call sites to a sink with ``trace(..., sink=...)``.

Run:
    TRACEGATE_LOG_LEVEL=debug python examples/custom_sink_usage.py
"""

import json
from typing import Dict, List

from tracegate import LogLevel, TraceSink, tracing_enabled, trace, traced


class JsonLinesSink(TraceSink):
    """Collects trace messages as JSON lines.

    Attributes:
        lines: One JSON document per trace message.
    """

    def __init__(self) -> None:
        self.lines: List[str] = []

    def display(self, source: str, message: str, level: LogLevel) -> None:
        self.lines.append(
            json.dumps({"source": source, "level": level.name, "message": message.rstrip()})
        )


audit = JsonLinesSink()


@traced
def apply_discount(prices: Dict[str, float], percent: float) -> Dict[str, float]:
    discounted = {name: round(price * (100 - percent) / 100, 2) for name, price in prices.items()}
    trace("discount", percent, sink=audit, level=LogLevel.INFO)
    trace("result", len(discounted), sink=audit)
    return discounted


if __name__ == "__main__":
    print(apply_discount({"tea": 4.0, "cake": 6.5}, 10))
    if not tracing_enabled():
        print("tracing disabled; set TRACEGATE_LOG_LEVEL=debug to see the audit lines")
    for line in audit.lines:
        print(line)
