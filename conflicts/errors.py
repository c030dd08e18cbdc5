"""
Exceptions raised by the conflict detectors.

A detected conflict is data, not an error; only malformed input raises.
"""


class InvalidIntervalError(ValueError):
    """Raised when a time interval is empty, inverted, or mixes timezones."""

    def __init__(self, start, end, reason: str):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid interval [{start}, {end}): {reason}")
