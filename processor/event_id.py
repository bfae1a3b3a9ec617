"""Stable identifiers for event occurrences."""

EVENT_ID_PREFIX = 'evt_'


def derive_event_id(summary: str, start: str) -> str:
    """
    Generate a deterministic identifier from an event's title and start time.

    The composite ``summary + "_" + start`` is folded over its UTF-16 code
    units with ``hash = hash * 31 + unit`` in signed 32-bit arithmetic. The
    value does not depend on the interpreter's hash seed, so the identifier
    is the same across restarts and across syncs, which is what completed
    marks are joined on.

    Args:
        summary: Event title
        start: Normalized start timestamp

    Returns:
        Identifier such as ``evt_96260``
    """
    composite = f"{summary}_{start}"
    encoded = composite.encode('utf-16-le')

    value = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF

    if value >= 0x80000000:
        value -= 0x100000000

    return f"{EVENT_ID_PREFIX}{abs(value)}"
