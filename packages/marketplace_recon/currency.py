"""Lenient parsing of marketplace currency cells.

Exports list amounts as free text (``"₹1,234.56"``, ``"-₹50.00"``, mis-encoded
``"â‚¹"`` prefixes, stray whitespace) or, from spreadsheets, as numbers and
``NaN``. :func:`parse_currency` folds all of these into a ``float`` and never
raises: anything it cannot read is ``0.0``.
"""

from __future__ import annotations

import math
import re

# Everything that is not part of a plain signed decimal literal.
_NON_NUMERIC_RE = re.compile(r"[^\d.\-]")


def parse_currency(raw: str | int | float | None) -> float:
    """Return ``raw`` as a float, or ``0.0`` when it is empty or unparseable.

    Negative amounts keep their sign; callers that need a fee magnitude apply
    ``abs()`` themselves.
    """

    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, int | float):
        value = float(raw)
        return 0.0 if math.isnan(value) or math.isinf(value) else value

    cleaned = _NON_NUMERIC_RE.sub("", str(raw))
    if not cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return 0.0 if math.isnan(value) or math.isinf(value) else value


__all__ = ["parse_currency"]
