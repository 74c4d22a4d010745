"""Arithmetic adjustments applied to encoded values.

The engine works only through a codec's public encode/decode. Results are
plain float multiplication; nothing is rounded or clamped.
"""

from __future__ import annotations

import logging
from enum import Enum

from kolla.codec import ValueCodec

logger = logging.getLogger("kolla.transform")


class Operation(str, Enum):
    INCREASE_10PCT = "increase10%"
    DECREASE_10PCT = "decrease10%"
    DOUBLE = "double"
    IDENTITY = "identity"


_FACTORS = {
    Operation.INCREASE_10PCT: 1.1,
    Operation.DECREASE_10PCT: 0.9,
    Operation.DOUBLE: 2.0,
    Operation.IDENTITY: 1.0,
}

_default_codec = ValueCodec()


def factor(operation: Operation | str) -> float:
    """Multiplier for an operation. Unknown names are the identity."""
    try:
        return _FACTORS[Operation(operation)]
    except ValueError:
        logger.debug("Unknown operation %r, applying identity", operation)
        return 1.0


def apply(
    token: str,
    operation: Operation | str,
    codec: ValueCodec = _default_codec,
) -> str:
    """Decode, scale and re-encode a token. Raises FormatError on bad input."""
    value = codec.decode(token)
    return codec.encode(value * factor(operation))
