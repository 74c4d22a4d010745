"""The value codec: plaintext numbers to opaque tokens and back.

A token is ``FHE-`` followed by the base64 of the number's text form.
The tag lets ``decode`` tell encoded tokens from legacy records that
stored the number as plain text.

This is a format transform, NOT encryption. There is no key. Anyone who
holds a token can recover the plaintext with ``decode``. The tag name is
inherited from the stored data and promises nothing. A real threshold or
homomorphic scheme can be dropped in by implementing ``ValueCodec``'s two
methods; the transform engine and the registry only ever call those.
"""

from __future__ import annotations

import base64
import binascii
import math

from kolla.errors import FormatError

TAG = "FHE-"


def _number_text(value: float) -> str:
    """Render a number the way the stored records render numbers."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def encode(value: float) -> str:
    """Encode a number into a tagged token. Deterministic.

    Every float encodes; an int too large for a float raises FormatError.
    """
    try:
        text = _number_text(float(value))
    except OverflowError as exc:
        raise FormatError(f"Value {value!r} is too large to encode") from exc
    return TAG + base64.b64encode(text.encode("ascii")).decode("ascii")


def is_encoded(token: str) -> bool:
    return isinstance(token, str) and token.startswith(TAG)


def decode(token: str) -> float:
    """Recover the number behind a token.

    Untagged input is parsed directly as a number, for records written
    before values were encoded.
    """
    if not isinstance(token, str):
        raise FormatError(f"Value token must be a string, got {type(token).__name__}")

    if is_encoded(token):
        try:
            text = base64.b64decode(token[len(TAG):], validate=True).decode("ascii")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise FormatError(f"Malformed value token: {token!r}") from exc
    else:
        text = token

    try:
        value = float(text.strip())
    except ValueError as exc:
        raise FormatError(f"Value token is not a number: {token!r}") from exc

    if not math.isfinite(value):
        raise FormatError(f"Value token is not a finite number: {token!r}")
    return value


class ValueCodec:
    """Encode/decode capability handed to the transform engine and registry."""

    def encode(self, value: float) -> str:
        return encode(value)

    def decode(self, token: str) -> float:
        return decode(token)
