from __future__ import annotations

import re
from typing import Callable, Final

"""
Transformers: bytes -> bytes, pure and total.

- identity: unchanged
- strip_escapes: drop ECMA-48 CSI color/cursor sequences
    ESC [ (1-3 digits (; 1-2 digits)?)? then one of m, G, K
  Anything that does not match exactly (partial or malformed sequences) stays.
"""

Transformer = Callable[[bytes], bytes]

_CSI_RE: Final = re.compile(rb"\x1b\[(?:[0-9]{1,3}(?:;[0-9]{1,2})?)?[mGK]")


def identity(data: bytes) -> bytes:
    return data


def strip_escapes(data: bytes) -> bytes:
    """Remove every matching CSI sequence.

    A single pass can splice a new sequence together (``ESC [ ESC [m m``), so
    substitution repeats until nothing matches. Each pass only shrinks the
    buffer, which bounds the loop.
    """
    out = data
    while True:
        stripped = _CSI_RE.sub(b"", out)
        if stripped == out:
            return out
        out = stripped


# This function picks the transformer applied to file sinks.
def get_transformer(strip: bool) -> Transformer:
    return strip_escapes if strip else identity
