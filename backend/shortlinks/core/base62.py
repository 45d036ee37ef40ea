"""Base62 encoding of non-negative integers.

Digit value is the index of the symbol in ALPHABET, most significant
symbol first.

Example:
    >>> encode(125)
    '21'
    >>> decode('21')
    125
"""

from typing import Final

from .exceptions import InvalidArgumentsError, InvalidEncodingError


ALPHABET: Final[str] = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE: Final[int] = len(ALPHABET)

_INDEX: Final[dict] = {char: index for index, char in enumerate(ALPHABET)}


def encode(number: int) -> str:
    """Encode a non-negative integer into a Base62 string.

    Zero encodes to "0"; no other result has a leading zero symbol.
    """
    if isinstance(number, bool) or not isinstance(number, int):
        raise InvalidArgumentsError(f"Base62 encoding requires an integer (given type: {type(number)})")
    if number < 0:
        raise InvalidArgumentsError(f"Base62 encoding only supports non-negative integers (given value: {number})")
    if number == 0:
        return ALPHABET[0]

    encoded = []
    value = number
    while value:
        value, remainder = divmod(value, BASE)
        encoded.append(ALPHABET[remainder])
    encoded.reverse()
    return "".join(encoded)


def decode(encoded: str) -> int:
    """Decode a Base62 string back into an integer."""
    if not isinstance(encoded, str) or not encoded:
        raise InvalidEncodingError("Base62 string must be a non-empty string")

    value = 0
    for char in encoded:
        index = _INDEX.get(char)
        if index is None:
            raise InvalidEncodingError(f"Invalid Base62 character: {char!r}")
        value = value * BASE + index
    return value


def is_valid_code(code) -> bool:
    """Check that code is a non-empty string of Base62 characters only."""
    if not code or not isinstance(code, str):
        return False
    return all(char in _INDEX for char in code)
