import enum
import hashlib
import re
import secrets
import time
from typing import Optional, Union

from . import base62
from .base62 import ALPHABET, BASE
from .exceptions import InvalidArgumentsError


DEFAULT_CODE_LENGTH = 7
MAX_CODE_LENGTH = 30

# Custom codes may also use '_' and '-'; generated codes never do
CUSTOM_CODE_PATTERN = re.compile(r"[0-9a-zA-Z_-]+")

RESERVED_CODES = frozenset({
    'api', 'health', 'version', 'docs', 'redoc', 'openapi', 'static',
})

_secure_random = secrets.SystemRandom()


class Strategy(str, enum.Enum):
    """Short code generation strategies"""
    SEQUENTIAL = "sequential"
    HASH_A = "hash-a"  # MD5
    HASH_B = "hash-b"  # SHA-256
    SECURE_RANDOM = "secure-random"
    TIME_BASED = "time-based"


def _current_time_millis() -> int:
    return time.time_ns() // 1_000_000


def _random_chars(count: int) -> str:
    return ''.join(secrets.choice(ALPHABET) for _ in range(count))


def _check_length(length) -> None:
    if isinstance(length, bool) or not isinstance(length, int):
        raise InvalidArgumentsError(f"Length must be an integer (given type: {type(length)})")
    if length <= 0:
        raise InvalidArgumentsError(f"Length must be a positive integer (given value: {length})")


def generate_sequential(sequential_id: int) -> str:
    """Base62-encode a numeric id. Output grows with the id."""
    if sequential_id is None:
        raise InvalidArgumentsError("Sequential strategy requires an id")
    if isinstance(sequential_id, bool) or not isinstance(sequential_id, int):
        raise InvalidArgumentsError(f"Sequential id must be an integer (given type: {type(sequential_id)})")
    if sequential_id < 0:
        raise InvalidArgumentsError(f"Sequential id must be non-negative (given value: {sequential_id})")
    return base62.encode(sequential_id)


def _generate_from_digest(url: str, length: int, algorithm: str) -> str:
    """
    Build a fixed-length code from a salted digest of the URL.

    The digest input carries the current time and a random fraction, so
    repeated calls for the same URL yield different candidates.
    """
    if not url:
        raise InvalidArgumentsError(f"Hash strategy ({algorithm}) requires a URL")
    _check_length(length)

    salted = f"{url}{_current_time_millis()}{_secure_random.random()}"
    digest = hashlib.new(algorithm, salted.encode('utf-8')).hexdigest()

    value = int(digest[:16], 16) % (BASE ** length)
    code = base62.encode(value)

    # value < 62**length, so the code never needs truncating
    if len(code) < length:
        code = _random_chars(length - len(code)) + code

    return code


def generate_from_md5(url: str, length: int = DEFAULT_CODE_LENGTH) -> str:
    """Fast digest variant (hash-a)."""
    return _generate_from_digest(url, length, 'md5')


def generate_from_sha256(url: str, length: int = DEFAULT_CODE_LENGTH) -> str:
    """Strong digest variant (hash-b)."""
    return _generate_from_digest(url, length, 'sha256')


def generate_secure_random(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Map `length` cryptographically random bytes onto the alphabet."""
    _check_length(length)
    return ''.join(ALPHABET[byte % BASE] for byte in secrets.token_bytes(length))


def generate_time_based(length: int = DEFAULT_CODE_LENGTH) -> str:
    """
    Base62 timestamp in milliseconds, padded on the right with random
    characters when short. The last `length` characters are returned,
    since the low-order digits change fastest.
    """
    _check_length(length)

    code = base62.encode(_current_time_millis())
    if len(code) < length:
        code += _random_chars(length - len(code))

    return code[-length:]


def generate_code(
    strategy: Union[Strategy, str] = Strategy.SECURE_RANDOM,
    url: Optional[str] = None,
    sequential_id: Optional[int] = None,
    length: int = DEFAULT_CODE_LENGTH
) -> str:
    """
    Produce a candidate short code.

    Args:
        strategy: One of the Strategy values (or its string name)
        url: Long URL, required by hash-a and hash-b
        sequential_id: Non-negative id, required by sequential
        length: Exact output length for every strategy but sequential

    Returns:
        A candidate code. The caller must still confirm it is unused.

    Raises:
        InvalidArgumentsError: unknown strategy, missing input, or length <= 0
    """
    try:
        strategy = Strategy(strategy)
    except ValueError:
        raise InvalidArgumentsError(f"Unknown strategy: {strategy!r}") from None

    if strategy is Strategy.SEQUENTIAL:
        return generate_sequential(sequential_id)
    if strategy is Strategy.HASH_A:
        return generate_from_md5(url, length)
    if strategy is Strategy.HASH_B:
        return generate_from_sha256(url, length)
    if strategy is Strategy.TIME_BASED:
        return generate_time_based(length)
    return generate_secure_random(length)


def validate_custom_code(code: str) -> tuple[bool, str]:
    """
    Validate a caller-supplied short code.

    Args:
        code: The custom code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not code:
        return False, "Custom code cannot be empty"

    if len(code) > MAX_CODE_LENGTH:
        return False, f"Custom code must be at most {MAX_CODE_LENGTH} characters"

    if not CUSTOM_CODE_PATTERN.fullmatch(code):
        return False, "Custom code can only contain letters, digits, hyphens and underscores"

    if code.lower() in RESERVED_CODES:
        return False, f"'{code}' is a reserved word and cannot be used"

    return True, ""
