"""Collision-retry protocol for claiming a unique short code.

Generated codes are only candidates. The store is asked whether a
candidate is taken, and a free one is claimed with an insert. The
store's unique constraint is the final authority: a claim that loses a
race raises CodeAlreadyExistsError and counts as a collision.

Example:
    >>> code = claim_unique_code(
    ...     store,
    ...     make_candidate=lambda attempt: generate_code(Strategy.SECURE_RANDOM),
    ...     make_record=lambda code: Link(short_code=code, original_url=url),
    ... )
"""

import logging
from typing import Any, Callable, Protocol

from .exceptions import CodeAlreadyExistsError, CodeSpaceExhaustedError, InvalidArgumentsError


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


class CodeStore(Protocol):
    """Storage collaborator that owns code uniqueness."""

    def exists(self, code: str) -> bool:
        ...

    def claim(self, code: str, record: Any) -> None:
        """Insert record under code, raising CodeAlreadyExistsError if taken."""
        ...


def claim_unique_code(
    store: CodeStore,
    make_candidate: Callable[[int], str],
    make_record: Callable[[str], Any],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> str:
    """
    Generate candidates until one is successfully claimed.

    Args:
        store: Storage collaborator implementing exists/claim
        make_candidate: Called with the zero-based attempt number
        make_record: Builds the record to insert for a free candidate
        max_attempts: Upper bound on generated candidates

    Returns:
        The claimed code

    Raises:
        CodeSpaceExhaustedError: every attempt collided
    """
    if max_attempts < 1:
        raise InvalidArgumentsError(f"max_attempts must be at least 1 (given value: {max_attempts})")

    for attempt in range(max_attempts):
        code = make_candidate(attempt)

        if store.exists(code):
            logger.warning("Short code collision", extra={'code': code, 'attempt': attempt + 1})
            continue

        try:
            store.claim(code, make_record(code))
        except CodeAlreadyExistsError:
            logger.warning("Short code claimed concurrently", extra={'code': code, 'attempt': attempt + 1})
            continue

        return code

    logger.error("Short code space exhausted", extra={'attempts': max_attempts})
    raise CodeSpaceExhaustedError(f"Unable to generate a unique short code after {max_attempts} attempts")
