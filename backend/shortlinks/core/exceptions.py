"""Exceptions raised by short code generation and link management.

Classes:
    ShortenerError:
        Generic base class for all service errors.

    InvalidArgumentsError:
        A strategy was called without a required input or with a bad one.

    InvalidEncodingError:
        A string handed to the Base62 decoder is not a Base62 numeral.

    CodeAlreadyExistsError:
        The data store already holds a link with the requested code.

    CodeSpaceExhaustedError:
        No free code was found within the retry budget (transient).

    LinkExpiredError:
        The link has expired and cannot be redirected to or edited.
"""


class ShortenerError(Exception):
    """Generic base class for service errors."""

    pass


class InvalidArgumentsError(ShortenerError, ValueError):
    """Raised when a required input is missing or invalid."""

    pass


class InvalidEncodingError(ShortenerError, ValueError):
    """Raised when decoding a string with characters outside the Base62 alphabet."""

    pass


class CodeAlreadyExistsError(ShortenerError):
    """Raised when claiming a code that is already stored."""

    def __init__(self, code: str):
        super().__init__(f"Short code '{code}' already exists")
        self.code = code


class CodeSpaceExhaustedError(ShortenerError):
    """Raised when the retry budget runs out before a free code is found.

    Safe to retry the whole operation later.
    """

    pass


class LinkExpiredError(ShortenerError):
    """Raised when acting on an expired link."""

    def __init__(self, code: str):
        super().__init__(f"Short link '{code}' has expired")
        self.code = code
