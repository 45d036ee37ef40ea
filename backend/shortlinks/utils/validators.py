from urllib.parse import urlparse
import ipaddress
import re


# Same alphabet custom codes use; generated codes are a subset
SHORT_CODE_PATH_PATTERN = re.compile(r'[0-9a-zA-Z_-]{1,30}')


def is_valid_url(url: str) -> tuple[bool, str]:
    """
    Validate if a URL is valid and safe.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not url.strip():
        return False, "URL cannot be empty"

    if len(url) > 2048:
        return False, "URL is too long (max 2048 characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL: {str(e)}"

    # Only http and https
    if result.scheme not in ['http', 'https']:
        return False, "Please provide a valid URL with http or https protocol"

    # Must have a host
    if not result.hostname:
        return False, "Invalid URL format"

    # Check for internal/private destinations
    host = result.hostname.lower()
    if host == 'localhost' or host.endswith('.localhost'):
        return False, "Internal/private URLs are not allowed"

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        # DNS name, not an IP literal
        address = None

    if address is not None and (
        address.is_private or address.is_loopback
        or address.is_link_local or address.is_unspecified
    ):
        return False, "Internal/private URLs are not allowed"

    return True, ""


def is_valid_short_code_path(code: str) -> bool:
    """Check a short code taken from a request path"""
    return bool(code) and SHORT_CODE_PATH_PATTERN.fullmatch(code) is not None


def get_client_ip(request) -> str:
    """
    Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    # Check for X-Forwarded-For header (if behind proxy)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    # Otherwise use client.host
    return request.client.host if request.client else "unknown"
