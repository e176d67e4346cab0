"""
Sanitization utilities for values that end up in email headers.

Submitted text is interpolated into the Subject header and the submitter's
address becomes the Reply-To header. CR/LF in either would let a caller
inject extra headers, so header-bound values are flattened to a single line
and the reply-to address must parse as exactly one mailbox.
"""

import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email

# C0 controls (CR, LF, TAB included), DEL, C1 controls and the Unicode
# line/paragraph separators some mail clients treat as line breaks.
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f\u2028\u2029]+")
_WHITESPACE_RUN = re.compile(r"\s{2,}")

MAX_HEADER_VALUE_LENGTH = 200


def sanitize_header_value(
    value: Optional[str], max_length: int = MAX_HEADER_VALUE_LENGTH
) -> str:
    """
    Flatten a user-supplied value so it is safe inside a mail header.

    Control characters are replaced by spaces, whitespace runs collapsed,
    and the result trimmed and truncated.

    Args:
        value: Raw value from user input
        max_length: Maximum length of the returned value

    Returns:
        Single-line header-safe string ("" for None)

    Examples:
        >>> sanitize_header_value('Alice\\r\\nBcc: victim@example.com')
        'Alice Bcc: victim@example.com'
        >>> sanitize_header_value('  general  ')
        'general'
    """
    if value is None:
        return ""

    flattened = _CONTROL_CHARS.sub(" ", value)
    flattened = _WHITESPACE_RUN.sub(" ", flattened).strip()
    return flattened[:max_length].rstrip()


def safe_reply_to(address: Optional[str]) -> Optional[str]:
    """
    Return ``address`` if it is a single, header-safe mailbox.

    The submitter's address is not required to be deliverable; it only has
    to be something a mail client can reply to without the header being
    abused. Anything with control characters, display names, several
    addresses or a malformed local part/domain is rejected.

    Args:
        address: Raw email address from user input

    Returns:
        The trimmed address, or None if it must not be used as Reply-To

    Examples:
        >>> safe_reply_to(' jane@example.com ')
        'jane@example.com'
        >>> safe_reply_to('jane@example.com\\nBcc: x@example.com') is None
        True
    """
    if address is None:
        return None

    candidate = address.strip()
    if not candidate or _CONTROL_CHARS.search(candidate):
        return None
    if any(ch in candidate for ch in ",;<>\""):
        return None

    try:
        validate_email(candidate, check_deliverability=False)
    except EmailNotValidError:
        return None

    return candidate
