"""
IP address and email utilities for privacy-aware logging.

Contact submissions are never stored, but they are logged. Client IPs are
anonymized and reply-to addresses hashed before they reach the log stream;
the full IP only appears in the forwarded email footer.
"""

import hashlib
import ipaddress
from typing import Optional


def anonymize_ip(ip: Optional[str]) -> Optional[str]:
    """
    Anonymize an IP address for log output.

    For IPv4: Zeros the last octet (e.g., 192.168.1.100 -> 192.168.1.0)
    For IPv6: Zeros the last 80 bits (e.g., 2001:db8::1 -> 2001:db8::)

    Enough detail survives for subnet-level abuse analysis.

    Args:
        ip: IP address string or None

    Returns:
        Anonymized IP address, the input unchanged if it is not an IP
        (e.g. "unknown"), or None if input is None
    """
    if ip is None:
        return None

    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        # Not an IP address (placeholder or odd proxy header value)
        return ip

    if isinstance(addr, ipaddress.IPv4Address):
        # Zero the last octet for IPv4
        octets = str(addr).split(".")
        octets[3] = "0"
        return ".".join(octets)

    # Zero the last 80 bits for IPv6 (keep first 48 bits)
    network = ipaddress.IPv6Network(f"{addr}/48", strict=False)
    return str(network.network_address)


def hash_email_for_logs(email: str, salt: str = "contact_intake") -> str:
    """
    Hash an email address for log output.

    Preserves the domain for pattern analysis while hashing the local part.
    Format: first 8 chars of hash + @domain.tld

    Args:
        email: Email address to hash
        salt: Salt for hashing (use consistent salt for matching)

    Returns:
        Hashed email in format "a3f2c1d4...@example.com"
    """
    if not email or "@" not in email:
        return "invalid@unknown"

    local_part, domain = email.rsplit("@", 1)

    hash_input = f"{salt}:{local_part}".encode("utf-8")
    hash_value = hashlib.sha256(hash_input).hexdigest()

    return f"{hash_value[:8]}...@{domain}"
