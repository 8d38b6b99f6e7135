"""
Build and parse otpauth:// provisioning URIs.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format

Only TOTP with HMAC-SHA1 is provisioned. Any other algorithm is rewritten to
SHA1 so that the URI never promises codes the verifier cannot check.
"""

import urllib.parse
from dataclasses import dataclass
from typing import Union

from core.config import DEFAULT_DIGITS, DEFAULT_PERIOD, SUPPORTED_ALGORITHM, coerce_algorithm
from core.utils import encode_secret, normalize_secret, sanitise_label, validate_digits, validate_period


@dataclass
class OTPAuthURI:
    """Parsed representation of an otpauth:// URI."""

    label: str          # full label (issuer:account or just account)
    secret: str         # normalised base32 secret
    issuer: str         # issuer parameter (may be empty)
    account_name: str   # account name extracted from label
    algorithm: str
    digits: int
    period: int


def build_otpauth_uri(
    account_name: str,
    secret: Union[bytes, str],
    issuer: str,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
    algorithm: str = SUPPORTED_ALGORITHM,
) -> str:
    """
    Build a TOTP provisioning URI.

    Args:
        account_name: Account label shown by the authenticator.
        secret:       Raw secret bytes, or an already base32-encoded string.
        issuer:       Service name.
        digits:       Code length (6, 7 or 8).
        period:       Time step in seconds.
        algorithm:    Requested HMAC algorithm; always emitted as SHA1.

    Returns:
        ``otpauth://totp/{issuer}:{label}?secret=..&issuer=..&algorithm=SHA1&digit=..&period=..``
    """
    validate_digits(digits)
    validate_period(period)
    if isinstance(secret, (bytes, bytearray)):
        b32_secret = encode_secret(bytes(secret))
    else:
        b32_secret = normalize_secret(secret).rstrip("=")

    label = urllib.parse.quote(f"{issuer}:{account_name}", safe=":@")
    params = [
        ("secret", b32_secret),
        ("issuer", issuer),
        ("algorithm", coerce_algorithm(algorithm)),
        ("digit", str(digits)),
        ("period", str(period)),
    ]
    query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote)
    return f"otpauth://totp/{label}?{query}"


def _int_param(params: dict, name: str, default: int) -> int:
    raw = params.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"otpauth '{name}' must be an integer, got {raw!r}.")


def parse_otpauth_uri(uri: str) -> OTPAuthURI:
    """
    Read back a TOTP provisioning URI.

    Accepts the ``digit`` key written by :func:`build_otpauth_uri` as well as
    the standard ``digits``. A non-SHA1 algorithm is coerced like on the way in.

    Raises:
        ValueError: If the URI is not a usable ``otpauth://totp`` URI.
    """
    parsed = urllib.parse.urlparse(uri.strip())
    if parsed.scheme.lower() != "otpauth":
        raise ValueError(f"Expected 'otpauth' scheme, got '{parsed.scheme}'.")
    if parsed.netloc.lower() != "totp":
        raise ValueError(f"Unsupported OTP type '{parsed.netloc}', only totp is provisioned.")

    raw_label = urllib.parse.unquote(parsed.path.lstrip("/"))
    if not raw_label:
        raise ValueError("Missing issuer:account label.")
    label_issuer, _, account_name = raw_label.rpartition(":")
    account_name = sanitise_label(account_name)

    params = dict(urllib.parse.parse_qsl(parsed.query))
    if not params.get("secret"):
        raise ValueError("Missing 'secret' parameter.")

    issuer = sanitise_label(params.get("issuer", label_issuer))
    digits = _int_param(params, "digits" if "digits" in params else "digit", DEFAULT_DIGITS)
    validate_digits(digits)
    period = _int_param(params, "period", DEFAULT_PERIOD)
    validate_period(period)

    return OTPAuthURI(
        label=f"{issuer}:{account_name}" if issuer else account_name,
        secret=normalize_secret(params["secret"]),
        issuer=issuer,
        account_name=account_name,
        algorithm=coerce_algorithm(params.get("algorithm")),
        digits=digits,
        period=period,
    )
