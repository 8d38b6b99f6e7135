"""
totpkit – command-line entry point.

Usage
-----
    python main.py register --label alice --issuer example.com --out qr.html
    python main.py authenticate --secret BASE32SECRET [--code 123456]
    python main.py code --secret BASE32SECRET

Or, if installed as a package:
    totpkit ...

Parameters default to the ``OTP_*`` environment variables, then to the
built-in defaults (30 s period, 2 steps of drift, 15 counters, 6 digits).
"""

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from core.config import OTPConfig
from core.errors import InvalidDigitCount, OTPError
from core.totp import generate_totp, remaining_seconds, time_step, totp_counter_for
from core.utils import decode_secret, encode_secret, format_otp, generate_secret
from core.verify import Synchronized, verify_totp
from qr.parser import build_otpauth_uri
from qr.render import uri_to_html

logger = logging.getLogger("totpkit")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_ERROR = 2


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


# ── Commands ──────────────────────────────────────────────────────────────────

def _config(args: argparse.Namespace) -> OTPConfig:
    """Environment config with command-line overrides applied."""
    config = OTPConfig.from_env()
    overrides = {
        name: getattr(args, name)
        for name in ("period", "drift", "threshold", "digits")
        if getattr(args, name, None) is not None
    }
    return replace(config, **overrides) if overrides else config


def cmd_register(args: argparse.Namespace) -> int:
    """Generate a secret, build its URI and render the QR code."""
    config = _config(args)
    secret = generate_secret(config.secret_bits)
    uri = build_otpauth_uri(
        account_name=args.label,
        secret=secret,
        issuer=args.issuer,
        digits=config.digits,
        period=config.period,
        algorithm=config.algorithm,
    )
    print(f"Secret: {encode_secret(secret)}")
    print(f"URI:    {uri}")
    if args.out:
        Path(args.out).write_text(uri_to_html(uri, title=f"{args.issuer} TOTP"), encoding="utf-8")
        logger.info("QR code written to %s", args.out)
    return EXIT_OK


def _read_code(raw: Optional[str], digits: int) -> int:
    """Return the typed code; its length, leading zeros included, must be ``digits``."""
    if raw is None:
        try:
            raw = input("Code: ")
        except EOFError:
            raise InvalidDigitCount("No code entered.")
    raw = raw.strip().replace(" ", "")
    if not raw.isdigit() or len(raw) != digits:
        raise InvalidDigitCount(f"Code must be {digits} decimal digits.")
    return int(raw)


def cmd_authenticate(args: argparse.Namespace) -> int:
    """Check a code typed by the user against the current time."""
    config = _config(args)
    secret = decode_secret(args.secret)
    code = _read_code(args.code, config.digits)
    now = time.time()
    result = verify_totp(secret, code, config, now=now)
    if isinstance(result, Synchronized):
        matched = result.advance(totp_counter_for(config, now))
        drift = int(matched) - time_step(now, config.period, config.t0)
        print(f"Valid code. Drift: {drift} steps")
        return EXIT_OK
    print(f"Invalid code: {result.reason.value}")
    return EXIT_REJECTED


def cmd_code(args: argparse.Namespace) -> int:
    """Print the code an authenticator would show right now."""
    config = _config(args)
    secret = decode_secret(args.secret)
    code = generate_totp(secret, digits=config.digits, period=config.period, t0=config.t0)
    left = remaining_seconds(config.period, t0=config.t0)
    print(f"{format_otp(code)}  ({left}s left)")
    return EXIT_OK


# ── Argument parsing ──────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="totpkit", description="TOTP registration and verification")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--period", type=int, help="Time step in seconds")
    common.add_argument("--digits", type=int, choices=(6, 7, 8), help="Code length")

    sub = parser.add_subparsers(dest="cmd", required=True)

    register = sub.add_parser("register", parents=[common], help="Create a secret and its QR code")
    register.add_argument("--label", required=True, help="Account name")
    register.add_argument("--issuer", required=True, help="Service name")
    register.add_argument("--out", help="Write an HTML page with the QR code to this file")
    register.set_defaults(func=cmd_register)

    auth = sub.add_parser("authenticate", parents=[common], help="Verify a code")
    auth.add_argument("--secret", required=True, help="Base32 secret")
    auth.add_argument("--code", help="Code to verify (prompted for when omitted)")
    auth.add_argument("--drift", type=int, help="Steps of clock drift tolerated")
    auth.add_argument("--threshold", type=int, help="Counters tried before rejecting")
    auth.set_defaults(func=cmd_authenticate)

    code = sub.add_parser("code", parents=[common], help="Show the current code")
    code.add_argument("--secret", required=True, help="Base32 secret")
    code.set_defaults(func=cmd_code)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    try:
        return args.func(args)
    except OTPError as exc:
        logger.error("%s", exc)
        return EXIT_ERROR
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
