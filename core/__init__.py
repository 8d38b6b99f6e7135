"""HOTP/TOTP computation, verification and configuration."""
