"""Tests for the command-line entry point."""

from pathlib import Path

import pytest

import main
from core.totp import generate_totp
from core.utils import decode_secret

RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PERIOD", "T0", "DRIFT", "THRESHOLD", "DIGITS", "SECRET_BITS", "ALGORITHM"):
        monkeypatch.delenv(f"OTP_{name}", raising=False)


def test_register_writes_qr_page(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    out = tmp_path / "qr.html"
    rc = main.main(["register", "--label", "alice", "--issuer", "example.com", "--out", str(out)])
    assert rc == main.EXIT_OK
    printed = capsys.readouterr().out
    assert "otpauth://totp/example.com:alice?secret=" in printed
    secret_line = next(line for line in printed.splitlines() if line.startswith("Secret:"))
    assert len(decode_secret(secret_line.split()[1])) == 20
    assert "<svg" in out.read_text(encoding="utf-8")


def test_register_respects_digits(capsys: pytest.CaptureFixture) -> None:
    assert main.main(["register", "--label", "a", "--issuer", "b", "--digits", "8"]) == main.EXIT_OK
    assert "&digit=8&" in capsys.readouterr().out


def test_authenticate_accepts_current_code(capsys: pytest.CaptureFixture) -> None:
    code = generate_totp(decode_secret(RFC_SECRET_B32))
    rc = main.main(["authenticate", "--secret", RFC_SECRET_B32, "--code", code])
    assert rc == main.EXIT_OK
    assert "Valid code" in capsys.readouterr().out


def test_authenticate_reads_code_from_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    code = generate_totp(decode_secret(RFC_SECRET_B32))
    monkeypatch.setattr("builtins.input", lambda prompt="": code)
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32]) == main.EXIT_OK


def test_authenticate_rejects_stale_code(capsys: pytest.CaptureFixture) -> None:
    code = generate_totp(decode_secret(RFC_SECRET_B32), now=59, digits=8)
    rc = main.main(["authenticate", "--secret", RFC_SECRET_B32, "--digits", "8", "--code", code])
    assert rc == main.EXIT_REJECTED
    assert "Invalid threshold" in capsys.readouterr().out


@pytest.mark.parametrize("code", ["12345", "123456789", "12a456"])
def test_authenticate_rejects_malformed_input(code: str) -> None:
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32, "--code", code]) == main.EXIT_ERROR


def test_authenticate_rejects_code_shorter_than_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("time.time", lambda: 119.0)
    # 287082 is the 6-digit suffix of the 8-digit code due at t=119
    argv = ["authenticate", "--secret", RFC_SECRET_B32, "--digits", "8", "--code", "287082"]
    assert main.main(argv) == main.EXIT_ERROR
    monkeypatch.setenv("OTP_DIGITS", "8")
    assert main.main(argv[:3] + argv[5:]) == main.EXIT_ERROR


def test_authenticate_accepts_configured_length(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("time.time", lambda: 119.0)
    argv = ["authenticate", "--secret", RFC_SECRET_B32, "--digits", "8", "--code", "94287082"]
    assert main.main(argv) == main.EXIT_OK


def test_authenticate_closed_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    def closed(prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32]) == main.EXIT_ERROR


def test_authenticate_reports_drift_near_t0(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    # At t=40 the starting counter is clamped to 0 while the current step is 1
    monkeypatch.setattr("time.time", lambda: 40.0)
    code = generate_totp(decode_secret(RFC_SECRET_B32), now=40)
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32, "--code", code]) == main.EXIT_OK
    assert "Drift: 0 steps" in capsys.readouterr().out


def test_authenticate_reports_client_ahead(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setattr("time.time", lambda: 1111111111.0)
    code = generate_totp(decode_secret(RFC_SECRET_B32), now=1111111111 + 30)
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32, "--code", code]) == main.EXIT_OK
    assert "Drift: 1 steps" in capsys.readouterr().out


def test_authenticate_rejects_bad_secret() -> None:
    assert main.main(["authenticate", "--secret", "!!!", "--code", "123456"]) == main.EXIT_ERROR


def test_authenticate_bad_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OTP_THRESHOLD", "0")
    assert main.main(["authenticate", "--secret", RFC_SECRET_B32, "--code", "123456"]) == main.EXIT_ERROR


def test_code_prints_grouped_code(capsys: pytest.CaptureFixture) -> None:
    assert main.main(["code", "--secret", RFC_SECRET_B32]) == main.EXIT_OK
    out = capsys.readouterr().out
    assert "s left)" in out
