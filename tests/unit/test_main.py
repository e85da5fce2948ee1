"""
Unit tests for the main module — composition root and command layer.

End-to-end runs use the in-process cryptography decoder (selected through
CERT_BUNDLE_DECODER) so no openssl binary is needed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog

from cert_bundle.adapters.cryptography_decoder import CryptographyCertificateDecoder
from cert_bundle.adapters.openssl_decoder import OpensslCertificateDecoder
from cert_bundle.config import AppSettings
from cert_bundle.main import configure_structlog, create_decoder, main
from tests.conftest import make_pem


@pytest.fixture(autouse=True)
def _cryptography_decoder(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CERT_BUNDLE_DECODER", "cryptography")
    monkeypatch.delenv("CERT_BUNDLE_BACKUP_SUFFIX", raising=False)


@pytest.fixture()
def pems() -> tuple[str, str]:
    now = datetime.now(UTC)
    valid = make_pem(common_name="valid.example")
    expired = make_pem(
        common_name="expired.example",
        not_before=now - timedelta(days=400),
        not_after=now - timedelta(days=10),
    )
    return valid, expired


class TestConfigureStructlog:
    """Verify structlog configuration function."""

    def test_configure_structlog_sets_log_level(self) -> None:
        """
        GIVEN log_level="DEBUG"
        WHEN configure_structlog is called
        THEN structlog is configured (no exception raised).
        """
        configure_structlog("DEBUG")
        assert structlog.get_logger() is not None

    def test_configure_structlog_invalid_level_falls_back(self) -> None:
        """
        GIVEN an invalid log_level string
        WHEN configure_structlog is called
        THEN it falls back to WARNING (no crash).
        """
        configure_structlog("NONEXISTENT")
        assert structlog.get_logger() is not None

    def test_logs_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_structlog("INFO")
        structlog.get_logger().info("probe.event")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "probe.event" in captured.err


class TestCreateDecoder:
    def test_openssl_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CERT_BUNDLE_DECODER")
        assert isinstance(create_decoder(AppSettings()), OpensslCertificateDecoder)

    def test_cryptography(self) -> None:
        assert isinstance(create_decoder(AppSettings()), CryptographyCertificateDecoder)


class TestDecodeCommand:
    def test_prints_every_certificate(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = write_bundle(pems)

        assert main(["decode", str(path)]) == 0

        out = capsys.readouterr().out
        assert f"======== {path}, Certificate 1" in out
        assert f"======== {path}, Certificate 2" in out
        assert "CN = valid.example" in out
        assert "Validity *** EXPIRED ***" in out
        assert out.rstrip().endswith(f"######## {path}, 2 Certificates in File")

    def test_missing_file_does_not_stop_the_run(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = write_bundle(pems[:1])

        assert main(["decode", str(tmp_path / "missing.pem"), str(path)]) == 1

        captured = capsys.readouterr()
        assert "cert-bundle: " in captured.err
        assert "missing.pem" in captured.err
        assert f"======== {path}, Certificate 1" in captured.out


class TestDeleteCommand:
    def test_removes_expired_certificate(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """
        GIVEN a bundle with one valid and one expired certificate
        WHEN delete -e runs
        THEN only the valid certificate is left and the original is kept as backup.
        """
        path = write_bundle(pems)
        original = path.read_text()

        assert main(["delete", "-e", str(path)]) == 0

        assert path.read_text() == pems[0]
        backup = path.with_name("bundle-BACKUP.pem")
        assert backup.read_text() == original
        out = capsys.readouterr().out
        assert f"2 Certificates in File, Delete 1 (Backup to {backup})" in out
        assert "  2. DELETE *** EXPIRED ***" in out

    def test_test_mode_leaves_file_alone(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = write_bundle(pems)
        original = path.read_bytes()

        assert main(["delete", "-t", "-s", "expired.example", str(path)]) == 0

        assert path.read_bytes() == original
        assert "(File not updated in Test Mode)" in capsys.readouterr().out

    def test_backups_ignored_with_several_files(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = write_bundle(pems)
        backup = write_bundle(pems, name="bundle-BACKUP.pem")

        assert main(["delete", "-t", "-e", str(path), str(backup)]) == 0

        out = capsys.readouterr().out
        assert "Ignoring BACKUP File" in out
        assert out.count("Certificates in File") == 1

    def test_number_with_several_files_is_usage_error(
        self,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
    ) -> None:
        first = write_bundle(pems)
        second = write_bundle(pems, name="other.pem")

        with pytest.raises(SystemExit) as exc:
            main(["delete", "-n", "1", str(first), str(second)])

        assert exc.value.code == 2
        assert not first.with_name("bundle-BACKUP.pem").exists()

    def test_zero_position_is_usage_error(self, pems: tuple[str, str], write_bundle: Callable[..., Path]) -> None:
        path = write_bundle(pems)
        with pytest.raises(SystemExit) as exc:
            main(["delete", "-n", "0", str(path)])
        assert exc.value.code == 2

    def test_bad_configuration_is_fatal(
        self,
        monkeypatch: pytest.MonkeyPatch,
        pems: tuple[str, str],
        write_bundle: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("CERT_BUNDLE_BACKUP_SUFFIX", "../elsewhere")
        path = write_bundle(pems)

        assert main(["delete", "-e", str(path)]) == 1

        assert "FATAL: Configuration error" in capsys.readouterr().err
        assert not list(path.parent.glob("*BACKUP*"))
