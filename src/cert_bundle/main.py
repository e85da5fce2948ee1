"""
Application entry point — parses the command line and wires dependencies.

Composition root: creates concrete adapters and injects them into the
pipelines. This is the ONLY place where concrete adapter classes are
instantiated; everything else depends on Protocol interfaces.

Commands:
  cert-bundle decode [-d] [-p] [-v] FILE...
  cert-bundle delete [-d] [-e] [-f] [-i ISSUER] [-n NUMBER] [-p]
                     [-s SUBJECT] [-t] [-v] FILE...

Files are processed one after another. A file that cannot be processed is
reported on standard error and the run continues; the exit status is 1 if
any file failed. Usage errors exit with status 2 before any file is read.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TextIO

import structlog
from pydantic import ValidationError
from railway.failure import FailureDescription

from cert_bundle import __version__
from cert_bundle.adapters.cryptography_decoder import CryptographyCertificateDecoder
from cert_bundle.adapters.openssl_decoder import OpensslCertificateDecoder
from cert_bundle.adapters.rewriter import FilesystemBundleRewriter
from cert_bundle.config import AppSettings, EditOptions
from cert_bundle.domain.models import CertificateRecord, EditReport
from cert_bundle.domain.ports import BundleRewriter, CertificateDecoder
from cert_bundle.pipeline import run_decode, run_delete
from cert_bundle.reporting import (
    decode_trailer,
    decoded_lines,
    display_path,
    edit_report_lines,
    file_label,
    ignored_backup_line,
)


def configure_structlog(log_level: str = "WARNING") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    Standard output is reserved for the report.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cert-bundle",
        description="Inspect PEM certificate bundles and remove certificates from them.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    decode = commands.add_parser("decode", help="Show issuer, subject and validity of every certificate")
    decode.add_argument("-d", "--debug", action="store_true", help="Debug Output")
    decode.add_argument("-p", "--path", dest="full_path", action="store_true", help="Display Full Pathname")
    decode.add_argument("-v", "--verbose", action="store_true", help="Verbose (Full) Output from the decoder")
    decode.add_argument("files", nargs="+", type=Path, metavar="FILE")

    delete = commands.add_parser("delete", help="Remove certificates from bundles, keeping a backup")
    delete.add_argument("-d", "--debug", action="store_true", help="Debug Output")
    delete.add_argument("-e", "--expired", action="store_true", help="Delete Expired Certificates")
    delete.add_argument("-f", "--force", action="store_true", help="Overwrite Backup")
    delete.add_argument("-i", "--issuer", help="Delete by Matching Issuer (organization or common name)")
    delete.add_argument("-n", "--number", type=int, help="Delete by Matching Certificate Number")
    delete.add_argument("-p", "--path", dest="full_path", action="store_true", help="Display Full Pathname")
    delete.add_argument("-s", "--subject", help="Delete by Matching Subject (organization or common name)")
    delete.add_argument("-t", "--test", dest="test_mode", action="store_true", help="Test Mode - Do not delete")
    delete.add_argument("-v", "--verbose", action="store_true", help="Verbose Output")
    delete.add_argument("files", nargs="+", type=Path, metavar="FILE")
    return parser


def create_decoder(settings: AppSettings) -> CertificateDecoder:
    """Instantiate the configured decoder adapter."""
    if settings.decoder == "cryptography":
        return CryptographyCertificateDecoder()
    return OpensslCertificateDecoder(binary=settings.openssl_binary, temp_dir=settings.temp_dir)


def _emit(lines: Iterable[str | None], stream: TextIO) -> None:
    for line in lines:
        if line is not None:
            print(line, file=stream)  # noqa: T201
    stream.flush()


def _report_failure(error: FailureDescription, stream: TextIO) -> bool:
    structlog.get_logger().debug("file.failed", code=error.code.value, detail=error.full_stack_trace())
    _emit([f"cert-bundle: {error.message}"], stream)
    return False


def decode_files(
    files: Sequence[Path],
    decoder: CertificateDecoder,
    debug: bool = False,
    full_path: bool = False,
    verbose: bool = False,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run the decode command over `files`; return the number of failed files."""
    out = out or sys.stdout
    err = err or sys.stderr
    failures = 0
    for path in files:
        label = display_path(path, full_path)
        seen: list[CertificateRecord] = []

        def show(record: CertificateRecord) -> None:
            seen.append(record)
            _emit(decoded_lines(record, label, debug=debug, verbose=verbose), out)

        ok = run_decode(path, decoder, show).either(
            on_success=lambda _: True,
            on_failure=lambda error: _report_failure(error, err),
        )
        _emit([decode_trailer(label, len(seen))], out)
        failures += 0 if ok else 1
    return failures


def _show_report(report: EditReport, label: str, options: EditOptions, out: TextIO) -> bool:
    _emit(edit_report_lines(report, label, debug=options.debug, verbose=options.verbose), out)
    return True


def _is_backup(path: Path, backup_suffix: str) -> bool:
    return f"{backup_suffix}." in path.name or path.name.endswith(backup_suffix)


def delete_files(
    files: Sequence[Path],
    options: EditOptions,
    decoder: CertificateDecoder,
    rewriter: BundleRewriter,
    backup_suffix: str = "-BACKUP",
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run the delete command over `files`; return the number of failed files."""
    out = out or sys.stdout
    err = err or sys.stderr
    failures = 0
    for path in files:
        label = file_label(path, options.full_path)
        if len(files) > 1 and _is_backup(path, backup_suffix):
            _emit([ignored_backup_line(label)], out)
            continue

        ok = run_delete(path, decoder, rewriter, options, backup_suffix).either(
            on_success=lambda report: _show_report(report, label, options, out),
            on_failure=lambda error: _report_failure(error, err),
        )
        failures += 0 if ok else 1
    return failures


def _edit_options(args: argparse.Namespace, parser: argparse.ArgumentParser) -> EditOptions:
    if args.number is not None and len(args.files) > 1:
        parser.error("-n may be specified only with a single file")
    try:
        return EditOptions(
            position=args.number,
            issuer=args.issuer,
            subject=args.subject,
            expired=args.expired,
            force=args.force,
            test_mode=args.test_mode,
            debug=args.debug,
            full_path=args.full_path,
            verbose=args.verbose,
        )
    except ValidationError as e:
        parser.error(f"invalid option value: {e.errors()[0]['msg']}")


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, wire adapters, and process every file."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AppSettings()
    except ValidationError as e:
        print(f"FATAL: Configuration error: {e}", file=sys.stderr)  # noqa: T201
        return 1

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.debug("app.starting", version=__version__, command=args.command, decoder=settings.decoder)

    decoder = create_decoder(settings)
    if args.command == "decode":
        failures = decode_files(
            args.files,
            decoder,
            debug=args.debug,
            full_path=args.full_path,
            verbose=args.verbose,
        )
    else:
        options = _edit_options(args, parser)
        failures = delete_files(
            args.files,
            options,
            decoder,
            FilesystemBundleRewriter(),
            backup_suffix=settings.backup_suffix,
        )

    log.debug("app.finished", files=len(args.files), failures=failures)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
