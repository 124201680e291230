"""Main entry point: argument parsing, file loading, report output and exit codes."""
import os
import sys
import time
import logging
import argparse

from pathlib import Path

from polymorph import __version__
from polymorph.config import logger, EXIT_ERROR
from polymorph.cli.printers import ReportGenerator
from polymorph.parsers.signatures import DEFAULT_SIGNATURE_TABLES, load_signature_tables
from polymorph.scanner import Scanner
from polymorph.scoring import exit_code_for_score
from polymorph.user_config import default_signatures_path, remember_signatures_path
from polymorph.utils import format_bytes, safe_print

EXIT_CODES_HELP = "EXIT CODES:\n    0 - Clean, 1 - Low, 2 - Medium, 3 - High, 4 - Critical, 5 - Error"


def _fail(message: str) -> None:
    safe_print(f"[!] Error: {message}", file=sys.stderr)
    sys.exit(EXIT_ERROR)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polymorph",
        description=f"PolyMorph v{__version__} - Polyglot Malware Detection",
        epilog=EXIT_CODES_HELP,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("file", help="Path to the file to be analyzed.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output (debug logging and diagnostic findings).")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal output.")
    parser.add_argument("-j", "--json", action="store_true", help="JSON output.")
    parser.add_argument("-o", "--offsets", action="store_true", help="Show offsets.")
    parser.add_argument("-V", "--version", action="version", version=f"PolyMorph v{__version__}", help="Show version.")
    parser.add_argument("--signatures", default=None, help="Path to a JSON signature file. Defaults to the 'signatures_file' user config value or the built-in set.")
    parser.add_argument("--save-default", action="store_true", help="Remember the --signatures path in ~/.polymorph/config.json.")
    return parser


def _resolve_signature_tables(args):
    if args.signatures:
        signatures_path = Path(args.signatures).resolve()
    else:
        signatures_path = default_signatures_path()
    if signatures_path is None:
        return DEFAULT_SIGNATURE_TABLES
    try:
        tables = load_signature_tables(str(signatures_path))
    except (OSError, ValueError) as e:
        _fail(f"Could not load signature file: {e}")
    if args.save_default:
        try:
            remember_signatures_path(signatures_path)
        except OSError as e:
            _fail(f"Could not save default signature file: {e}")
    return tables


def main(argv=None):
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help and --version exit 0; usage errors share the I/O error code.
        sys.exit(EXIT_ERROR if e.code else 0)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logger.setLevel(log_level)

    if args.save_default and not args.signatures:
        _fail("--save-default requires --signatures PATH")

    abs_input_file = str(Path(args.file).resolve())
    if not os.path.isfile(abs_input_file):
        _fail(f"Input file not found: {abs_input_file}")

    try:
        tables = _resolve_signature_tables(args)
        try:
            with open(abs_input_file, "rb") as f:
                binary_data = f.read()
        except OSError as e:
            _fail(f"Error reading file: {e}")

        show_preamble = not args.quiet and not args.json
        if show_preamble:
            safe_print(f"Analyzing: {args.file}")
            safe_print(f"Size: {format_bytes(len(binary_data))}")

        start = time.perf_counter()
        scanner = Scanner(binary_data, tables)
        scanner.run_full_scan(args.verbose)

        if show_preamble:
            safe_print(f"Duration: {int((time.perf_counter() - start) * 1000)}ms\n")

        generator = ReportGenerator(scanner, show_offsets=args.offsets)
        safe_print(generator.generate(as_json=args.json))
        sys.exit(exit_code_for_score(generator.get_risk_score()))
    except KeyboardInterrupt:
        safe_print("\n[*] Analysis interrupted by user. Exiting.", file=sys.stderr)
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
