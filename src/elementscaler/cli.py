"""Command-line interface for scaling, flipping, rotating and converting elements."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .document import ElementFormatError, TransformConfig, dump_xml, parse_document, process_document
from .formatting import parse_factor
from .svg import to_svg

logger = logging.getLogger(__name__)

USAGE_HINT = "Run 'elementscaler --help' for the list of options."


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="elementscaler",
        description="Scale, flip, rotate and convert QElectroTech element files (.elmt).",
    )
    parser.add_argument("file", nargs="?", help="Input .elmt file")
    parser.add_argument("-f", "--file", dest="file_option", metavar="FILE", help="Input .elmt file")
    parser.add_argument("-i", "--stdin", action="store_true", help="Read the element from stdin")
    parser.add_argument("-o", "--stdout", action="store_true", help="Write the result to stdout")
    parser.add_argument("-F", "--factor", help="Scale factor for both axes (default 1)")
    parser.add_argument("-x", "--factorx", help="Scale factor for the x axis")
    parser.add_argument("-y", "--factory", help="Scale factor for the y axis")
    parser.add_argument("-d", "--decimals", type=int, default=2, help="Decimals in the output (default 2)")
    parser.add_argument(
        "--RemoveAllTerminals",
        dest="remove_terminals",
        action="store_true",
        help="Drop every terminal and make the element a thumbnail",
    )
    parser.add_argument(
        "--FlipHorizontal", dest="flip_horizontal", action="store_true", help="Flip upside down"
    )
    parser.add_argument(
        "--FlipVertical", dest="flip_vertical", action="store_true", help="Mirror left to right"
    )
    parser.add_argument("--Rot90", dest="rotate90", action="store_true", help="Rotate 90° clockwise")
    parser.add_argument("--toSVG", dest="to_svg", action="store_true", help="Write SVG instead of .elmt")
    parser.add_argument(
        "--OverwriteOriginal",
        dest="overwrite",
        action="store_true",
        help="Replace the input file instead of writing FILE.SCALED.elmt",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")
    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _factor(option: str, value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return parse_factor(value)
    except ValueError as exc:
        raise CliError(
            "E_ARGS",
            f"{option}: {exc}",
            hint="Use a number like 2, 0.5 or 0,5.",
            exit_code=2,
        )


def _build_config(args: argparse.Namespace) -> TransformConfig:
    factor = _factor("--factor", args.factor, 1.0)
    try:
        return TransformConfig(
            scale_x=_factor("--factorx", args.factorx, factor),
            scale_y=_factor("--factory", args.factory, factor),
            flip_horizontal=args.flip_horizontal,
            flip_vertical=args.flip_vertical,
            rotate90=args.rotate90,
            remove_terminals=args.remove_terminals,
            decimals=args.decimals,
        )
    except ValueError as exc:
        raise CliError(
            "E_ARGS",
            str(exc),
            hint="Scale factors must be at least 0.01 and decimals at least 0.",
            exit_code=2,
        )


def _read_input(args: argparse.Namespace) -> Tuple[str, str, Optional[Path]]:
    if args.file and args.file_option:
        raise CliError(
            "E_ARGS",
            "input file given twice",
            hint="Use either FILE or --file.",
            exit_code=2,
        )
    path = args.file or args.file_option
    if path and args.stdin:
        raise CliError(
            "E_ARGS",
            "--stdin cannot be combined with file input",
            hint="Use either FILE or --stdin.",
            exit_code=2,
        )

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(encoding="utf-8"), str(input_path), input_path
        except (OSError, UnicodeDecodeError) as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if not args.stdin and sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Give an .elmt FILE, or pipe an element into --stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe the content of an .elmt file into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def output_path_for(source_path: Path, *, to_svg: bool = False, overwrite: bool = False) -> Path:
    """``X.elmt`` becomes ``X.SCALED.elmt``, or ``X.elmt.svg`` for SVG output."""
    if to_svg:
        return source_path.with_name(source_path.name + ".svg")
    if overwrite:
        return source_path
    return source_path.with_name(f"{source_path.stem}.SCALED{source_path.suffix}")


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _error_from_exception(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, ET.ParseError):
        line, column = getattr(exc, "position", (None, None))
        return CliError(
            "E_PARSE_XML",
            f"failed to parse XML: {exc}",
            hint="Ensure the input is a well-formed .elmt file.",
            exit_code=2,
            line=line,
            column=column,
        )
    if isinstance(exc, ElementFormatError):
        return CliError(
            "E_DOCUMENT",
            str(exc),
            hint="Only element (<definition>) and directory (<qet-directory>) files are supported.",
            exit_code=3,
            retryable=False,
        )
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle(args: argparse.Namespace) -> int:
    config = _build_config(args)
    source, source_name, source_path = _read_input(args)

    try:
        root = parse_document(source)
    except ET.ParseError as exc:
        err = _error_from_exception(exc)
        err.file = source_name
        raise err
    report = process_document(root, config)
    if report is not None and report.dropped:
        logger.info("%s: dropped %d invalid primitive(s)", source_name, len(report.dropped))

    if args.to_svg:
        if report is None:
            raise CliError(
                "E_DOCUMENT",
                "only element definitions can be converted to SVG",
                hint="Remove --toSVG for directory files.",
                exit_code=3,
                file=source_name,
                retryable=False,
            )
        output = to_svg(root, config.decimals)
    else:
        output = dump_xml(root)

    if args.stdout or source_path is None:
        sys.stdout.write(output)
        if not output.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = output_path_for(source_path, to_svg=args.to_svg, overwrite=args.overwrite)
    if output_path == source_path:
        logger.warning("overwriting original file %s", source_path)
    _write_text(output_path, output)
    print(f"Wrote {output_path}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    debug_enabled = "--debug" in raw_argv or os.getenv("ELEMENTSCALER_DEBUG") == "1"
    _configure_logging(debug_enabled)
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    if not raw_argv:
        err = CliError("E_ARGS", "no input provided", hint=USAGE_HINT, exit_code=2)
        _emit_error(err, error_format=error_format)
        return err.exit_code

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format
        return _handle(args)
    except UsageError as exc:
        err = CliError("E_ARGS", str(exc), hint=USAGE_HINT, exit_code=2)
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
