import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import cast

from cppbuild.compilers import CompilerChoice, detect_compiler
from cppbuild.diag import CppbuildError, Diagnostic
from cppbuild.includes import include_dirs_from_env, merge_include_dirs
from cppbuild.options import DEFAULT_SIGNAL_FORMAT, BuildOptions
from cppbuild.paths import DEFAULT_HOST_EXT, DEFAULT_MARKER_EXT
from cppbuild.pipeline import preprocess_source
from cppbuild.walker import WalkReport, walk_preprocess

COMPILER_ENV = "CPPBUILD_CC"


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cppbuild",
        description=(
            "Run the C preprocessor over annotated source files and keep only "
            "the lines that came from each file."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["src"],
        help="files or directories to search for annotated sources (default: src)",
    )
    parser.add_argument(
        "--cc",
        choices=tuple(choice.value for choice in CompilerChoice),
        default=None,
        help=f"preprocessor family to run (default: ${COMPILER_ENV}, else the first one found)",
    )
    parser.add_argument("-I", dest="include_dirs", action="append", default=[], help="include path")
    parser.add_argument(
        "--no-env-includes",
        dest="env_includes",
        action="store_false",
        help="ignore include paths from $CPPBUILD_INCLUDE_PATH",
    )
    parser.add_argument(
        "--marker-ext",
        default=DEFAULT_MARKER_EXT,
        help=f"extension of annotated source files (default: {DEFAULT_MARKER_EXT})",
    )
    parser.add_argument(
        "--host-ext",
        default=DEFAULT_HOST_EXT,
        help=f"extension written for reconstituted files (default: {DEFAULT_HOST_EXT})",
    )
    parser.add_argument(
        "--signal-format",
        default=DEFAULT_SIGNAL_FORMAT,
        help="build-system dependency line printed per annotated file",
    )
    parser.add_argument(
        "--no-signals",
        dest="signal_format",
        action="store_const",
        const="",
        help="do not print build-system dependency lines",
    )
    parser.add_argument(
        "--diag-format",
        choices=("human", "json"),
        default="human",
        help="diagnostic output format",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="seconds to wait for each preprocessor run (default: no limit)",
    )
    parser.add_argument(
        "--stdout",
        dest="stdout_source",
        metavar="FILE",
        default=None,
        help="preprocess FILE and print the result instead of walking PATHs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="print commands and outputs")
    return parser


def _print_diagnostic(diagnostic: Diagnostic, diag_format: str) -> None:
    if diag_format == "json":
        print(
            json.dumps(
                {
                    "stage": diagnostic.stage,
                    "filename": diagnostic.filename,
                    "code": diagnostic.code,
                    "message": diagnostic.message,
                },
                separators=(",", ":"),
            ),
            file=sys.stderr,
        )
    else:
        print(f"cppbuild: {diagnostic}", file=sys.stderr)


def _configured_compiler(name: str | None) -> CompilerChoice | None:
    if name is None:
        name = os.environ.get(COMPILER_ENV, "").strip() or None
    if name is None:
        return None
    return CompilerChoice.parse(name)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as error:
        return cast(int, error.code)
    env_dirs = include_dirs_from_env() if args.env_includes else ()
    try:
        options = BuildOptions(
            compiler=_configured_compiler(args.cc),
            include_dirs=merge_include_dirs(args.include_dirs, env_dirs),
            marker_ext=args.marker_ext,
            host_ext=args.host_ext,
            signal_format=args.signal_format,
            diag_format=args.diag_format,
            timeout=args.timeout,
            verbose=args.verbose,
        )
    except ValueError as error:
        print(f"cppbuild: configuration error: {error}", file=sys.stderr)
        return 2

    if args.stdout_source is not None:
        try:
            compiler = options.compiler if options.compiler is not None else detect_compiler()
            text = preprocess_source(
                compiler,
                args.stdout_source,
                options.include_dirs,
                timeout=options.timeout,
                verbose=options.verbose,
            )
        except CppbuildError as error:
            _print_diagnostic(error.diagnostic, options.diag_format)
            return 1
        sys.stdout.write(text)
        return 0

    report = WalkReport()
    try:
        for path in args.paths:
            walk_preprocess(path, options, report=report)
    except CppbuildError as error:
        _print_diagnostic(error.diagnostic, options.diag_format)
        return 1
    for diagnostic in report.failures:
        _print_diagnostic(diagnostic, options.diag_format)
    if not report.ok:
        print(
            f"cppbuild: {len(report.failures)} failed, {len(report.written)} files written",
            file=sys.stderr,
        )
        return 1
    print(f"cppbuild: ok: {len(report.written)} files written", file=sys.stderr)
    return 0
