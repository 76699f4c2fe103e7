import os
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from cppbuild.compilers import detect_compiler
from cppbuild.diag import CppbuildError, Diagnostic
from cppbuild.options import BuildOptions, normalize_options
from cppbuild.paths import output_path_for
from cppbuild.pipeline import preprocess_file

SignalSink = Callable[[str], None]


@dataclass
class WalkReport:
    written: list[Path] = field(default_factory=list)
    failures: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def iter_files(root: str | Path) -> Iterator[Path]:
    """Yield files under ``root`` in a stable order; a file root yields itself."""
    root_path = Path(root)
    if not root_path.is_dir():
        if root_path.exists():
            yield root_path
        return
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def _print_signal(line: str) -> None:
    # Paths from undecodable file names carry surrogates; write their original bytes.
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        print(line, flush=True)
        return
    sys.stdout.flush()
    buffer.write(os.fsencode(line) + b"\n")
    buffer.flush()


def _emit_signal(options: BuildOptions, path: Path, signal: SignalSink | None) -> None:
    if not options.signal_format or signal is None:
        return
    signal(options.signal_format.format(path=path))


def walk_preprocess(
    root: str | Path,
    options: BuildOptions | None = None,
    *,
    signal: SignalSink | None = _print_signal,
    report: WalkReport | None = None,
) -> WalkReport:
    """Preprocess every marker-extension file found under ``root``.

    Per-file failures are recorded in the report and the walk moves on. Not
    finding any preprocessor to run is fatal.
    """
    options = normalize_options(options)
    report = WalkReport() if report is None else report
    choice = options.compiler
    if not Path(root).exists():
        report.failures.append(Diagnostic("walk", str(root), "no such file or directory"))
        return report
    for path in iter_files(root):
        try:
            out_path = output_path_for(path, marker_ext=options.marker_ext, host_ext=options.host_ext)
        except CppbuildError as error:
            report.failures.append(error.diagnostic)
            continue
        if out_path is None:
            continue
        try:
            _emit_signal(options, path, signal)
        except (OSError, UnicodeError) as error:
            report.failures.append(Diagnostic("signal", str(path), str(error)))
        if choice is None:
            choice = detect_compiler()
        try:
            written = preprocess_file(
                choice,
                path,
                out_path,
                options.include_dirs,
                timeout=options.timeout,
                verbose=options.verbose,
            )
        except CppbuildError as error:
            report.failures.append(error.diagnostic)
            continue
        except OSError as error:
            report.failures.append(Diagnostic("write", str(out_path), str(error)))
            continue
        report.written.append(written)
    return report


def walk_src_preprocess(
    options: BuildOptions | None = None,
    *,
    signal: SignalSink | None = _print_signal,
) -> WalkReport:
    return walk_preprocess("src", options, signal=signal)
