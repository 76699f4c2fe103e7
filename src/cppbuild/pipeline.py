import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

from cppbuild.compilers import CompilerChoice, profile_for
from cppbuild.diag import NoMatchingSpanError
from cppbuild.invoker import build_invocation, run_invocation
from cppbuild.linemarkers import output_lines, scan


def preprocess_source(
    choice: CompilerChoice,
    source: str | Path,
    include_dirs: Sequence[str] = (),
    *,
    timeout: float | None = None,
    verbose: bool = False,
) -> str:
    spec = build_invocation(profile_for(choice), source, include_dirs)
    if verbose:
        print(f"cppbuild: running {shlex.join(spec.command)}", file=sys.stderr)
    raw = run_invocation(spec, timeout=timeout)
    result = scan(output_lines(raw), spec.source)
    if result.target_markers == 0:
        raise NoMatchingSpanError(
            spec.source,
            f"no line marker in {spec.executable} output names {spec.source!r}",
        )
    return result.text


def preprocess_file(
    choice: CompilerChoice,
    source: str | Path,
    output: str | Path,
    include_dirs: Sequence[str] = (),
    *,
    timeout: float | None = None,
    verbose: bool = False,
) -> Path:
    text = preprocess_source(choice, source, include_dirs, timeout=timeout, verbose=verbose)
    out_path = Path(output)
    out_path.write_text(text, encoding="utf-8", newline="\n")
    if verbose:
        print(f"cppbuild: wrote {out_path}", file=sys.stderr)
    return out_path
