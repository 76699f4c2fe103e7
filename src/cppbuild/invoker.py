import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from cppbuild.compilers import CompilerProfile
from cppbuild.diag import PreprocessorFailure, PreprocessorLaunchError


@dataclass(frozen=True)
class InvocationSpec:
    executable: str
    arguments: tuple[str, ...]
    source: str

    @property
    def command(self) -> tuple[str, ...]:
        return (self.executable, *self.arguments)


def include_args(include_dirs: Sequence[str]) -> tuple[str, ...]:
    args: list[str] = []
    for directory in include_dirs:
        args.extend(("-I", directory))
    return tuple(args)


def build_invocation(
    profile: CompilerProfile,
    source: str | Path,
    include_dirs: Sequence[str] = (),
) -> InvocationSpec:
    # The preprocessor echoes the input path back verbatim in its line markers,
    # so the exact string passed here is the scan target.
    source_arg = str(source)
    arguments = (*profile.flags, *include_args(include_dirs), source_arg)
    return InvocationSpec(profile.executable, arguments, source_arg)


def _decode_stderr(output: bytes | None) -> str:
    if output is None:
        return ""
    return output.decode("utf-8", errors="replace")


def run_invocation(spec: InvocationSpec, *, timeout: float | None = None) -> str:
    """Run the preprocessor once and return its standard output.

    Raises PreprocessorLaunchError when the executable cannot be started and
    PreprocessorFailure on a non-zero exit, a timeout or undecodable output.
    """
    try:
        completed = subprocess.run(
            spec.command,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as error:
        raise PreprocessorFailure(
            spec.source,
            f"{spec.executable} timed out after {timeout}s",
            stderr=_decode_stderr(error.stderr),
        ) from error
    except OSError as error:
        raise PreprocessorLaunchError(
            spec.source, f"failed to execute {spec.executable}: {error}"
        ) from error
    stderr = _decode_stderr(completed.stderr)
    if completed.returncode != 0:
        raise PreprocessorFailure(
            spec.source,
            f"{spec.executable} exited with status {completed.returncode}",
            returncode=completed.returncode,
            stderr=stderr,
        )
    try:
        return completed.stdout.decode("utf-8")
    except UnicodeDecodeError as error:
        raise PreprocessorFailure(
            spec.source,
            f"{spec.executable} produced output that is not valid UTF-8: {error}",
            returncode=completed.returncode,
            stderr=stderr,
        ) from error
