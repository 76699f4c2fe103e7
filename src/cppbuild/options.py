from dataclasses import dataclass
from typing import Literal

from cppbuild.compilers import CompilerChoice
from cppbuild.paths import DEFAULT_HOST_EXT, DEFAULT_MARKER_EXT

DiagFormat = Literal["human", "json"]
DEFAULT_SIGNAL_FORMAT = "cargo:rerun-if-changed={path}"


def _check_signal_format(signal_format: str) -> None:
    if "{path}" not in signal_format:
        raise ValueError("Signal format must contain {path}")
    try:
        signal_format.format(path="")
    except (IndexError, KeyError, ValueError) as error:
        raise ValueError(f"Invalid signal format {signal_format!r}: {error}") from error


@dataclass(frozen=True)
class BuildOptions:
    compiler: CompilerChoice | None = None
    include_dirs: tuple[str, ...] = ()
    marker_ext: str = DEFAULT_MARKER_EXT
    host_ext: str = DEFAULT_HOST_EXT
    signal_format: str = DEFAULT_SIGNAL_FORMAT
    diag_format: DiagFormat = "human"
    timeout: float | None = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.diag_format not in {"human", "json"}:
            raise ValueError(f"Unsupported diagnostic format: {self.diag_format}")
        if not self.marker_ext.lstrip(".") or not self.host_ext.lstrip("."):
            raise ValueError("Extensions must not be empty")
        if self.marker_ext.lstrip(".") == self.host_ext.lstrip("."):
            raise ValueError(f"Marker and host extensions are both .{self.host_ext.lstrip('.')}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Timeout must be positive: {self.timeout}")
        if self.signal_format:
            _check_signal_format(self.signal_format)


def normalize_options(options: BuildOptions | None) -> BuildOptions:
    return BuildOptions() if options is None else options
