from pathlib import Path

from cppbuild.diag import PathMappingFailure

DEFAULT_MARKER_EXT = "cpprs"
DEFAULT_HOST_EXT = "rs"


def _suffix(ext: str) -> str:
    return ext if ext.startswith(".") else f".{ext}"


def output_path_for(
    path: str | Path,
    *,
    marker_ext: str = DEFAULT_MARKER_EXT,
    host_ext: str = DEFAULT_HOST_EXT,
) -> Path | None:
    """Map ``dir/name.<marker_ext>`` to ``dir/name.<host_ext>``.

    Returns None for any path without the marker extension, including one that
    already has the host extension. The comparison is case-sensitive.
    """
    source = Path(path)
    if source.suffix != _suffix(marker_ext):
        return None
    if not source.stem.strip("."):
        raise PathMappingFailure(str(path), f"no file stem to build a .{host_ext.lstrip('.')} name from")
    return source.parent / f"{source.stem}{_suffix(host_ext)}"
