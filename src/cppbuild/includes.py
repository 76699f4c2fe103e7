import os
from collections.abc import Iterable, Mapping

INCLUDE_PATH_ENV = "CPPBUILD_INCLUDE_PATH"


def _dedupe_in_order(items: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return tuple(out)


def split_include_path(value: str, *, sep: str = os.pathsep) -> tuple[str, ...]:
    return _dedupe_in_order(part.strip() for part in value.split(sep) if part.strip())


def include_dirs_from_env(
    name: str = INCLUDE_PATH_ENV,
    environ: Mapping[str, str] | None = None,
) -> tuple[str, ...]:
    env = os.environ if environ is None else environ
    return split_include_path(env.get(name, ""))


def merge_include_dirs(*groups: Iterable[str]) -> tuple[str, ...]:
    return _dedupe_in_order(item for group in groups for item in group)
