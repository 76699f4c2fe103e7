"""Preprocessor families and how to run each one in preprocess-only mode."""

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from cppbuild.diag import CompilerNotFoundError


class CompilerChoice(Enum):
    GCC = "gcc"
    CLANG = "clang"
    ICC = "icc"

    @classmethod
    def parse(cls, name: str) -> "CompilerChoice":
        normalized = name.strip().lower()
        for choice in cls:
            if choice.value == normalized:
                return choice
        raise ValueError(f"Unsupported compiler: {name}")


@dataclass(frozen=True)
class CompilerProfile:
    executable: str
    flags: tuple[str, ...]


# icc treats its input as C without being told to.
_PROFILES: dict[CompilerChoice, CompilerProfile] = {
    CompilerChoice.GCC: CompilerProfile("gcc", ("-E", "-x", "c")),
    CompilerChoice.CLANG: CompilerProfile("clang", ("-E", "-x", "c")),
    CompilerChoice.ICC: CompilerProfile("icc", ("-E",)),
}

DETECTION_ORDER: tuple[CompilerChoice, ...] = (
    CompilerChoice.GCC,
    CompilerChoice.CLANG,
    CompilerChoice.ICC,
)


def profile_for(choice: CompilerChoice) -> CompilerProfile:
    return _PROFILES[choice]


def detect_compiler(which: Callable[[str], str | None] | None = None) -> CompilerChoice:
    """Return the first preprocessor family found on the search path."""
    lookup = shutil.which if which is None else which
    for choice in DETECTION_ORDER:
        if lookup(profile_for(choice).executable) is not None:
            return choice
    names = ", ".join(choice.value for choice in DETECTION_ORDER)
    raise CompilerNotFoundError("<PATH>", f"no C preprocessor found (tried {names})")
