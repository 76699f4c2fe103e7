from dataclasses import dataclass

LAUNCH_FAILED = "CPPB-0101"
PREPROCESSOR_FAILED = "CPPB-0201"
NO_MATCHING_SPAN = "CPPB-0301"
PATH_MAPPING_FAILED = "CPPB-0401"
COMPILER_NOT_FOUND = "CPPB-0501"


@dataclass(frozen=True)
class Diagnostic:
    stage: str
    filename: str
    message: str
    code: str | None = None

    def __str__(self) -> str:
        return f"{self.filename}: {self.stage}: {self.message}"


class CppbuildError(ValueError):
    stage = "pipeline"
    code: str | None = None

    def __init__(self, filename: str, message: str) -> None:
        diagnostic = Diagnostic(self.stage, filename, message, self.code)
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


class PreprocessorLaunchError(CppbuildError):
    stage = "launch"
    code = LAUNCH_FAILED


class PreprocessorFailure(CppbuildError):
    stage = "execution"
    code = PREPROCESSOR_FAILED

    def __init__(
        self,
        filename: str,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        detail = stderr.strip()
        super().__init__(filename, f"{message}\n{detail}" if detail else message)
        self.returncode = returncode
        self.stderr = stderr


class NoMatchingSpanError(CppbuildError):
    stage = "scanning"
    code = NO_MATCHING_SPAN


class PathMappingFailure(CppbuildError):
    stage = "path mapping"
    code = PATH_MAPPING_FAILED


class CompilerNotFoundError(CppbuildError):
    stage = "detection"
    code = COMPILER_NOT_FOUND
