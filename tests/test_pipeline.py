import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tests import _bootstrap  # noqa: F401
from cppbuild.compilers import CompilerChoice
from cppbuild.diag import NoMatchingSpanError, PreprocessorFailure, PreprocessorLaunchError
from cppbuild.pipeline import preprocess_file, preprocess_source


def _completed(
    stdout: str, returncode: int = 0, stderr: str = ""
) -> subprocess.CompletedProcess[bytes]:
    return subprocess.CompletedProcess(
        ("cc",), returncode, stdout=stdout.encode(), stderr=stderr.encode()
    )


class PreprocessSourceTests(unittest.TestCase):
    def test_filters_to_target_lines(self) -> None:
        raw = "\n".join(
            [
                '# 1 "src/lib.cpprs"',
                '# 1 "<built-in>"',
                '# 1 "<command-line>"',
                '# 1 "/usr/include/stdc-predef.h" 1 3 4',
                "typedef int predef;",
                '# 1 "<command-line>" 2',
                '# 1 "src/lib.cpprs"',
                "fn a() {}",
                '# 1 "cbits/x.h" 1',
                "fn header() {}",
                '# 3 "src/lib.cpprs" 2',
                "fn b() {}",
                "",
            ]
        )
        with patch("cppbuild.invoker.subprocess.run", return_value=_completed(raw)) as run:
            text = preprocess_source(CompilerChoice.GCC, "src/lib.cpprs", ["cbits"])
        self.assertEqual(text, "fn a() {}\nfn b() {}\n")
        self.assertEqual(
            run.call_args.args[0],
            ("gcc", "-E", "-x", "c", "-I", "cbits", "src/lib.cpprs"),
        )

    def test_target_is_the_path_as_given(self) -> None:
        raw = '# 1 "./lib.cpprs"\nkept\n'
        with patch("cppbuild.invoker.subprocess.run", return_value=_completed(raw)):
            self.assertEqual(preprocess_source(CompilerChoice.CLANG, "./lib.cpprs"), "kept\n")

    def test_no_matching_marker_is_reported(self) -> None:
        raw = '# 1 "/abs/lib.cpprs"\nfn a() {}\n'
        with patch("cppbuild.invoker.subprocess.run", return_value=_completed(raw)):
            with self.assertRaises(NoMatchingSpanError) as ctx:
                preprocess_source(CompilerChoice.GCC, "lib.cpprs")
        self.assertEqual(ctx.exception.diagnostic.stage, "scanning")
        self.assertEqual(ctx.exception.diagnostic.filename, "lib.cpprs")

    def test_empty_target_is_not_an_error(self) -> None:
        raw = '# 1 "lib.cpprs"\n'
        with patch("cppbuild.invoker.subprocess.run", return_value=_completed(raw)):
            self.assertEqual(preprocess_source(CompilerChoice.GCC, "lib.cpprs"), "")


class PreprocessFileTests(unittest.TestCase):
    def test_writes_output(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "lib.cpprs"
            out = Path(tmp) / "lib.rs"
            out.write_text("stale\n", encoding="utf-8")
            raw = f'# 1 "{source}"\nfn a() {{}}\n'
            with patch("cppbuild.invoker.subprocess.run", return_value=_completed(raw)):
                written = preprocess_file(CompilerChoice.GCC, source, out)
            self.assertEqual(written, out)
            self.assertEqual(out.read_text(encoding="utf-8"), "fn a() {}\n")

    def test_failure_writes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "lib.cpprs"
            out = Path(tmp) / "lib.rs"
            failed = _completed(f'# 1 "{source}"\npartial\n', returncode=1, stderr="boom")
            with patch("cppbuild.invoker.subprocess.run", return_value=failed):
                with self.assertRaises(PreprocessorFailure):
                    preprocess_file(CompilerChoice.GCC, source, out)
            self.assertFalse(out.exists())

    def test_missing_executable_writes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "lib.cpprs"
            out = Path(tmp) / "lib.rs"
            with patch("cppbuild.invoker.subprocess.run", side_effect=FileNotFoundError("no gcc")):
                with self.assertRaises(PreprocessorLaunchError):
                    preprocess_file(CompilerChoice.GCC, source, out)
            self.assertFalse(out.exists())


@unittest.skipUnless(shutil.which("gcc"), "gcc is not installed")
class GccPipelineTests(unittest.TestCase):
    def test_round_trip_without_directives(self) -> None:
        source_text = "fn main() {}\nlet x = 1;\nlet y = x + 2;\n"
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "plain.cpprs"
            source.write_text(source_text, encoding="utf-8")
            text = preprocess_source(CompilerChoice.GCC, str(source))
        self.assertEqual(text, source_text)

    def test_macros_and_includes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "cbits").mkdir()
            (root / "cbits" / "defs.h").write_text(
                "#define WIDTH 8\nlet from_header = 0;\n", encoding="utf-8"
            )
            source = root / "lib.cpprs"
            source.write_text(
                '#include "defs.h"\nlet a = WIDTH;\n#ifdef MISSING\nlet gone = 1;\n#endif\nlet b = 2;\n',
                encoding="utf-8",
            )
            text = preprocess_source(CompilerChoice.GCC, str(source), [str(root / "cbits")])
        self.assertIn("let a = 8;", text)
        self.assertIn("let b = 2;", text)
        self.assertNotIn("from_header", text)
        self.assertNotIn("gone", text)
        self.assertNotIn("#", text)


if __name__ == "__main__":
    unittest.main()
