import io
import json
import os
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from consolefmt import FormattingConsole, cli


def _run_main(argv: list[str], env: dict[str, str] | None = None) -> tuple[int, str, str]:
    """Run the CLI in-process, returning (exit code, stdout, stderr)."""
    stdout, stderr = io.StringIO(), io.StringIO()
    previous = {name: os.environ.get(name) for name in env or {}}
    os.environ.update(env or {})
    code = 0
    try:
        with redirect_stdout(stdout), redirect_stderr(stderr):
            cli.main(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
    finally:
        for name, value in previous.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value
    return code, stdout.getvalue(), stderr.getvalue()


def _write_json(directory: str, document: object) -> str:
    path = Path(directory) / "input.json"
    path.write_text(json.dumps(document), encoding="utf8")
    return str(path)


def assert_parses_bool_env() -> None:
    if cli._parse_bool_env("Yes", env_var="X") is not True:
        raise AssertionError("'Yes' must parse as True")
    if cli._parse_bool_env(" off ", env_var="X") is not False:
        raise AssertionError("' off ' must parse as False")
    if cli._parse_bool_env(None, env_var="X") is not None:
        raise AssertionError("unset must parse as None")
    try:
        cli._parse_bool_env("maybe", env_var="X")
    except ValueError:
        pass
    else:
        raise AssertionError("'maybe' must be rejected")


def assert_parses_int_env() -> None:
    if cli._parse_int_env("42", env_var="W") != 42:
        raise AssertionError("'42' must parse as 42")
    for bad in ("wide", "0", "-3"):
        try:
            cli._parse_int_env(bad, env_var="W")
        except ValueError:
            pass
        else:
            raise AssertionError(f"{bad!r} must be rejected")


def assert_renders_modes() -> None:
    buffer = io.StringIO()
    out = FormattingConsole(buffer, buffer)
    cli.render(["a", {"b": 1}], out, "log")
    cli.render(["x", "y", "x", 3], out, "count")
    cli.render({"k": "v"}, out, "table")
    lines = buffer.getvalue().splitlines()
    expected_head = ["a", "{ b: 1 }", "x: 1", "y: 1", "x: 2", "3: 1"]
    if lines[:6] != expected_head:
        raise AssertionError(f"unexpected log/count output: {lines[:6]!r}")
    if lines[9] != '| k       | "v"   |':
        raise AssertionError(f"unexpected table row: {lines[9]!r}")


def assert_main_renders_table_with_tags_and_group() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = _write_json(tmp, [1, 2])
        code, stdout, _ = _run_main(
            ["--level-tags", "-w", "40", "-g", "Numbers", path]
        )
    if code != 0:
        raise AssertionError(f"expected exit 0, got {code}")
    lines = stdout.splitlines()
    expected = [
        "L: > Numbers",
        "L: > ___________________",
        "L: > | (index) | Value |",
        "L: > |---------|-------|",
        "L: > | 0       | 1     |",
        "L: > | 1       | 2     |",
        "L: > ‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾",
    ]
    if lines != expected:
        raise AssertionError(f"expected {expected!r}, got {lines!r}")


def assert_main_reads_mode_from_env() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = _write_json(tmp, ["one", "two"])
        code, stdout, _ = _run_main([path], env={"CONSOLEFMT_MODE": "log"})
    if code != 0 or stdout != "one\ntwo\n":
        raise AssertionError(f"unexpected result: {code} {stdout!r}")


def assert_main_rejects_invalid_env() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = _write_json(tmp, [])
        code, _, stderr = _run_main(
            [path], env={"CONSOLEFMT_LEVEL_TAGS": "sometimes"}
        )
    if code != 2 or "ERROR: Invalid boolean value for CONSOLEFMT_LEVEL_TAGS" not in stderr:
        raise AssertionError(f"unexpected result: {code} {stderr!r}")


def assert_main_rejects_invalid_json() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "broken.json"
        path.write_text("{not json", encoding="utf8")
        code, stdout, stderr = _run_main([str(path)])
        missing_code, _, missing_stderr = _run_main([str(Path(tmp) / "nope.json")])
        latin1 = Path(tmp) / "latin1.json"
        latin1.write_bytes(b'["caf\xe9"]')
        latin1_code, latin1_stdout, latin1_stderr = _run_main([str(latin1)])
    if code != 2 or "is not valid JSON" not in stderr or stdout:
        raise AssertionError(f"unexpected result: {code} {stderr!r}")
    if missing_code != 2 or "Could not read" not in missing_stderr:
        raise AssertionError(f"unexpected result: {missing_code} {missing_stderr!r}")
    if (
        latin1_code != 2
        or "ERROR:" not in latin1_stderr
        or "is not valid UTF-8" not in latin1_stderr
        or latin1_stdout
    ):
        raise AssertionError(f"unexpected result: {latin1_code} {latin1_stderr!r}")


def main() -> None:
    assert_parses_bool_env()
    assert_parses_int_env()
    assert_renders_modes()
    assert_main_renders_table_with_tags_and_group()
    assert_main_reads_mode_from_env()
    assert_main_rejects_invalid_env()
    assert_main_rejects_invalid_json()
    print("cli test passed")


if __name__ == "__main__":
    main()
