"""
Tests for the build engine, the compilers are small shell scripts
"""
import logging
import os

import pytest

from nobuild.build.compiler import Compiler
from nobuild.build.engine import BuildEngine, BuildOutcome, MalformedRuleError, build, quote_command
from nobuild.build.items import FlagList, ObjectList
from nobuild.build.rule import BuildRule, make_rule


def create_rule(cc: str = "gcc", flags=("-Wall", "-Wextra"), target: str = "main.c",
                deps=("foo.c", "bar.c"), output: str = "out") -> BuildRule:
    rule = BuildRule()
    assert make_rule(rule, Compiler(cc), FlagList.of(*flags), target, ObjectList.of(*deps), output)
    return rule


def test_serialize():
    engine = BuildEngine()
    rule = create_rule()
    assert engine.argument_count(rule) == 8
    assert engine.serialize(rule) == ["gcc", "-Wall", "-Wextra", "-o", "out", "main.c", "foo.c", "bar.c"]


def test_serialize_without_flags():
    engine = BuildEngine()
    rule = create_rule(cc="cc", flags=(), deps=("a.c",))
    assert engine.argument_count(rule) == 5
    assert engine.serialize(rule) == ["cc", "-o", "out", "main.c", "a.c"]


def test_serialize_keeps_duplicates():
    rule = create_rule(flags=("-g", "-g"), deps=("a.c", "a.c"))
    assert BuildEngine().serialize(rule) == ["gcc", "-g", "-g", "-o", "out", "main.c", "a.c", "a.c"]


def test_malformed_rule():
    engine = BuildEngine()
    rule = BuildRule()
    assert not engine.validate(rule)
    assert not engine.validate(None)
    with pytest.raises(MalformedRuleError):
        engine.serialize(rule)
    with pytest.raises(MalformedRuleError):
        engine.argument_count(None)
    result = engine.execute(rule)
    assert result.outcome == BuildOutcome.MALFORMED_RULE
    assert result.argv == []
    assert result.return_code is None
    assert not result
    assert not build(None)


def test_released_rule_is_malformed():
    rule = create_rule()
    rule.release()
    assert BuildEngine().execute(rule).outcome == BuildOutcome.MALFORMED_RULE


def test_render_command():
    rule = create_rule(flags=("-DNAME=a b",))
    assert BuildEngine().render_command(rule) == "gcc '-DNAME=a b' -o out main.c foo.c bar.c"
    assert quote_command(["cc", "x y"]) == "cc 'x y'"


def test_successful_build(stub_compiler):
    stub_compiler("gcc", "exit 0")
    result = BuildEngine().execute(create_rule())
    assert result.outcome == BuildOutcome.SUCCESS
    assert result.return_code == 0
    assert result.success
    assert result.duration >= 0
    assert build(create_rule())


def test_arguments_are_passed(stub_compiler, tmp_path, monkeypatch):
    args_file = tmp_path / "args"
    monkeypatch.setenv("ARGS_FILE", str(args_file))
    stub_compiler("gcc", 'printf "%s\\n" "$@" > "$ARGS_FILE"')
    assert build(create_rule(flags=("-Wall",), deps=("foo.c",)))
    assert args_file.read_text().split("\n")[:-1] == ["-Wall", "-o", "out", "main.c", "foo.c"]


def test_environment_is_inherited(stub_compiler, monkeypatch):
    monkeypatch.setenv("NOBUILD_TEST_VALUE", "42")
    stub_compiler("gcc", 'test "$NOBUILD_TEST_VALUE" = 42')
    assert build(create_rule())
    monkeypatch.setenv("NOBUILD_TEST_VALUE", "0")
    assert not build(create_rule())


@pytest.mark.parametrize("code", [1, 2, 127])
def test_failing_compiler(stub_compiler, code: int):
    stub_compiler("gcc", "exit {}".format(code))
    result = BuildEngine().execute(create_rule())
    assert result.outcome == BuildOutcome.COMPILER_FAILURE
    assert result.return_code == code
    assert not result


def test_signaled_compiler(stub_compiler):
    stub_compiler("gcc", "kill -9 $$")
    result = BuildEngine().execute(create_rule())
    assert result.outcome == BuildOutcome.SIGNALED
    assert result.return_code == -9
    assert not result


def test_missing_compiler():
    result = BuildEngine().execute(create_rule(cc="nobuild-surely-missing-compiler"))
    assert result.outcome == BuildOutcome.SPAWN_FAILURE
    assert result.return_code == 127
    assert not result


def test_not_executable_compiler(stub_compiler):
    path = stub_compiler("gcc", "exit 0")
    os.chmod(path, 0o644)
    result = BuildEngine().execute(create_rule(cc=path))
    assert result.outcome == BuildOutcome.SPAWN_FAILURE
    assert result.return_code == 126


def test_debug_mode(stub_compiler, caplog):
    stub_compiler("gcc", "exit 0")
    rule = create_rule()
    plain = BuildEngine(debug=False).serialize(rule)
    engine = BuildEngine(debug=True)
    assert engine.serialize(rule) == plain
    with caplog.at_level(logging.INFO):
        assert engine.build(rule)
    assert "gcc -Wall -Wextra -o out main.c foo.c bar.c" in caplog.text


def test_debug_mode_with_warn_log_level(stub_compiler, caplog):
    from nobuild.utils.settings import Settings
    stub_compiler("gcc", "exit 0")
    Settings()["log_level"] = "warn"
    assert BuildEngine(debug=True).build(create_rule())
    assert "gcc -Wall -Wextra -o out main.c foo.c bar.c" in caplog.text


def test_debug_mode_from_settings():
    from nobuild.utils.settings import Settings
    assert not BuildEngine().debug
    Settings()["build/debug"] = True
    assert BuildEngine().debug
    assert not BuildEngine(debug=False).debug


def test_rule_is_reusable(stub_compiler):
    stub_compiler("gcc", "exit 0")
    engine = BuildEngine()
    rule = create_rule()
    assert engine.build(rule)
    assert engine.build(rule)
    assert rule.is_complete()


def test_nul_character_in_command(stub_compiler):
    stub_compiler("gcc", "exit 0")
    result = BuildEngine().execute(create_rule(output="o\0ut"))
    assert result.outcome == BuildOutcome.SPAWN_FAILURE
    assert result.return_code == 1
    assert not result
    assert BuildEngine().execute(create_rule(cc="gc\0c")).outcome == BuildOutcome.SPAWN_FAILURE


def test_too_long_name_appended_after_assembly():
    deps = ObjectList.of("foo.c")
    rule = BuildRule(capacity=16)
    assert make_rule(rule, Compiler("gcc"), None, "main.c", deps, "out")
    deps.append("a_much_too_long_file_name.c")
    engine = BuildEngine()
    assert not engine.validate(rule)
    assert engine.execute(rule).outcome == BuildOutcome.MALFORMED_RULE
