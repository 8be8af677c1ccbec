"""
Tests related to the typecheck code
"""
import click
import pytest

from nobuild.utils.typecheck import typecheck, Int, Dict, Either, T, Str, Bool, \
    ExactEither, Default, Description, PositiveInt


def test_dict_missing_key_error_msg():
    assert Dict({"a": Int()}).check({}) == "value['a'] is missing, expected value of type Int()"


def test_dict_wrong_type_error_msg():
    msg = Dict({"a": Int()}).check({"a": "s"}, "settings")
    assert msg.startswith("settings['a']")
    assert "hasn't the expected type Int()" in msg


def test_dict_unknown_keys():
    assert not isinstance({"a": 1, "b": 2}, Dict({"a": Int()}))
    assert "has the unknown key 'b'" in Dict({"a": Int()}).check({"a": 1, "b": 2})
    assert not isinstance([1], Dict({"a": Int()}))


def test_nested_dict():
    scheme = Dict({"build": Dict({"cc": Str()})})
    assert isinstance({"build": {"cc": "gcc"}}, scheme)
    assert scheme.check({"build": {"cc": 3}}, "settings").startswith("settings['build']['cc'] 3")
    assert isinstance(scheme["build"], Dict)


def test_either_ints():
    assert isinstance(28593, Either(Either(Int() | T(float)) | Str()))
    assert isinstance(2.0, Int() | T(float))
    assert not isinstance(["1"], Int() | T(float) | Str())


def test_int_is_no_bool():
    assert not isinstance(True, Int())
    assert isinstance(3, PositiveInt())
    assert not isinstance(0, PositiveInt())
    assert not isinstance(1, PositiveInt(lambda x: x > 1))
    assert isinstance(2, PositiveInt(lambda x: x > 1))


def test_exact_values():
    assert isinstance("warn", ExactEither("debug", "warn"))
    assert not isinstance("verbose", ExactEither("debug", "warn"))
    assert "ExactEither('debug'|'warn')" in ExactEither("debug", "warn").check("x")


def test_typecheck():
    typecheck("cc", Str())
    typecheck(3, int)
    with pytest.raises(TypeError, match="build/cc 3 hasn't the expected type Str()"):
        typecheck(3, Str(), "build/cc")
    with pytest.raises(TypeError):
        typecheck("3", int)


def test_default_is_typechecked():
    with pytest.raises(TypeError):
        Int() // Default("3")
    with pytest.raises(ValueError):
        Int().get_default()
    assert (Int() // Default(3)).get_default() == 3


def test_description():
    assert (Str() // "Compiler").description == "Compiler"
    assert (Str() // Description("Compiler")).description == "Compiler"


def test_dict_defaults():
    scheme = Dict({
        "cc": Str() // Default("cc") // Description("Compiler"),
        "build": Dict({
            "debug": Bool() // Default(False)
        })
    })
    assert scheme.get_default() == {"cc": "cc", "build": {"debug": False}}
    yaml_str = scheme.get_default_yaml()
    assert "# Compiler" in yaml_str
    assert "cc: cc" in yaml_str
    assert "build:" in yaml_str
    assert "    debug: false" in yaml_str
    assert yaml_str.index("cc: cc") < yaml_str.index("build:")
    assert "cc: gcc" in scheme.get_default_yaml(defaults={"cc": "gcc", "build": {"debug": False}})


def test_bool_click_type():
    assert isinstance(False, Bool())
    assert not isinstance(0, Bool())
    assert Bool().convert("yes", None, None) is True
    assert Bool().convert("0", None, None) is False
    assert Bool().convert(True, None, None) is True
    with pytest.raises(click.BadParameter):
        Bool().convert("maybe", None, None)
