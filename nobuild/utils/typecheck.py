"""
Implements basic type checking for the values that come directly from the user
(e.g. from YAML settings files or from the command line).

The Type instances are usable with the standard isinstance function::

    isinstance("gcc", Str() | T(int))

A Type can be annotated with a description and a default value, which allows to
derive the default settings (and their documentation) from a type scheme::

    Dict({
        "debug": Bool() // Default(False) // Description("Print the command line before building")
    }).get_default()  # == {"debug": False}
"""

import typing as t

__all__ = [
    "Type",
    "ExactEither",
    "Either",
    "T",
    "Int",
    "Bool",
    "Str",
    "Dict",
    "PositiveInt",

    "Description",
    "Default",

    "typecheck",
]

import click
import yaml


class Description:
    """
    A description annotation for a Type::

        Int() // Description("Number of jobs")
    """

    def __init__(self, description: str):
        self.description = description  # type: str

    def __str__(self) -> str:
        return self.description


class Default:
    """
    A default value annotation for a Type::

        Int() // Default(3)
    """

    def __init__(self, default):
        self.default = default
        """ Default value of the annotated type """


class Type(object):
    """
    Base class of all type checker types.
    """

    def __init__(self):
        self.description = None  # type: t.Optional[str]
        """ Description of this type instance """
        self.default = None  # type: t.Optional[Default]
        """ Default value of this type instance """

    def __instancecheck__(self, value) -> bool:
        return self.check(value) is None

    def check(self, value, value_name: str = "value") -> t.Optional[str]:
        """
        Checks whether or not the passed value has the type specified by this instance.

        :param value: passed value
        :param value_name: name of the value, used in the error message
        :return: None if the value has this type, else an error message
        """
        if self._matches(value):
            return None
        return "{} {!r} hasn't the expected type {}".format(value_name, value, self)

    def _matches(self, value) -> bool:
        """ Implemented by all simple sub classes """
        return False

    def __or__(self, other: 'Type') -> 'Either':
        return Either(self, other)

    def __floordiv__(self, other: t.Union[str, Description, Default]) -> 'Type':
        """
        Sets the description (str or Description) or the (type checked) default value of this type.
        """
        if isinstance(other, Default):
            typecheck(other.default, self, "default value")
            self.default = other
        else:
            self.description = str(other)
        return self

    def get_default(self) -> t.Any:
        """
        :raises: ValueError if the default value isn't set
        """
        if self.default is None:
            raise ValueError("{} has no default value.".format(self))
        return self.default.default

    def get_default_yaml(self, indents: int = 0, indentation: int = 4, str_list: bool = False, defaults=None) \
            -> t.Union[str, t.List[str]]:
        """
        Produce a YAML string that contains the default value of this type.

        :param indents: number of indents in front of each produced line
        :param indentation: indentation width in number of white spaces
        :param str_list: return a list of lines instead of a combined string?
        :param defaults: value that is used instead of the default value of this instance
        """
        if defaults is None:
            defaults = self.get_default()
        y_str = yaml.dump(defaults).strip()
        if y_str.endswith("\n..."):
            y_str = y_str[0:-4]
        strs = [" " * indents * indentation + line for line in y_str.split("\n")]
        return strs if str_list else "\n".join(strs)


class Either(Type):
    """
    Checks for the value to be of one of several types.
    """

    def __init__(self, *types: Type):
        super().__init__()
        self.types = list(types)  # type: t.List[Type]

    def _matches(self, value) -> bool:
        return any(isinstance(value, typ) for typ in self.types)

    def __or__(self, other: Type) -> 'Either':
        self.types.append(other)
        return self

    def __str__(self):
        return "Either({})".format("|".join(str(typ) for typ in self.types))


class ExactEither(Type):
    """
    Checks for the value to be one of several exact values.
    """

    def __init__(self, *exp_values):
        super().__init__()
        self.exp_values = list(exp_values)
        """ Expected values """

    def _matches(self, value) -> bool:
        return value in self.exp_values

    def __str__(self) -> str:
        return "ExactEither({})".format("|".join(repr(val) for val in self.exp_values))


class T(Type):
    """
    Wrapper around a native type.
    """

    def __init__(self, native_type: type):
        super().__init__()
        self.native_type = native_type

    def _matches(self, value) -> bool:
        return isinstance(value, self.native_type)

    def __str__(self) -> str:
        return "T({})".format(self.native_type.__name__)


class Dict(Type):
    """
    Checks for the value to be a dictionary with exactly the expected keys, whose values have the given types.
    """

    def __init__(self, data: t.Dict[str, Type]):
        super().__init__()
        self.data = data  # type: t.Dict[str, Type]

    def check(self, value, value_name: str = "value") -> t.Optional[str]:
        if not isinstance(value, dict):
            return super().check(value, value_name)
        for key, typ in self.data.items():
            sub_name = "{}[{!r}]".format(value_name, key)
            if key not in value:
                return "{} is missing, expected value of type {}".format(sub_name, typ)
            msg = typ.check(value[key], sub_name)
            if msg is not None:
                return msg
        for key in value:
            if key not in self.data:
                return "{} has the unknown key {!r}".format(value_name, key)
        return None

    def __getitem__(self, key: str) -> Type:
        return self.data[key]

    def __str__(self) -> str:
        return "Dict({{{}}})".format(", ".join("{!r}: {}".format(key, typ) for key, typ in self.data.items()))

    def get_default(self) -> dict:
        return {key: typ.get_default() for key, typ in self.data.items()}

    def get_default_yaml(self, indents: int = 0, indentation: int = 4, str_list: bool = False, defaults=None) \
            -> t.Union[str, t.List[str]]:
        """
        Produce a commented YAML string, simple keys first, nested dictionaries afterwards.
        """
        if defaults is None:
            defaults = self.get_default()
        strs = []
        simple = sorted(key for key in self.data if not isinstance(self.data[key], Dict))
        nested = sorted(key for key in self.data if isinstance(self.data[key], Dict))
        for key in simple + nested:
            strs.append("")
            if self.data[key].description is not None:
                strs.extend("# " + line for line in self.data[key].description.split("\n"))
            if key in nested:
                strs.append("{}:".format(key))
                strs.extend(self.data[key].get_default_yaml(1, indentation, str_list=True, defaults=defaults[key]))
            else:
                strs.append("{}: {}".format(key, self.data[key].get_default_yaml(defaults=defaults[key])))
        i_str = " " * indents * indentation
        ret_strs = [i_str + line for line in strs]
        return ret_strs if str_list else "\n".join(ret_strs)


class Int(Type):
    """
    Checks for the value to be an int (but not a bool) that satisfies an optional constraint.
    """

    def __init__(self, constraint: t.Callable[[int], bool] = None):
        super().__init__()
        self.constraint = constraint  # type: t.Optional[t.Callable[[int], bool]]

    def _matches(self, value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) \
            and (self.constraint is None or self.constraint(value))

    def __str__(self) -> str:
        return "Int(constraint=<function>)" if self.constraint is not None else "Int()"


class Str(Type):
    """
    Checks for the value to be a string.
    """

    def _matches(self, value) -> bool:
        return isinstance(value, str)

    def __str__(self) -> str:
        return "Str()"


class Bool(Type, click.ParamType):
    """
    Checks for the value to be a boolean.
    Usable as a click parameter type, accepting the usual yes/no strings.
    """

    name = "bool"  # type: str

    def _matches(self, value) -> bool:
        return value is True or value is False

    def convert(self, value, param, ctx: click.Context) -> bool:
        if isinstance(value, bool):
            return value
        if str(value).lower() in ["true", "yes", "y", "1"]:
            return True
        if str(value).lower() in ["false", "no", "n", "0"]:
            return False
        self.fail("{} is no valid bool".format(value), param, ctx)

    def __str__(self) -> str:
        return "Bool()"


def PositiveInt(constraint: t.Callable[[int], bool] = None) -> Int:
    """
    Matches all positive integers that satisfy the optional user defined constraint.
    """
    if constraint is not None:
        return Int(lambda x: x > 0 and constraint(x))
    return Int(lambda x: x > 0)


def typecheck(value, type: t.Union[Type, type], value_name: str = "value"):
    """
    Checks that the passed value has the expected type.

    :param value: passed value
    :param type: expected Type or native type
    :param value_name: name of the value, used in the error message
    :raises: TypeError if the value hasn't the expected type
    """
    if not isinstance(type, Type):
        type = T(type)
    msg = type.check(value, value_name)
    if msg is not None:
        raise TypeError(msg)
