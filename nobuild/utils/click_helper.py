"""
This module simplifies the creation of click options from settings and their type schemes.
"""

import logging
import sys
import typing as t

import click
from click.core import ParameterSource

from nobuild.utils.settings import Settings, SettingsError
from nobuild.utils.typecheck import *


def raw_click_type(type_scheme: Type) -> t.Any:
    """
    Returns the click parameter type that corresponds to the passed type scheme.

    :raises: ValueError if there is no such click type
    """
    if isinstance(type_scheme, click.ParamType):
        return type_scheme
    if isinstance(type_scheme, ExactEither):
        return click.Choice([str(val) for val in type_scheme.exp_values])
    if isinstance(type_scheme, Int):
        return int
    if isinstance(type_scheme, Str):
        return str
    raise ValueError("type scheme {} is not usable as an option type".format(type_scheme))


class CmdOption:
    """
    A command line option that is backed by a setting. Passing the option sets the setting.
    """

    def __init__(self, option_name: str, settings_key: str, is_eager: bool = False):
        """
        :param option_name: name of the option
        :param settings_key: key of the setting that is set by this option
        :param is_eager: process this option before all non eager ones
        """
        typecheck(option_name, Str())
        self.option_name = option_name  # type: str
        """ Name of this option """
        self.settings_key = settings_key  # type: str
        """ Key of the setting that is set by this option """
        self.type_scheme = Settings().get_type_scheme(settings_key)  # type: Type
        """ Type scheme of the setting """
        self.is_flag = isinstance(self.type_scheme, Bool)  # type: bool
        """ Is this a "--ABC/--no-ABC" like option? """
        self.is_eager = is_eager  # type: bool
        """ Process this option before all non eager ones? """
        self.description = (self.type_scheme.description or "").strip().split("\n")[0]  # type: str
        """ Description of this option """

    def callback(self, ctx: click.Context, param: click.Parameter, value):
        """
        Sets the setting if the option has been passed.
        """
        if value is None or ctx.get_parameter_source(param.name) != ParameterSource.COMMANDLINE:
            return value
        try:
            Settings()[self.settings_key] = value
        except SettingsError as err:
            logging.error("Error while processing the passed value ({val}) of option {opt}: {msg}".format(
                val=repr(value),
                opt=self.option_name,
                msg=str(err)
            ))
            sys.exit(255)
        return value

    def decorate(self, func: t.Callable) -> t.Callable:
        """ Adds this option to the passed click command function """
        names = ["--{}".format(self.option_name)]
        if self.is_flag:
            names = ["--{name}/--no-{name}".format(name=self.option_name)]
        option_args = {
            "default": None,
            "callback": self.callback,
            "expose_value": False,
            "is_eager": self.is_eager,
            "help": "{} (setting {!r})".format(self.description, self.settings_key)
        }
        if not self.is_flag:
            option_args["type"] = raw_click_type(self.type_scheme)
        return click.option(*names, **option_args)(func)

    @classmethod
    def from_settings_domain(cls, settings_domain: str) -> 'CmdOptionList':
        """
        Creates a list of CmdOption objects for all sub settings of the passed domain that aren't dictionaries.

        :param settings_domain: settings domain to look into (or "" for the root domain)
        """
        domain = Settings().type_scheme
        if settings_domain != "":
            domain = Settings().get_type_scheme(settings_domain)
        ret_list = CmdOptionList()
        for sub_key in sorted(domain.data):
            if not isinstance(domain[sub_key], Dict):
                key = settings_domain + "/" + sub_key if settings_domain != "" else sub_key
                ret_list.append(CmdOption(sub_key, key, is_eager=sub_key in ["settings", "config"]))
        return ret_list


class CmdOptionList:
    """
    A simple list for CmdOptions that supports list flattening.
    """

    def __init__(self, *options: t.Union[CmdOption, 'CmdOptionList']):
        self.options = []  # type: t.List[CmdOption]
        """ Options that build up this list """
        for option in options:
            self.append(option)

    def append(self, options: t.Union[CmdOption, 'CmdOptionList']) -> 'CmdOptionList':
        """
        Appends the passed CmdOptionList or CmdOption and flattens the resulting list.

        :return: self
        """
        typecheck(options, T(CmdOptionList) | T(CmdOption))
        if isinstance(options, CmdOption):
            self.options.append(options)
        else:
            self.options.extend(options.options)
        return self


def cmd_option(options: CmdOptionList) -> t.Callable[[t.Callable], t.Callable]:
    """
    Decorator that adds the passed options to a click command.
    """
    def func(decorated_func: t.Callable) -> t.Callable:
        for option in reversed(options.options):
            decorated_func = option.decorate(decorated_func)
        return decorated_func

    return func
