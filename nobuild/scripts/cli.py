import locale
import logging
import sys
import typing as t
from enum import Enum

import click

from nobuild.build.compiler import Compiler
from nobuild.build.engine import BuildEngine
from nobuild.build.items import CapacityError, FlagList, InvalidNameError, ObjectList
from nobuild.build.rule import BuildRule, make_rule
from nobuild.scripts import version as nobuild_version
from nobuild.utils.click_helper import cmd_option, CmdOption, CmdOptionList
from nobuild.utils.settings import Settings, SettingsError


Settings().load_files()


class ErrorCode(Enum):
    NO_ERROR = 0
    PROGRAM_ERROR = 1
    NOBUILD_ERROR = 255


@click.group(epilog="""
nobuild (version {})

Compiles a single target from its dependencies:

    nobuild build main.c foo.c bar.c -o out -f -Wall -f -Wextra --cc gcc

Settings are loaded from the application directory (config.yaml)
and from nobuild.yaml in the current working directory.
""".format(nobuild_version.version))
def cli():
    pass


command_docs = {
    "build": "Compile a target and its dependencies into an output file",
    "command": "Print the command line that `build` would execute",
    "init": "Helper commands to initialize files (like settings)",
    "version": "Print the current version ({})".format(nobuild_version.version),
}

common_options = CmdOptionList(
    CmdOption.from_settings_domain("")
)

build_options = CmdOptionList(
    CmdOption.from_settings_domain("build")
)


def rule_arguments(func: t.Callable) -> t.Callable:
    """ Adds the arguments and options that describe a build rule """
    func = click.option("--flag", "-f", "flags", multiple=True, metavar="FLAG",
                        help="Compiler flag, can be passed multiple times")(func)
    func = click.option("--output", "-o", required=True, help="Path of the generated file")(func)
    func = click.argument("dependencies", nargs=-1, required=True)(func)
    func = click.argument("target")(func)
    return func


def create_rule(target: str, dependencies: t.Tuple[str, ...], output: str, flags: t.Tuple[str, ...]) -> BuildRule:
    """
    Assembles a build rule with the compiler and the capacity from the current settings.

    Exits with `ErrorCode.NOBUILD_ERROR` if a name is too long or the rule can't be assembled.
    """
    capacity = Settings()["build/capacity"]
    try:
        flag_list = FlagList.of(*flags, capacity=capacity)
        deps = ObjectList.of(*dependencies, capacity=capacity)
    except (CapacityError, InvalidNameError) as err:
        logging.error(err)
        sys.exit(ErrorCode.NOBUILD_ERROR.value)
    compiler = Compiler(Settings()["build/cc"], capacity)
    rule = BuildRule(capacity)
    if not make_rule(rule, compiler, flag_list, target, deps, output):
        sys.exit(ErrorCode.NOBUILD_ERROR.value)
    return rule


@cli.command(short_help=command_docs["build"])
@rule_arguments
@cmd_option(CmdOptionList(common_options, build_options))
def build(target: str, dependencies: t.Tuple[str, ...], output: str, flags: t.Tuple[str, ...]):
    nobuild__build(target, dependencies, output, flags)


def nobuild__build(target: str, dependencies: t.Tuple[str, ...], output: str, flags: t.Tuple[str, ...]):
    rule = create_rule(target, dependencies, output, flags)
    try:
        success = BuildEngine().build(rule)
    finally:
        rule.release()
    sys.exit(ErrorCode.NO_ERROR.value if success else ErrorCode.PROGRAM_ERROR.value)


@cli.command(short_help=command_docs["command"])
@rule_arguments
@cmd_option(CmdOptionList(common_options, build_options))
def command(target: str, dependencies: t.Tuple[str, ...], output: str, flags: t.Tuple[str, ...]):
    nobuild__command(target, dependencies, output, flags)


def nobuild__command(target: str, dependencies: t.Tuple[str, ...], output: str, flags: t.Tuple[str, ...]):
    rule = create_rule(target, dependencies, output, flags)
    try:
        print(BuildEngine().render_command(rule))
    finally:
        rule.release()


@cli.group(short_help=command_docs["init"])
def init():
    pass


@init.command(short_help="Create a settings file with the current settings and their documentation")
@click.argument("file", type=click.Path(dir_okay=False), default=Settings.config_file_name)
@cmd_option(common_options)
def settings(file: str):
    nobuild__init__settings(file)


def nobuild__init__settings(file: str):
    Settings().store_into_file(file)
    logging.info("Stored the settings into {!r}".format(file))


@cli.command(short_help=command_docs["version"])
def version():
    print(nobuild_version.version)


def cli_with_error_catching():
    """
    Process the command line arguments and catch (some) errors.
    """
    try:
        locale.setlocale(locale.LC_ALL, "en_US.UTF-8")
    except locale.Error:
        pass
    try:
        cli()
    except (EnvironmentError, SettingsError, TypeError) as err:
        logging.error(err)
        sys.exit(ErrorCode.NOBUILD_ERROR.value)


if __name__ == "__main__":
    # for testing purposes only
    cli()
