import logging
import shlex
import subprocess
import time
import typing as t
from enum import Enum

import humanfriendly

from nobuild.build.rule import BuildRule
from nobuild.utils.settings import Settings
from nobuild.utils.util import join_strs


OUTPUT_FLAG = "-o"  # type: str
""" Compiler option that precedes the output path """

ARGV_TERMINATOR = None
""" Marks the end of a serialized argument vector """

FIXED_ARGUMENTS = 4  # type: int
""" Compiler command, output flag, output path and target """

EXIT_NOT_EXECUTABLE = 126  # type: int
""" Return code that is recorded if the compiler exists but can't be executed """

EXIT_NOT_FOUND = 127  # type: int
""" Return code that is recorded if the compiler can't be found """


def quote_command(argv: t.List[str]) -> str:
    """ Joins the passed arguments into a single shell quoted command line """
    return " ".join(shlex.quote(arg) for arg in argv)


class MalformedRuleError(ValueError):
    """
    Error raised if an incomplete rule is serialized.
    """

    def __init__(self, rule: t.Optional[BuildRule]):
        missing = rule.missing_parts() if isinstance(rule, BuildRule) else ["rule"]
        super().__init__("Build rule is incomplete, missing {}".format(join_strs(missing)))
        self.rule = rule


class BuildOutcome(Enum):
    SUCCESS = 0
    MALFORMED_RULE = 1
    SPAWN_FAILURE = 2
    COMPILER_FAILURE = 3
    SIGNALED = 4


class BuildResult:
    """
    Result of a single build. It's true like only if the build succeeded.
    """

    def __init__(self, outcome: BuildOutcome, argv: t.List[str] = None, return_code: t.Optional[int] = None,
                 duration: float = 0.0):
        self.outcome = outcome  # type: BuildOutcome
        """ How the build ended """
        self.argv = argv or []  # type: t.List[str]
        """ Argument vector of the compiler process (empty if the rule was malformed) """
        self.return_code = return_code  # type: t.Optional[int]
        """ Return code of the compiler process, negative if it was killed by a signal """
        self.duration = duration  # type: float
        """ Time between spawning and the end of the compiler process in seconds """

    @property
    def success(self) -> bool:
        return self.outcome == BuildOutcome.SUCCESS

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return "BuildResult({}, argv={!r}, return_code={!r})".format(self.outcome.name, self.argv, self.return_code)


class BuildEngine:
    """
    Executes build rules: validates the rule, serializes it into an argument vector,
    runs the compiler as a child process and waits for it.

    The compiler inherits the environment and the standard streams of this process.
    """

    def __init__(self, debug: t.Optional[bool] = None):
        """
        Creates an engine.

        :param debug: log the complete command line before each build, defaults to `build/debug`
        """
        self.debug = Settings().default(debug, "build/debug")  # type: bool
        """ Log the complete command line before each build? """

    def validate(self, rule: t.Optional[BuildRule]) -> bool:
        """
        Can the passed rule be executed?
        """
        return isinstance(rule, BuildRule) and rule.is_complete()

    def argument_count(self, rule: BuildRule) -> int:
        """
        Number of arguments of the command line for the passed rule (without the terminator).

        :raises: MalformedRuleError if the rule is incomplete
        """
        if not self.validate(rule):
            raise MalformedRuleError(rule)
        return FIXED_ARGUMENTS + len(rule.compiler.flags) + len(rule.dependencies)

    def serialize(self, rule: BuildRule) -> t.List[str]:
        """
        Creates the argument vector for the passed rule:
        compiler, flags, output flag, output path, target and dependencies.

        :raises: MalformedRuleError if the rule is incomplete
        """
        argc = self.argument_count(rule)
        argv = [ARGV_TERMINATOR] * (argc + 1)  # type: t.List[t.Optional[str]]
        i = 0

        def put(arg: str):
            nonlocal i
            if i >= argc:
                raise RuntimeError("Argument vector for {!r} is too small ({} slots)".format(rule, argc))
            argv[i] = arg
            i += 1

        put(rule.compiler.cmd)
        for flag in rule.compiler.flags:
            put(flag.name)
        put(OUTPUT_FLAG)
        put(rule.output)
        put(rule.target.name)
        for dependency in rule.dependencies:
            put(dependency.name)
        if i != argc or argv[argc] is not ARGV_TERMINATOR:
            raise RuntimeError("Argument vector for {!r} has {} instead of {} arguments".format(rule, i, argc))
        return argv[:argc]

    def render_command(self, rule: BuildRule) -> str:
        """
        Renders the command line of the passed rule as a single shell quoted string.

        :raises: MalformedRuleError if the rule is incomplete
        """
        return quote_command(self.serialize(rule))

    def execute(self, rule: t.Optional[BuildRule]) -> BuildResult:
        """
        Runs the compiler for the passed rule and waits for it to finish.

        :param rule: executed rule
        :return: result of the build, true like only if the compiler exited normally with return code 0
        """
        if not self.validate(rule):
            logging.error("Refusing to build: {}".format(MalformedRuleError(rule)))
            return BuildResult(BuildOutcome.MALFORMED_RULE)
        argv = self.serialize(rule)
        if self.debug:
            logging.warning(quote_command(argv))
        else:
            logging.debug("Execute {!r}".format(argv))
        logging.info("Building {!r}".format(rule.output))
        start = time.time()
        try:
            with subprocess.Popen(argv) as proc:
                return_code = proc.wait()
        except FileNotFoundError as err:
            logging.error("Compiler {!r} not found: {}".format(argv[0], err))
            return BuildResult(BuildOutcome.SPAWN_FAILURE, argv, EXIT_NOT_FOUND, time.time() - start)
        except PermissionError as err:
            logging.error("Compiler {!r} isn't executable: {}".format(argv[0], err))
            return BuildResult(BuildOutcome.SPAWN_FAILURE, argv, EXIT_NOT_EXECUTABLE, time.time() - start)
        except (OSError, ValueError) as err:
            logging.error("Can't spawn compiler {!r}: {}".format(argv[0], err))
            return BuildResult(BuildOutcome.SPAWN_FAILURE, argv, 1, time.time() - start)
        duration = time.time() - start
        if return_code == 0:
            outcome = BuildOutcome.SUCCESS
            logging.info("Finished building {!r} in {}".format(rule.output, humanfriendly.format_timespan(duration)))
        elif return_code < 0:
            outcome = BuildOutcome.SIGNALED
            logging.error("Compiler {!r} was terminated by signal {}".format(argv[0], -return_code))
        else:
            outcome = BuildOutcome.COMPILER_FAILURE
            logging.error("Compiler {!r} failed with return code {}".format(argv[0], return_code))
        return BuildResult(outcome, argv, return_code, duration)

    def build(self, rule: t.Optional[BuildRule]) -> bool:
        """
        Runs the compiler for the passed rule.

        :return: did the build succeed?
        """
        return self.execute(rule).success


def build(rule: t.Optional[BuildRule], debug: t.Optional[bool] = None) -> bool:
    """
    Builds the passed rule with a new engine.

    :param rule: executed rule
    :param debug: log the complete command line before building, defaults to `build/debug`
    :return: did the build succeed?
    """
    return BuildEngine(debug).build(rule)
