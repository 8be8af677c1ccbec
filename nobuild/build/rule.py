import logging
import typing as t
from collections import namedtuple

from nobuild.build.compiler import Compiler
from nobuild.build.items import BuildObject, FlagList, ObjectList
from nobuild.utils.settings import DEFAULT_CAPACITY
from nobuild.utils.typecheck import *
from nobuild.utils.util import join_strs, truncate_utf8, utf8_len


ReleaseCount = namedtuple("ReleaseCount", ["dependencies", "flags", "compilers"])
""" Number of dependencies, flags and compilers released by `BuildRule.release` """


class BuildRule:
    """
    Description of one compilation: compiler (with its flags), target, dependencies and output path.

    A rule owns its compiler and its dependency list once it's assembled, the target is stored as a copy.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Creates an empty (incomplete) rule.

        :param capacity: capacity of the output path and of all names in bytes, including the reserved byte
        """
        typecheck(capacity, PositiveInt(lambda x: x > 1), value_name="capacity")
        self.capacity = capacity  # type: int
        """ Capacity of the output path and of all names in bytes """
        self.compiler = None  # type: t.Optional[Compiler]
        """ Used compiler """
        self.target = None  # type: t.Optional[BuildObject]
        """ The object being built """
        self.dependencies = None  # type: t.Optional[ObjectList]
        """ Objects the target depends on """
        self.output = ""  # type: str
        """ Name or path of the generated output file """
        self.output_truncated = False  # type: bool
        """ Was the output path truncated to fit into the capacity? """

    def is_complete(self) -> bool:
        """
        Can this rule be executed? This requires a compiler, a target and at least one dependency
        and all names have to fit into the capacity of this rule.
        """
        return self.compiler is not None and self.target is not None and bool(self.dependencies) \
            and not self.too_long_names()

    def missing_parts(self) -> t.List[str]:
        """ Names of the parts that prevent this rule from being complete """
        missing = []
        if self.compiler is None:
            missing.append("compiler")
        if self.target is None:
            missing.append("target")
        if not self.dependencies:
            missing.append("dependencies")
        if self.too_long_names():
            missing.append("names of at most {} bytes".format(self.capacity - 1))
        return missing

    def too_long_names(self, compiler: t.Optional[Compiler] = None, flags: t.Optional[FlagList] = None,
                       dependencies: t.Optional[ObjectList] = None) -> t.List[str]:
        """
        Compiler command, flags and dependency names that don't fit into the capacity of this rule.
        The parts of this rule are checked unless other ones are passed.
        """
        compiler = compiler or self.compiler
        dependencies = dependencies if dependencies is not None else self.dependencies
        names = []
        if compiler is not None:
            flags = flags if flags is not None else compiler.flags
            names.append(compiler.cmd)
        if flags is not None:
            names.extend(flags.names())
        if dependencies is not None:
            names.extend(dependencies.names())
        return [name for name in names if utf8_len(name) > self.capacity - 1]

    def assemble(self, compiler: t.Optional[Compiler], flags: t.Optional[FlagList],
                 target: t.Optional[t.Union[str, BuildObject]], dependencies: t.Optional[ObjectList],
                 output: str) -> bool:
        """
        Fills this rule with the passed parts.

        The rule is left unchanged if the compiler or the target is missing, if the dependency list is empty
        or if a name doesn't fit into the capacity of this rule (or the flags into the one of the compiler).
        Otherwise the passed flags replace the flags of the compiler (unless they are None),
        the rule takes over the compiler and the dependency list and copies the target and the output path
        (truncating the latter if it's too long).

        :param compiler: used compiler
        :param flags: flags for the compiler or None to keep the compiler's flags
        :param target: object being built
        :param dependencies: non empty list of objects the target depends on
        :param output: path of the generated file
        :return: was the rule assembled?
        """
        problems = []
        if isinstance(target, str):
            target = BuildObject(target)
        if not isinstance(compiler, Compiler):
            problems.append("no compiler")
        if not isinstance(target, BuildObject):
            problems.append("no target")
        elif not target.fits(self.capacity):
            problems.append("target name {!r} is too long".format(target.name))
        elif "\0" in target.name:
            problems.append("target name {!r} contains a NUL character".format(target.name))
        if not isinstance(dependencies, ObjectList) or not dependencies:
            problems.append("no dependencies")
        if flags is not None and not isinstance(flags, FlagList):
            problems.append("flags aren't a flag list")
        if not isinstance(output, str):
            problems.append("output isn't a string")
        if not problems:
            too_long = self.too_long_names(compiler, flags, dependencies)
            if flags is not None:
                too_long += [flag.name for flag in flags
                             if not flag.fits(compiler.capacity) and flag.name not in too_long]
            if too_long:
                problems.append("{} too long".format(join_strs([repr(name) for name in too_long])))
        if problems:
            logging.error("Can't assemble build rule: {}".format(join_strs(problems)))
            return False

        if flags is not None:
            compiler.attach_flags(flags)
        self.compiler = compiler
        self.output, self.output_truncated = truncate_utf8(output, self.capacity - 1)
        if self.output_truncated:
            logging.warning("Output path {!r} is too long and has been truncated to {!r}".format(output, self.output))
        self.target = target.copy()
        self.dependencies = dependencies
        return True

    def release(self) -> ReleaseCount:
        """
        Releases the dependencies, the compiler flags and the compiler (in this order).
        Releasing an incomplete or an already released rule is fine.

        :return: number of released parts
        """
        dependencies = self.dependencies.release() if self.dependencies is not None else 0
        flags = 0
        compilers = 0
        if self.compiler is not None:
            flags = self.compiler.release()
            compilers = 1
        self.dependencies = None
        self.compiler = None
        self.target = None
        self.output = ""
        self.output_truncated = False
        return ReleaseCount(dependencies, flags, compilers)

    def __repr__(self) -> str:
        return "BuildRule(compiler={!r}, target={!r}, dependencies={!r}, output={!r})" \
            .format(self.compiler, self.target, self.dependencies, self.output)


def make_rule(rule: t.Optional[BuildRule], compiler: t.Optional[Compiler], flags: t.Optional[FlagList],
              target: t.Optional[t.Union[str, BuildObject]], dependencies: t.Optional[ObjectList],
              output: str) -> bool:
    """
    Assembles the passed rule, see `BuildRule.assemble`.

    :return: was the rule assembled? False if the rule is None.
    """
    if rule is None:
        logging.error("Can't assemble build rule: no rule")
        return False
    return rule.assemble(compiler, flags, target, dependencies, output)
