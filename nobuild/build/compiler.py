import logging
import typing as t

from nobuild.build.items import CapacityError, FlagList, Flag
from nobuild.utils.settings import DEFAULT_CAPACITY
from nobuild.utils.typecheck import *
from nobuild.utils.util import truncate_utf8


class Compiler:
    """
    A compiler command together with the flags that are passed to it.
    """

    def __init__(self, cmd: str = "", capacity: int = DEFAULT_CAPACITY):
        """
        Creates a compiler descriptor with an empty flag list.

        :param cmd: compiler executable name (e.g. "gcc" or "clang"), truncated if too long
        :param capacity: capacity of the command and the flag names in bytes, including the reserved byte
        """
        typecheck(capacity, PositiveInt(lambda x: x > 1), value_name="capacity")
        self.capacity = capacity  # type: int
        """ Capacity of the command and the flag names in bytes """
        self.cmd = ""  # type: str
        """ Compiler executable name """
        self.flags = FlagList(capacity)  # type: FlagList
        """ Flags that are passed to the compiler before all other arguments """
        if cmd:
            self.set_command(cmd)

    def set_command(self, name: str) -> bool:
        """
        Sets the compiler command. Commands longer than `capacity - 1` bytes are truncated.

        :param name: new compiler executable name
        :return: was the passed name truncated?
        """
        typecheck(name, Str(), value_name="compiler command")
        self.cmd, truncated = truncate_utf8(name, self.capacity - 1)
        if truncated:
            logging.warning("Compiler command {!r} is too long and has been truncated to {!r}"
                            .format(name, self.cmd))
        return truncated

    def attach_flags(self, flags: FlagList) -> FlagList:
        """
        Attaches the passed flag list, replacing the present one (the flags aren't merged).
        The replaced list is released.

        :param flags: new flag list, this compiler owns it afterwards
        :return: the replaced (and now empty) flag list
        :raises: CapacityError if a flag doesn't fit into the capacity of this compiler, nothing is changed
        """
        typecheck(flags, T(FlagList), value_name="flags")
        for flag in flags:
            self._check_fits(flag)
        old = self.flags
        self.flags = flags
        if old is not flags:
            released = old.release()
            if released:
                logging.debug("Released {} replaced flag(s) of compiler {!r}".format(released, self.cmd))
        return old

    def add_flag(self, flag: t.Union[str, Flag]) -> Flag:
        """
        Appends a single flag to the attached flag list.

        :raises: CapacityError if the flag is too long
        """
        if isinstance(flag, str):
            flag = Flag(flag)
        typecheck(flag, T(Flag), value_name="flag")
        self._check_fits(flag)
        return self.flags.append(flag)

    def _check_fits(self, flag: Flag):
        if not flag.fits(self.capacity):
            raise CapacityError(flag.name, self.capacity)

    def release(self) -> int:
        """
        Releases the flags of this compiler.

        :return: number of released flags
        """
        return self.flags.release()

    def __repr__(self) -> str:
        return "Compiler({!r}, flags={})".format(self.cmd, self.flags.names())
