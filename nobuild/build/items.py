"""
Append only lists of bounded length names.

The same representation is used for compiler flags (``Flag``, collected in a ``FlagList``)
and for source and dependency files (``BuildObject``, collected in an ``ObjectList``)::

    flags = FlagList.of("-Wall", "-Wextra")
    deps = ObjectList()
    deps.append("foo.c")
    deps.append(BuildObject("bar.c"))
"""

import typing as t

from nobuild.utils.settings import DEFAULT_CAPACITY
from nobuild.utils.typecheck import *
from nobuild.utils.util import utf8_len


class CapacityError(ValueError):
    """
    Error raised if a name doesn't fit into the capacity of a list.
    """

    def __init__(self, name: str, capacity: int):
        super().__init__("Name {!r} is {} bytes long, but at most {} bytes are allowed"
                         .format(name, utf8_len(name), capacity - 1))
        self.name = name
        """ Rejected name """
        self.capacity = capacity
        """ Capacity of the list, including the reserved byte """


class InvalidNameError(ValueError):
    """
    Error raised if a name can't be passed to a process as an argument (it contains a NUL character).
    """

    def __init__(self, name: str):
        super().__init__("Name {!r} contains a NUL character".format(name))
        self.name = name
        """ Rejected name """


class NamedItem:
    """
    A name that is stored in a named item list.
    Items are immutable and compare equal if they have the same type and name.
    """

    __slots__ = ("_name",)

    def __init__(self, name: str):
        typecheck(name, Str(), value_name="name")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def fits(self, capacity: int) -> bool:
        """ Is the name short enough for the passed capacity (one byte is reserved)? """
        return utf8_len(self._name) <= capacity - 1

    def copy(self) -> 'NamedItem':
        return type(self)(self._name)

    def __eq__(self, other) -> bool:
        return type(other) == type(self) and other.name == self.name

    def __hash__(self):
        return hash((type(self), self._name))

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return "{}({!r})".format(type(self).__name__, self._name)


class Flag(NamedItem):
    """ A single compiler flag, e.g. "-Wall" """

    __slots__ = ()


class BuildObject(NamedItem):
    """ A build object, e.g. a source file or an object file """

    __slots__ = ()


class NamedItemList:
    """
    Ordered, append only sequence of named items.

    The list owns its items. Items are only removed all together by `release`.
    """

    item_type = NamedItem  # type: t.Type[NamedItem]
    """ Type of the stored items, plain strings are converted into it """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Creates an empty list.

        :param capacity: capacity of the names in bytes, including the reserved byte
        """
        typecheck(capacity, PositiveInt(lambda x: x > 1), value_name="capacity")
        self.capacity = capacity  # type: int
        """ Capacity of the names in bytes, including the reserved byte """
        self._items = []  # type: t.List[NamedItem]

    @classmethod
    def of(cls, *names: t.Union[str, NamedItem], capacity: int = DEFAULT_CAPACITY) -> 'NamedItemList':
        """
        Creates a list that contains the passed names in the passed order.

        :raises: CapacityError if one of the names is too long
        :raises: InvalidNameError if one of the names contains a NUL character
        """
        ret = cls(capacity)
        ret.extend(names)
        return ret

    def _convert(self, item: t.Union[str, NamedItem]) -> NamedItem:
        if isinstance(item, str):
            item = self.item_type(item)
        typecheck(item, T(self.item_type), value_name="item")
        if not item.fits(self.capacity):
            raise CapacityError(item.name, self.capacity)
        if "\0" in item.name:
            raise InvalidNameError(item.name)
        return item.copy()

    def append(self, item: t.Union[str, NamedItem]) -> NamedItem:
        """
        Copies the passed item to the end of this list.

        :param item: item or its name
        :return: the stored copy
        :raises: CapacityError if the name is too long, the list is left unchanged
        :raises: InvalidNameError if the name contains a NUL character
        :raises: TypeError if the item has the wrong type
        """
        stored = self._convert(item)
        self._items.append(stored)
        return stored

    def extend(self, items: t.Iterable[t.Union[str, NamedItem]]):
        """
        Appends the passed items in their order. If one of them can't be appended, none is.

        :raises: CapacityError if one of the names is too long
        :raises: InvalidNameError if one of the names contains a NUL character
        :raises: TypeError if one of the items has the wrong type
        """
        converted = [self._convert(item) for item in items]
        self._items.extend(converted)

    def names(self) -> t.List[str]:
        """ Names of all items in their order """
        return [item.name for item in self._items]

    def release(self) -> int:
        """
        Drops all items of this list.

        :return: number of released items
        """
        count = len(self._items)
        self._items = []
        return count

    def __iter__(self) -> t.Iterator[NamedItem]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> NamedItem:
        return self._items[index]

    def __bool__(self) -> bool:
        return len(self._items) > 0

    def __repr__(self) -> str:
        return "{}({})".format(type(self).__name__, ", ".join(repr(name) for name in self.names()))


class FlagList(NamedItemList):
    """ List of compiler flags """

    item_type = Flag


class ObjectList(NamedItemList):
    """ List of build objects (targets and dependencies) """

    item_type = BuildObject
