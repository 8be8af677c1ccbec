"""
Utility functions and classes that don't depend on the rest of the nobuild code base.
"""

import logging
import sys
import typing as t

from rainbow_logging_handler import RainbowLoggingHandler


def recursive_exec_for_leafs(data: dict, func, _path_prep = None):
    """
    Executes the function for every leaf key (a key without any sub keys) of the data dict tree.

    :param data: dict tree
    :param func: function that gets passed the leaf key, the key path and the actual value
    """
    _path_prep = _path_prep or []
    if not isinstance(data, dict):
        return
    for subkey in data.keys():
        if type(data[subkey]) is dict:
            recursive_exec_for_leafs(data[subkey], func, _path_prep=_path_prep + [subkey])
        else:
            func(subkey, _path_prep + [subkey], data[subkey])


def join_strs(strs: t.List[str], last_word: str = "and") -> str:
    """
    Joins the passed strings together with ", " except for the last to strings that separated by the passed word.

    :param strs: strings to join
    :param last_word: passed word that is used between the two last strings
    """
    if not isinstance(strs, list):
        strs = list(strs)
    if len(strs) == 1:
        return strs[0]
    elif len(strs) > 1:
        return " {} ".format(last_word).join([", ".join(strs[0:-1]), strs[-1]])
    return ""


def utf8_len(text: str) -> int:
    """ Number of bytes the passed text occupies in UTF-8 """
    return len(text.encode("utf-8"))


def truncate_utf8(text: str, max_bytes: int) -> t.Tuple[str, bool]:
    """
    Cut the passed text down to at most `max_bytes` UTF-8 bytes without splitting a character.

    :return: (possibly shortened text, was it shortened?)
    """
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text, False
    return encoded[:max(max_bytes, 0)].decode("utf-8", "ignore"), True


class Singleton(type):
    """
    Singleton meta class.
    @see http://stackoverflow.com/a/6798042
    """
    _instances = {}
    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super(Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


# setup `RainbowLoggingHandler`
handler = RainbowLoggingHandler(sys.stderr, color_funcName=('black', 'yellow', True))
""" Colored logging handler that is used for the root logger """
handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s"))
logging.getLogger().addHandler(handler)
