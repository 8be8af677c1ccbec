import copy
import logging
import os
import typing as t

import click
import yaml

from nobuild.utils.typecheck import *
from nobuild.utils.util import recursive_exec_for_leafs, Singleton


DEFAULT_CAPACITY = 128 - 8  # type: int
""" Default capacity (in bytes, including the terminator byte) of names, commands and output paths """


class SettingsError(ValueError):
    """ Error raised if something with the settings goes wrong """
    pass


class Settings(metaclass=Singleton):
    """
    Manages the Settings.
    The settings keys and sub keys are combined by a slash, e.g. "build/cc".
    """

    config_file_name = "nobuild.yaml"  # type: str
    """ Default name of the configuration files """
    type_scheme = Dict({
        "settings": Str() // Description("Additional settings file")
                        // Default(config_file_name if os.path.exists(config_file_name) else ""),
        "config": Str() // Description("Alias for settings")
                    // Default(config_file_name if os.path.exists(config_file_name) else ""),
        "log_level": ExactEither("debug", "info", "warn", "error", "quiet") // Default("info")
                     // Description("Logging level"),
        "build": Dict({
            "cc": Str() // Default("cc") // Description("Compiler command that is used if none is passed"),
            "capacity": PositiveInt(lambda x: x > 1) // Default(DEFAULT_CAPACITY)
                        // Description("Capacity of flag names, object names, compiler commands and output paths "
                                       "in bytes, one byte is reserved, so names can be at most capacity - 1 bytes "
                                       "long"),
            "debug": Bool() // Default(False)
                     // Description("Print the whole command line before the compiler is executed")
        })
    })  # type: Dict
    """ Type scheme of the settings """

    def __init__(self):
        """
        Initializes a Settings singleton object with the default settings.

        :raises: SettingsError if the default settings don't adhere to the type scheme
        """
        self.prefs = copy.deepcopy(self.type_scheme.get_default())  # type: t.Dict[str, t.Any]
        """ The set configurations """
        self._validate("default settings")
        self._setup()

    def load_files(self):
        """ Loads the configuration files from the current and the config directory """
        self.load_from_config_dir()
        self.load_from_current_dir()
        self._setup()

    def _setup(self):
        """
        Apply the settings that affect the whole process, currently only the log level.
        """
        log_level = self["log_level"]
        logger = logging.getLogger()
        logger.disabled = log_level == "quiet"
        mapping = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warn": logging.WARNING,
            "error": logging.ERROR,
            "quiet": logging.ERROR
        }
        logger.setLevel(mapping[log_level])

    def reset(self):
        """
        Resets the current settings to the defaults.
        """
        self.prefs = copy.deepcopy(self.type_scheme.get_default())
        self._setup()

    def _validate(self, description: str):
        """
        Check whether the current settings match the type scheme.

        :param description: name of the settings in the error message
        :raises: SettingsError if they don't
        """
        try:
            typecheck(self.prefs, self.type_scheme, description)
        except TypeError as err:
            raise SettingsError(str(err))

    def load_file(self, file: str):
        """
        Loads the configuration from the configuration YAML file.

        :param file: path to the file
        :raises: SettingsError if the settings file is incorrect or doesn't exist
        """
        tmp = copy.deepcopy(self.prefs)
        try:
            with open(file, "r") as stream:
                data = yaml.safe_load(stream) or {}
        except (yaml.YAMLError, IOError) as err:
            raise SettingsError(str(err))
        self._load_dict(data, tmp, "settings with ones from file '{}'".format(file))

    def _load_dict(self, data: t.Dict[str, t.Any], backup: t.Dict[str, t.Any], description: str):
        if not isinstance(data, dict):
            raise SettingsError("Settings have to be a mapping, got {!r}".format(data))

        def func(key, path, value):
            if not self.validate_key_path(path):
                raise SettingsError("No such setting {}".format("/".join(path)))
            self._set(path, value)

        try:
            recursive_exec_for_leafs(data, func)
            self._validate(description)
        except SettingsError:
            self.prefs = backup
            raise
        self._setup()

    def load_from_config_dir(self):
        """
        Load the config file from the application directory (e.g. in the users home folder) if it exists.
        """
        conf = os.path.join(click.get_app_dir("nobuild"), "config.yaml")
        if os.path.exists(conf) and os.path.isfile(conf):
            self.load_file(conf)

    def load_from_current_dir(self):
        """
        Load the configuration from the configuration file in the current working directory if it exists.
        """
        if os.path.exists(self.config_file_name) and os.path.isfile(self.config_file_name):
            self.load_file(self.config_file_name)

    def get(self, key: str) -> t.Any:
        """
        Get the setting with the given key.

        :param key: name of the setting
        :return: value of the setting
        :raises: SettingsError if the setting doesn't exist
        """
        path = key.split("/")
        if not self.validate_key_path(path):
            raise SettingsError("No such setting {}".format(key))
        data = self.prefs
        for sub in path:
            data = data[sub]
        return data

    def __getitem__(self, key: str) -> t.Any:
        """
        Alias for self.get(self, key).
        """
        return self.get(key)

    def _set(self, path: t.List[str], value):
        """
        Set the setting at the passed path.

        :param path: passed key path
        :param value: new value
        """
        tmp_pref = self.prefs
        for key in path[0:-1]:
            tmp_pref = tmp_pref[key]
        tmp_pref[path[-1]] = value
        if path in (["config"], ["settings"]) and value != "":
            self.load_file(value)

    def set(self, key: str, value):
        """
        Sets the setting key to the passed new value

        :param key: settings key
        :param value: new value
        :raises: SettingsError if the setting isn't valid, the settings are left unchanged
        """
        tmp = copy.deepcopy(self.prefs)
        path = key.split("/")
        if not self.validate_key_path(path):
            raise SettingsError("No such setting {}".format(key))
        try:
            self._set(path, value)
            self._validate("settings")
        except SettingsError:
            self.prefs = tmp
            raise
        self._setup()

    def __setitem__(self, key: str, value):
        """
        Alias for self.set(key, value).
        """
        self.set(key, value)

    def validate_key_path(self, path: t.List[str]) -> bool:
        """
        Validates a path into in to the settings trees,

        :param path: list of sub keys
        :return: Is this key path valid?
        """
        tmp = self.prefs
        for item in path:
            if not isinstance(tmp, dict) or item not in tmp:
                return False
            tmp = tmp[item]
        return True

    def get_type_scheme(self, key: str) -> Type:
        """
        Returns the type scheme of the given key.

        :raises: SettingsError if the setting with the given key doesn't exist
        """
        if not self.validate_key_path(key.split("/")):
            raise SettingsError("Setting {} doesn't exist".format(key))
        tmp_typ = self.type_scheme
        for subkey in key.split("/"):
            tmp_typ = tmp_typ[subkey]
        return tmp_typ

    def default(self, value: t.Optional[t.Any], key: str):
        """
        Returns the passed value if isn't None else the settings value under the passed key.

        :param value: passed value
        :param key: passed settings key
        """
        if value is None:
            return self[key]
        typecheck(value, self.get_type_scheme(key), value_name=key)
        return value

    def store_into_file(self, file_name: str):
        """
        Stores the current settings into a yaml file with comments.

        :param file_name: name of the resulting file
        """
        with open(file_name, "w") as f:
            print(self.type_scheme.get_default_yaml(defaults=self.prefs), file=f)
