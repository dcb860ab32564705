#!/usr/bin/env python3

"""Configuration of pgroles.

Both config objects start from the defaults found in here. Single values can
be overridden in a python file: every module level name of that file which
matches a default key replaces the default, everything else in the file is
ignored. The path to the main config file is taken from the environment
variable PGROLES_CONFIGPATH, the main config in turn names the secrets file.
"""

import collections
import importlib.util
import logging
import os
import pathlib
from collections.abc import Iterator, Mapping
from typing import Any, ClassVar, Union

from pgroles.common import ConfigError, n_

PathLike = Union[pathlib.Path, str]

# Used by the command line interface if neither the option nor the environment
# variable is given.
DEFAULT_CONFIGPATH = pathlib.Path("/etc/pgroles/config.py")

_LOGGER = logging.getLogger(__name__)


def set_configpath(path: PathLike) -> None:
    """Helper to set the configpath as environment variable."""
    os.environ["PGROLES_CONFIGPATH"] = str(path)


def get_configpath(fallback: bool = False) -> pathlib.Path:
    """Helper to get the config path from the environment.

    :param fallback: Whether the DEFAULT_CONFIGPATH should be set and returned as config
        path if PGROLES_CONFIGPATH is not set.
    """
    if path := os.environ.get("PGROLES_CONFIGPATH"):
        return pathlib.Path(path)
    if fallback:
        _LOGGER.debug("PGROLES_CONFIGPATH not set, using the fallback.")
        set_configpath(DEFAULT_CONFIGPATH)
        return DEFAULT_CONFIGPATH
    raise ConfigError(n_("No config path set!"))


#: defaults for :py:class:`Config`
_DEFAULTS = {
    ############
    # Database #
    ############

    # name of the database to connect to, roles are cluster wide anyway
    "DB_NAME": "postgres",

    # host (name or ip) on which the database listens
    "DB_HOST": "localhost",

    # port on which the database listens
    "DB_PORT": 5432,

    # login role used for administration, needs CREATEROLE and read access
    # to pg_catalog.pg_authid (i.e. superuser) for the membership queries
    "DB_USER": "postgres",

    # path to the file which holds the password overrides of the SecretsConfig
    "SECRETS_CONFIGPATH": pathlib.Path("/etc/pgroles/secrets.py"),

    ###########
    # Logging #
    ###########

    # Directory in which the log file 'pgroles.log' will be saved. If this is None,
    # nothing is logged to a file.
    "LOG_DIR": None,

    # Log level for the log file.
    "LOG_LEVEL": logging.INFO,

    # Log level for syslog, None to disable.
    "SYSLOG_LEVEL": None,

    # Log level for stdout, None to disable.
    "CONSOLE_LOG_LEVEL": None,
}

#: defaults for :py:class:`SecretsConfig`
_SECRETS_DEFAULTS = {
    # passwords of the login roles, keyed by role name
    "DB_PASSWORDS": {
        "postgres": "",
    },
}


class _OverridableConfig(Mapping[str, Any]):
    """Read-only mapping of the defaults, updated from a python file."""

    defaults: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, configpath: PathLike) -> None:
        name = self.__class__.__name__
        _LOGGER.debug(f"Initialize {name} object with path {configpath}.")
        path = pathlib.Path(configpath)
        if not path.is_file():
            raise ConfigError(f"Config file {path} of {name} not found.")
        self._configpath = path
        spec = importlib.util.spec_from_file_location("override", str(path))
        if not spec or not spec.loader:
            raise ImportError  # pragma: no cover
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        override = {key: getattr(module, key)
                    for key in self.defaults if hasattr(module, key)}
        self._configchain = collections.ChainMap(override, self.defaults)

    def __getitem__(self, key: str) -> Any:
        return self._configchain[key]

    def __iter__(self) -> Iterator[str]:  # pragma: no cover
        return iter(self._configchain)

    def __len__(self) -> int:  # pragma: no cover
        return len(self._configchain)


class Config(_OverridableConfig):
    """Main configuration, read from the file named by PGROLES_CONFIGPATH."""

    defaults = _DEFAULTS

    def __init__(self) -> None:
        super().__init__(get_configpath())

    # The repr is only relevant for debugging.
    def __repr__(self) -> str:  # pragma: no cover
        return f"Config(configpath={self._configpath}, configchain={self._configchain})"


class SecretsConfig(_OverridableConfig):
    """Container for secrets (i.e. passwords).

    The path of the overriding file is the SECRETS_CONFIGPATH of the main
    config, since passwords should not be left in a globally accessible spot.
    """

    defaults = _SECRETS_DEFAULTS

    def __init__(self) -> None:
        configpath = Config()["SECRETS_CONFIGPATH"]
        if not configpath:
            raise ConfigError(n_("No configpath for SecretsConfig provided!"))
        super().__init__(configpath)
