import json
import threading
import os
from typing import Union, Optional, Dict, Any, Callable, Sequence, Type

from copy import deepcopy

from . import constants
from .logging import get_logger, Logger


_logger = get_logger(__name__)


_config_var_from_key = {}  # type: Dict[str, 'ConfigVar']


class ConfigVar(property):

    def __init__(
        self,
        key: str,
        *,
        default: Union[Any, Callable[['SimpleConfig'], Any]],  # typically a literal, but can also be a callable
        type_=None,
        convert_getter: Callable[[Any], Any] = None,
        short_desc: Callable[[], str] = None,
    ):
        self._key = key
        self._default = default
        self._type = type_
        self._convert_getter = convert_getter
        assert short_desc is None or callable(short_desc)
        self._short_desc = short_desc
        property.__init__(self, self._get_config_value, self._set_config_value)
        assert key not in _config_var_from_key, f"duplicate config key str: {key!r}"
        _config_var_from_key[key] = self

    def _get_config_value(self, config: 'SimpleConfig'):
        with config.lock:
            if config.is_set(self._key):
                value = config.get(self._key)
                # run converter
                if self._convert_getter is not None:
                    value = self._convert_getter(value)
                # type-check
                if self._type is not None:
                    assert value is not None, f"got None for key={self._key!r}"
                    try:
                        value = self._type(value)
                    except Exception as e:
                        raise ValueError(
                            f"ConfigVar.get type-check and auto-conversion failed. "
                            f"key={self._key!r}. type={self._type}. value={value!r}") from e
            else:
                d = self._default
                value = d(config) if callable(d) else d
            return value

    def _set_config_value(self, config: 'SimpleConfig', value):
        if self._type is not None and value is not None:
            if not isinstance(value, self._type):
                raise ValueError(
                    f"ConfigVar.set type-check failed. "
                    f"key={self._key!r}. type={self._type}. value={value!r}")
        config.set_key(self._key, value)

    def key(self) -> str:
        return self._key

    def get_default_value(self) -> Any:
        return self._default

    def get_short_desc(self) -> Optional[str]:
        desc = self._short_desc
        return desc() if desc else None

    def __repr__(self):
        return f"<ConfigVar key={self._key!r}>"

    def __deepcopy__(self, memo):
        # We can be considered ~stateless. State is stored in the config, which is external.
        return self


class SimpleConfig(Logger):
    """
    The SimpleConfig class holds the settings of one run of the tool.

    There are two different sources of possible configuration values:
        1. Command line options.
        2. An optional JSON config file (--config)
    They are taken in order (1. overrides config options set in 2.)
    Nothing is ever written back to disk.
    """

    def __init__(self, options=None, read_user_config_function=None):
        if options is None:
            options = {}
        for config_key in options:
            assert isinstance(config_key, str), f"{config_key=!r} has type={type(config_key)}, expected str"

        Logger.__init__(self)

        # This lock needs to be acquired for updating and reading the config in
        # a thread-safe way.
        self.lock = threading.RLock()

        # for dependency injection when testing
        if read_user_config_function is None:
            read_user_config_function = read_user_config

        # The command line options
        self.cmdline_options = {k: v for k, v in deepcopy(options).items() if v is not None}
        self.path = self.cmdline_options.pop('config', None)
        self.user_config = read_user_config_function(self.path)

    def list_config_vars(self) -> Sequence[str]:
        return list(sorted(_config_var_from_key.keys()))

    def get_selected_chain(self) -> Type[constants.AbstractNet]:
        selected_chains = [
            chain for chain in constants.NETS_LIST
            if self.get(chain.cli_flag())]
        if selected_chains:
            # note: if multiple are selected, we just pick one deterministically random
            return selected_chains[0]
        name = self.NETWORK
        try:
            return constants.NETS_BY_NAME[name]
        except KeyError:
            raise ValueError(f"unknown network {name!r}. "
                             f"expected one of {', '.join(constants.NETS_BY_NAME)}") from None

    def apply_network(self) -> Type[constants.AbstractNet]:
        chain = self.get_selected_chain()
        chain.set_as_network()
        self.logger.debug(f"selected network: {chain.NET_NAME}")
        return chain

    def set_key(self, key: Union[str, ConfigVar], value) -> None:
        """Set the value for an arbitrary string config key, for this run only."""
        if isinstance(key, ConfigVar):
            key = key.key()
        assert isinstance(key, str), key
        with self.lock:
            if value is None:
                self.cmdline_options.pop(key, None)
                self.user_config.pop(key, None)
            else:
                self.cmdline_options[key] = value

    def get(self, key: str, default=None) -> Any:
        """Get the value for an arbitrary string config key.
        note: try to use explicit predefined ConfigVars instead of this method, whenever possible.
        """
        assert isinstance(key, str), key
        with self.lock:
            out = self.cmdline_options.get(key)
            if out is None:
                out = self.user_config.get(key, default)
        return out

    def is_set(self, key: Union[str, ConfigVar]) -> bool:
        """Returns whether the config key has any explicit value set/defined."""
        if isinstance(key, ConfigVar):
            key = key.key()
        assert isinstance(key, str), key
        return self.get(key, default=...) is not ...

    # config variables ----->

    NETWORK = ConfigVar('network', default=constants.BitcoinMainnet.NET_NAME, type_=str,
                        short_desc=lambda: "Network to use for key and address encodings")
    VERBOSITY = ConfigVar('verbosity', default=False,
                          short_desc=lambda: "Log filter string, e.g. 'debug,bip32=warning'")
    DERIVE_RANGE_LIMIT = ConfigVar('derive_range_limit', default=1000, type_=int,
                                   short_desc=lambda: "Maximum number of indices 'expand --range' may derive")


def read_user_config(path: Optional[str]) -> Dict[str, Any]:
    """Parse the JSON config file at path. A missing path means no settings."""
    if not path:
        return {}
    if not os.path.exists(path):
        raise ValueError(f"config file not found: {path}")
    try:
        with open(path, "r", encoding='utf-8') as f:
            data = f.read()
        result = json.loads(data)
    except (OSError, ValueError) as e:
        raise ValueError(f"Invalid config file at {path}: {str(e)}") from e
    if not isinstance(result, dict):
        raise ValueError(f"Invalid config file at {path}: not a JSON object")
    return result
