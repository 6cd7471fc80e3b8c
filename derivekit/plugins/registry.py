"""Registry of plugin classes.

Plugin classes register under a key so that they can be created by name, for
example from ``PluginDataset.add_variable_plugin("vector", "u", "v", "Wind")``.

Functions
---------
register_plugin
    Decorator registering a plugin class.
get_plugin_class
    Look up a registered plugin class.
list_plugins
    All registered plugin classes by key.
create_plugin
    Instantiate a registered plugin class.

"""

import logging
from typing import Callable, Dict, Type

from derivekit.core.constants import UNSET
from derivekit.plugins.base import VariablePlugin

# Module logger
logger = logging.getLogger(__name__)

# Registry to hold all registered plugins
_PLUGIN_REGISTRY: Dict[str, Type[VariablePlugin]] = {}


def register_plugin(key: str | object = UNSET) -> Callable:
    """Decorator to register a plugin class.

    Parameters
    ----------
    key : str, optional
        The key to register the plugin under. If not provided, a key
        will be generated from the class name.

    Returns
    -------
    callable
        The decorator function that registers the plugin class.

    Examples
    --------
    @register_plugin("my_plugin")
    class MyPlugin(VariablePlugin):
        ...

    """

    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, VariablePlugin)):
            raise TypeError(f"{cls!r} is not a VariablePlugin subclass")
        # If no key is provided, generate one from the class name
        plugin_key = (
            key
            if key is not UNSET
            else "".join(
                ["_" + c.lower() if c.isupper() else c for c in cls.__name__]
            ).lstrip("_")
        )
        if plugin_key in _PLUGIN_REGISTRY and _PLUGIN_REGISTRY[plugin_key] is not cls:
            logger.warning(
                "Plugin key '%s' was registered to %s; replacing it with %s",
                plugin_key,
                _PLUGIN_REGISTRY[plugin_key].__name__,
                cls.__name__,
            )
        logger.debug("Registering plugin '%s' as %s", plugin_key, cls.__name__)
        _PLUGIN_REGISTRY[plugin_key] = cls
        return cls

    return decorator


def get_plugin_class(key: str) -> Type[VariablePlugin]:
    """Get the plugin class registered under ``key``.

    Raises
    ------
    KeyError
        If no plugin is registered under ``key``.

    """
    try:
        return _PLUGIN_REGISTRY[key]
    except KeyError:
        raise KeyError(
            f"No plugin registered as '{key}'. Available plugins: {sorted(_PLUGIN_REGISTRY)}"
        ) from None


def list_plugins() -> Dict[str, Type[VariablePlugin]]:
    """List all registered plugin classes.

    Returns
    -------
    dict
        Copy of the registry, mapping keys to plugin classes.

    """
    return _PLUGIN_REGISTRY.copy()


def create_plugin(key: str, *args, **kwargs) -> VariablePlugin:
    """Instantiate the plugin registered under ``key`` with the given arguments."""
    return get_plugin_class(key)(*args, **kwargs)
