"""Variable plugins for derivekit.

Plugins generate new variables on the fly from existing ones. The builtin
plugins are registered when this package is imported.

Example Usage
-------------
    >>> from derivekit.plugins import VectorPlugin
    >>> plugin = VectorPlugin("u", "v", "Wind")
    >>> plugin.provides_variables
    ('uvmag', 'uvdir')
    >>> plugin.get_value("uvmag", 3.0, 4.0)
    5.0

Custom plugins subclass ``VariablePlugin`` and may register themselves with
``@register_plugin("key")`` so they can be created by name.

"""

from derivekit.plugins.base import VariablePlugin
from derivekit.plugins.domain_union import (
    get_union_of_horizontal_domains,
    get_union_of_temporal_domains,
    get_union_of_vertical_domains,
)
from derivekit.plugins.registry import (
    create_plugin,
    get_plugin_class,
    list_plugins,
    register_plugin,
)

# Import builtin plugins to register them
from derivekit.plugins.vector import VectorPlugin

__all__ = [
    "VariablePlugin",
    "VectorPlugin",
    "register_plugin",
    "get_plugin_class",
    "list_plugins",
    "create_plugin",
    "get_union_of_horizontal_domains",
    "get_union_of_vertical_domains",
    "get_union_of_temporal_domains",
]
