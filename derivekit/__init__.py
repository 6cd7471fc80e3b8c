"""Derived variables computed on demand from existing gridded variables."""

from derivekit._version import __version__
from derivekit.core.array2d import Array2D, DerivedArray2D, NumpyArray2D
from derivekit.core.metadata import MetadataTree, Parameter, VariableMetadata
from derivekit.dataset import PluginDataset
from derivekit.plugins import VariablePlugin, VectorPlugin, register_plugin
from derivekit.util.logger import disable_app_logging, enable_app_logging

__all__ = (
    # Classes
    "Array2D",
    "DerivedArray2D",
    "NumpyArray2D",
    "MetadataTree",
    "Parameter",
    "VariableMetadata",
    "PluginDataset",
    "VariablePlugin",
    "VectorPlugin",
    # Methods
    "register_plugin",
    "enable_app_logging",
    "disable_app_logging",
    # Constants
    "__version__",
)
