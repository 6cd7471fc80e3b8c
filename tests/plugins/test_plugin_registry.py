"""
Unit tests for the plugin registry.
"""

from unittest.mock import patch

import pytest

from derivekit.plugins import registry as reg
from derivekit.plugins.base import VariablePlugin
from derivekit.plugins.vector import VectorPlugin


class TestPluginRegistry:
    """Test class for registering and creating plugins by key."""

    @pytest.fixture(autouse=True)
    def restore_registry(self):
        """Undo registrations made by each test."""
        with patch.dict(reg._PLUGIN_REGISTRY):
            yield

    def test_vector_is_builtin(self):
        assert reg.get_plugin_class("vector") is VectorPlugin
        assert "vector" in reg.list_plugins()

    def test_register_with_explicit_key(self, sum_plugin_class):
        reg.register_plugin("sum")(sum_plugin_class)
        assert reg.get_plugin_class("sum") is sum_plugin_class

    def test_register_with_generated_key(self):
        @reg.register_plugin()
        class MeanOfComponents(VariablePlugin):
            def _do_process_variable_metadata(self, *metadata):
                return []

            def _generate_value(self, var_suffix, *source_values):
                return sum(source_values) / len(source_values)

        assert reg.get_plugin_class("mean_of_components") is MeanOfComponents

    def test_register_non_plugin(self):
        with pytest.raises(TypeError):
            reg.register_plugin("bad")(object)

    def test_create_plugin(self):
        plugin = reg.create_plugin("vector", "u", "v", "Currents", convention="from")
        assert isinstance(plugin, VectorPlugin)
        assert plugin.convention == "from"
        assert plugin.provides_variables == ("uvmag", "uvdir")

    def test_unknown_key(self):
        with pytest.raises(KeyError, match="vector"):
            reg.get_plugin_class("does_not_exist")

    def test_list_plugins_is_a_copy(self):
        plugins = reg.list_plugins()
        plugins["other"] = VectorPlugin
        assert "other" not in reg.list_plugins()
