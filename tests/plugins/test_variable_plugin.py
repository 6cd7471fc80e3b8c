"""
Unit tests for the VariablePlugin base class.

Covers naming of provided variables, the one-shot metadata processing,
validation of value and array requests, and missing-data propagation.
"""

import threading
from unittest.mock import MagicMock

import numpy as np
import pytest

from derivekit.core.array2d import DerivedArray2D, NumpyArray2D
from derivekit.core.exceptions import (
    AlreadyProcessedError,
    ArityMismatchError,
    ImmutableArrayError,
    InvalidConfigurationError,
    UnknownVariableError,
)
from derivekit.core.metadata import VariableMetadata
from derivekit.plugins.vector import VectorPlugin


class TestNaming:
    """Test class for combined names and provided IDs."""

    def test_provided_ids_are_combined_name_plus_suffix(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "bb", "c"], ["x", "yy", ""])
        assert plugin.combined_name == "abbc"
        assert plugin.provides_variables == ("abbcx", "abbcyy", "abbc")
        for var_id, suffix in zip(plugin.provides_variables, plugin.provides_suffixes):
            assert var_id == plugin.combined_name + suffix

    def test_uses_variables_keeps_order(self, sum_plugin_class):
        plugin = sum_plugin_class(["v", "u"])
        assert plugin.uses_variables == ("v", "u")
        assert plugin.combined_name == "vu"

    def test_vector_example(self):
        plugin = VectorPlugin("u", "v", "Currents")
        assert plugin.combined_name == "uv"
        assert plugin.provides_variables == ("uvmag", "uvdir")

    def test_get_full_id(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"])
        assert plugin.get_full_id("-group") == "uv-group"

    def test_combine_ids_is_memoised(self, sum_plugin_class):
        """The combination hook runs once; later calls return the cached name."""

        class CountingPlugin(sum_plugin_class):
            combine_calls = 0

            def _combine(self, parts):
                type(self).combine_calls += 1
                return "_".join(parts)

        plugin = CountingPlugin(["u", "v"])
        assert plugin.combined_name == "u_v"
        assert plugin.provides_variables == ("u_vsum",)
        assert plugin.combine_ids("other", "ids") == "u_v"
        assert CountingPlugin.combine_calls == 1

    def test_no_sources_is_invalid(self, sum_plugin_class):
        with pytest.raises(InvalidConfigurationError):
            sum_plugin_class([])

    def test_no_sources_is_a_value_error(self, sum_plugin_class):
        with pytest.raises(ValueError):
            sum_plugin_class([])

    def test_non_string_ids_rejected(self, sum_plugin_class):
        with pytest.raises(TypeError):
            sum_plugin_class(["u", 1])


class TestProcessVariableMetadata:
    """Test class for the one-shot metadata transform."""

    def test_returns_new_metadata_and_marks_processed(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"], ["sum", "total"])
        assert not plugin.metadata_processed

        new = plugin.process_variable_metadata(VariableMetadata("u"), VariableMetadata("v"))

        assert isinstance(new, tuple)
        assert [node.var_id for node in new] == ["uvsum", "uvtotal"]
        assert plugin.metadata_processed

    def test_second_call_fails(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"])
        first = plugin.process_variable_metadata(VariableMetadata("u"), VariableMetadata("v"))

        with pytest.raises(AlreadyProcessedError):
            plugin.process_variable_metadata(VariableMetadata("u"), VariableMetadata("v"))

        assert [node.var_id for node in first] == ["uvsum"]
        assert plugin.calls == 1
        assert plugin.metadata_processed

    def test_empty_result_still_marks_processed(self, sum_plugin_class):
        plugin = sum_plugin_class(["u"], [])
        assert plugin.process_variable_metadata(VariableMetadata("u")) == ()
        assert plugin.metadata_processed

    def test_hook_returning_none_gives_empty_tuple(self, sum_plugin_class):
        plugin = sum_plugin_class(["u"])
        plugin._do_process_variable_metadata = MagicMock(return_value=None)
        assert plugin.process_variable_metadata(VariableMetadata("u")) == ()

    def test_arity_mismatch(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"])
        with pytest.raises(ArityMismatchError):
            plugin.process_variable_metadata(VariableMetadata("u"))
        assert not plugin.metadata_processed
        assert plugin.calls == 0

    def test_failed_hook_leaves_plugin_unprocessed(self, sum_plugin_class):
        plugin = sum_plugin_class(["u"])
        original = plugin._do_process_variable_metadata
        plugin._do_process_variable_metadata = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            plugin.process_variable_metadata(VariableMetadata("u"))
        assert not plugin.metadata_processed

        plugin._do_process_variable_metadata = original
        assert len(plugin.process_variable_metadata(VariableMetadata("u"))) == 1

    def test_concurrent_calls_run_hook_once(self, sum_plugin_class):
        plugin = sum_plugin_class(["u"])
        barrier = threading.Barrier(8)
        results = []
        errors = []

        def worker():
            barrier.wait()
            try:
                results.append(plugin.process_variable_metadata(VariableMetadata("u")))
            except AlreadyProcessedError as err:
                errors.append(err)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert plugin.calls == 1
        assert len(results) == 1
        assert len(errors) == 7


class TestGetValue:
    """Test class for single value derivation."""

    def test_value_is_generated_from_suffix(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "b", "c"])
        assert plugin.get_value("abcsum", 1, 2, 3) == 6

    def test_vector_magnitude(self):
        plugin = VectorPlugin("u", "v", "Currents")
        assert plugin.get_value("uvmag", 3, 4) == pytest.approx(5.0)

    def test_unknown_variable(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"])
        with pytest.raises(UnknownVariableError):
            plugin.get_value("uvmag", 1, 2)

    def test_unknown_variable_is_a_key_error(self, sum_plugin_class):
        plugin = sum_plugin_class(["u", "v"])
        with pytest.raises(KeyError):
            plugin.get_value("u", 1, 2)

    @pytest.mark.parametrize("values", [(1,), (1, 2, 3)])
    def test_arity_mismatch(self, sum_plugin_class, values):
        plugin = sum_plugin_class(["u", "v"])
        with pytest.raises(ArityMismatchError) as excinfo:
            plugin.get_value("uvsum", *values)
        assert excinfo.value.expected == 2
        assert excinfo.value.supplied == len(values)

    @pytest.mark.parametrize(
        "values", [(None, 4), (3, None), (np.nan, 4), (3, float("nan"))]
    )
    def test_missing_first_or_second_value(self, values):
        plugin = VectorPlugin("u", "v", "Currents")
        assert plugin.get_value("uvmag", *values) is None

    def test_missing_check_only_covers_first_two_sources(self, sum_plugin_class):
        """A missing third value is passed through to the value function."""
        plugin = sum_plugin_class(["a", "b", "c"])
        plugin._generate_value = MagicMock(return_value="generated")

        assert plugin.get_value("abcsum", 1, 2, None) == "generated"
        plugin._generate_value.assert_called_once_with("sum", 1, 2, None)

        assert plugin.get_value("abcsum", None, 2, 3) is None
        assert plugin._generate_value.call_count == 1

    def test_single_source_checks_first_value(self, sum_plugin_class):
        plugin = sum_plugin_class(["a"])
        assert plugin.get_value("asum", None) is None
        assert plugin.get_value("asum", 2) == 2


class TestGenerateArray2D:
    """Test class for lazy derived arrays."""

    def test_shape_follows_first_source(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "b"])
        a = NumpyArray2D(np.ones((3, 4)))
        b = NumpyArray2D(np.ones((3, 4)))
        out = plugin.generate_array2d("absum", a, b)
        assert isinstance(out, DerivedArray2D)
        assert out.shape == (3, 4)

    def test_values_are_derived_per_position(self):
        plugin = VectorPlugin("u", "v", "Currents")
        u = NumpyArray2D(np.array([[3.0, 0.0], [1.0, -6.0]]))
        v = NumpyArray2D(np.array([[4.0, 2.0], [0.0, 8.0]]))
        mag = plugin.generate_array2d("uvmag", u, v)
        np.testing.assert_allclose(mag.to_numpy(), [[5.0, 2.0], [1.0, 10.0]])

    def test_missing_in_any_source_gives_none(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "b", "c"])
        plugin._generate_value = MagicMock(side_effect=lambda suffix, *v: sum(v))
        a = NumpyArray2D(np.array([[1.0, 1.0]]))
        b = NumpyArray2D(np.array([[1.0, 1.0]]))
        c = NumpyArray2D(np.array([[1.0, np.nan]]))

        out = plugin.generate_array2d("abcsum", a, b, c)

        assert out[0, 0] == 3.0
        assert out[0, 1] is None
        # the value function is never called for the missing position
        assert plugin._generate_value.call_count == 1

    def test_values_are_recomputed_on_every_read(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "b"])
        values = np.array([[1.0]])
        out = plugin.generate_array2d(
            "absum", NumpyArray2D(values), NumpyArray2D(np.array([[1.0]]))
        )
        assert out[0, 0] == 2.0
        values[0, 0] = 10.0
        assert out[0, 0] == 11.0

    def test_write_fails(self, sum_plugin_class):
        plugin = sum_plugin_class(["a"])
        out = plugin.generate_array2d("asum", NumpyArray2D(np.zeros((2, 2))))
        with pytest.raises(ImmutableArrayError):
            out[0, 0] = 1.0
        with pytest.raises(ImmutableArrayError):
            out[1, 1] = None

    def test_arity_mismatch(self, sum_plugin_class):
        plugin = sum_plugin_class(["a", "b"])
        with pytest.raises(ArityMismatchError):
            plugin.generate_array2d("absum", NumpyArray2D(np.zeros((2, 2))))

    def test_unknown_variable(self, sum_plugin_class):
        plugin = sum_plugin_class(["a"])
        with pytest.raises(UnknownVariableError):
            plugin.generate_array2d("nope", NumpyArray2D(np.zeros((2, 2))))
