"""Base class for variable plugins.

A plugin generates new variables on the fly from existing ones. It is
constructed with the IDs of the variables it uses and the suffixes of the
variables it provides; the provided IDs are the combination of the used IDs
followed by each suffix. For example a plugin using ``["u", "v"]`` and
providing ``["mag", "dir"]`` provides ``"uvmag"`` and ``"uvdir"``.

Subclasses implement two hooks:

- ``_do_process_variable_metadata`` restructures the metadata tree once, and
  returns the metadata nodes it creates for the new variables.
- ``_generate_value`` computes one derived value from the source values. It
  must be a pure function of its arguments.

See ``derivekit.plugins.vector.VectorPlugin`` for a complete example.

"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Tuple

from derivekit.core.array2d import Array2D, DerivedArray2D, is_missing
from derivekit.core.domains import HorizontalDomain, TemporalDomain, VerticalDomain
from derivekit.core.exceptions import (
    AlreadyProcessedError,
    ArityMismatchError,
    InvalidConfigurationError,
    UnknownVariableError,
)
from derivekit.core.metadata import VariableMetadata
from derivekit.plugins.domain_union import (
    get_union_of_horizontal_domains,
    get_union_of_temporal_domains,
    get_union_of_vertical_domains,
)

# Module logger
logger = logging.getLogger(__name__)


class VariablePlugin(ABC):
    """Abstract base class for plugins generating variables from other variables.

    Parameters
    ----------
    uses_variables : sequence of str
        IDs of the variables used to generate new values, in the order the
        hooks receive them.
    provides_suffixes : sequence of str
        Suffixes of the generated variables. These are not the variable IDs
        themselves; see ``provides_variables``.

    Attributes
    ----------
    uses_variables : tuple of str
        IDs of the source variables.
    provides_variables : tuple of str
        IDs of the generated variables.
    combined_name : str
        Prefix shared by all generated IDs.

    Raises
    ------
    InvalidConfigurationError
        If ``uses_variables`` is empty.
    TypeError
        If an ID or suffix is not a string.

    Notes
    -----
    ``get_value`` and ``generate_array2d`` only read state fixed at
    construction and may be called from several threads. The one-shot
    metadata processing is serialised by a lock.

    """

    def __init__(
        self, uses_variables: Sequence[str], provides_suffixes: Sequence[str]
    ):
        uses_variables = tuple(uses_variables)
        provides_suffixes = tuple(provides_suffixes)
        if len(uses_variables) == 0:
            raise InvalidConfigurationError(
                "A plugin must use at least one source variable"
            )
        for name in uses_variables + provides_suffixes:
            if not isinstance(name, str):
                raise TypeError(
                    f"Variable IDs and suffixes must be strings, got {name!r}"
                )

        self._uses = uses_variables
        self._suffixes = provides_suffixes
        self._combined_name: Optional[str] = None
        self._metadata_processed = False
        self._metadata_lock = threading.Lock()

        self.combine_ids(*uses_variables)
        self._prefix_length = len(self._combined_name)
        self._provides = tuple(self.get_full_id(suffix) for suffix in provides_suffixes)
        logger.debug(
            "%s uses %s and provides %s",
            type(self).__name__,
            self._uses,
            self._provides,
        )

    @property
    def uses_variables(self) -> Tuple[str, ...]:
        """IDs of the variables this plugin uses, in the order it needs them."""
        return self._uses

    @property
    def provides_variables(self) -> Tuple[str, ...]:
        """IDs of the variables this plugin provides."""
        return self._provides

    @property
    def provides_suffixes(self) -> Tuple[str, ...]:
        return self._suffixes

    @property
    def combined_name(self) -> str:
        return self._combined_name

    @property
    def metadata_processed(self) -> bool:
        return self._metadata_processed

    def combine_ids(self, *parts: str) -> str:
        """Mangle several IDs into one new one.

        The combination itself is done by ``_combine``, which subclasses may
        override if they need a specific format for IDs. It runs once, during
        construction; later calls return the stored name whatever ``parts``
        are.

        Parameters
        ----------
        *parts : str
            The IDs to base this name on.

        Returns
        -------
        str
            The combined name.

        """
        if self._combined_name is None:
            self._combined_name = self._combine(parts)
        return self._combined_name

    def _combine(self, parts: Sequence[str]) -> str:
        """Concatenate the IDs."""
        return "".join(parts)

    def get_full_id(self, suffix: str) -> str:
        """Return the ID of the generated variable with the given suffix.

        Subclasses should use this to name the metadata they create in
        ``_do_process_variable_metadata``.
        """
        return self._combined_name + suffix

    def _check_arity(self, supplied: int, what: str):
        if supplied != len(self._uses):
            raise ArityMismatchError(len(self._uses), supplied, what)

    def _check_provided(self, var_id: str):
        if var_id not in self._provides:
            raise UnknownVariableError(
                var_id, f"This plugin does not provide the variable {var_id}"
            )

    def process_variable_metadata(
        self, *metadata: VariableMetadata
    ) -> Tuple[VariableMetadata, ...]:
        """Modify the metadata tree to reflect the changes this plugin implements.

        Parameters
        ----------
        *metadata : VariableMetadata
            Metadata of the source variables, in the order of
            ``uses_variables``.

        Returns
        -------
        tuple of VariableMetadata
            New metadata nodes. The caller inserts them into its tree.

        Raises
        ------
        ArityMismatchError
            If the number of metadata objects differs from the number of
            source variables.
        AlreadyProcessedError
            If metadata has already been processed for this plugin.

        """
        self._check_arity(len(metadata), "metadata sources")
        with self._metadata_lock:
            if self._metadata_processed:
                raise AlreadyProcessedError(
                    "Metadata has already been processed for this plugin"
                )
            new_metadata = tuple(self._do_process_variable_metadata(*metadata) or ())
            self._metadata_processed = True

        logger.info(
            "Processed metadata for %s, created %s",
            type(self).__name__,
            [node.var_id for node in new_metadata],
        )
        return new_metadata

    def get_value(self, var_id: str, *values: Any) -> Optional[Any]:
        """Generate a value for the desired ID.

        Parameters
        ----------
        var_id : str
            ID of the variable to generate a value for.
        *values
            Source values, in the order of ``uses_variables``.

        Returns
        -------
        The derived value, or ``None`` if the first or second source value
        is missing.

        Raises
        ------
        UnknownVariableError
            If this plugin does not provide ``var_id``.
        ArityMismatchError
            If the number of values differs from the number of source
            variables.

        Notes
        -----
        Only the first two values are checked for missing data, whatever the
        number of sources. Plugins with more sources must handle missing
        values beyond the second in ``_generate_value``.

        """
        self._check_provided(var_id)
        self._check_arity(len(values), "data sources")
        if any(is_missing(value) for value in values[:2]):
            return None
        return self._generate_value(var_id[self._prefix_length :], *values)

    def generate_array2d(self, var_id: str, *source_arrays: Array2D) -> DerivedArray2D:
        """Generate a lazy ``Array2D`` of values for the desired ID.

        Parameters
        ----------
        var_id : str
            ID of the variable to generate values for.
        *source_arrays : Array2D
            Source arrays, in the order of ``uses_variables``. The result has
            the shape of the first.

        Returns
        -------
        DerivedArray2D
            Read-only view. Each read recomputes the value from the same
            position of every source; if any source has no data there the
            result is ``None``.

        Raises
        ------
        ArityMismatchError
            If the number of arrays differs from the number of source
            variables.
        UnknownVariableError
            If this plugin does not provide ``var_id``.

        """
        self._check_arity(len(source_arrays), "data sources")
        self._check_provided(var_id)
        suffix = var_id[self._prefix_length :]

        def value_func(*values):
            return self._generate_value(suffix, *values)

        return DerivedArray2D(source_arrays, value_func)

    @abstractmethod
    def _do_process_variable_metadata(
        self, *metadata: VariableMetadata
    ) -> Sequence[VariableMetadata]:
        """Modify the metadata tree and return any new nodes.

        Subclasses may restructure the tree arbitrarily with
        ``VariableMetadata.set_parent``. New nodes should be named with
        ``get_full_id``. This is guaranteed to only be called once.

        Parameters
        ----------
        *metadata : VariableMetadata
            Metadata of the source variables, in the order they were
            supplied to the constructor.

        Returns
        -------
        sequence of VariableMetadata
            The derived metadata.

        """

    @abstractmethod
    def _generate_value(self, var_suffix: str, *source_values: Any) -> Optional[Any]:
        """Generate a value from source values.

        Parameters
        ----------
        var_suffix : str
            Suffix of the variable to generate. This is one of the suffixes
            given to the constructor, not the full variable ID.
        *source_values
            Source values, in the order they were supplied to the
            constructor.

        Returns
        -------
        The derived value.

        """

    def _get_union_of_horizontal_domains(
        self, *domains: HorizontalDomain
    ) -> HorizontalDomain:
        return get_union_of_horizontal_domains(domains)

    def _get_union_of_vertical_domains(self, *domains: VerticalDomain) -> VerticalDomain:
        return get_union_of_vertical_domains(domains)

    def _get_union_of_temporal_domains(self, *domains: TemporalDomain) -> TemporalDomain:
        return get_union_of_temporal_domains(domains)

    def __repr__(self):
        return (
            f"{type(self).__name__}(uses={list(self._uses)}, "
            f"provides={list(self._provides)})"
        )
