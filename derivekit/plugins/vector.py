"""Magnitude and direction of vector fields.

``VectorPlugin`` groups the x (eastward) and y (northward) components of a
vector field and provides its magnitude and direction. For components
``u10`` and ``v10`` it provides ``u10v10mag`` and ``u10v10dir``, and adds a
``u10v10group`` node to the metadata tree holding the components and the
derived variables.

"""

import logging

import numpy as np

from derivekit.core.constants import (
    VECTOR_DIRECTION_OFFSETS,
    VECTOR_DIRECTION_SUFFIX,
    VECTOR_GROUP_SUFFIX,
    VECTOR_MAGNITUDE_SUFFIX,
)
from derivekit.core.exceptions import InvalidConfigurationError
from derivekit.core.metadata import Parameter, VariableMetadata
from derivekit.plugins.base import VariablePlugin
from derivekit.plugins.registry import register_plugin

# Module logger
logger = logging.getLogger(__name__)


def _union_or_none(union_func, first, second):
    # A domain axis only survives if both components have it
    if first is None or second is None:
        return None
    return union_func(first, second)


@register_plugin("vector")
class VectorPlugin(VariablePlugin):
    """Plugin providing the magnitude and direction of a vector field.

    Parameters
    ----------
    x_component_id : str
        ID of the eastward component.
    y_component_id : str
        ID of the northward component.
    title : str
        Title of the vector quantity, e.g. ``"Wind at 10m"``.
    convention : {"to", "from"}, optional
        Direction convention. ``"to"`` (default) gives the direction the
        vector points towards; ``"from"`` gives the meteorological direction
        the wind comes from. Both are in degrees clockwise from north.

    Raises
    ------
    InvalidConfigurationError
        If ``convention`` is not recognised.

    """

    def __init__(
        self,
        x_component_id: str,
        y_component_id: str,
        title: str,
        convention: str = "to",
    ):
        if convention not in VECTOR_DIRECTION_OFFSETS:
            raise InvalidConfigurationError(
                f"Unknown direction convention '{convention}'. "
                f"Expected one of {list(VECTOR_DIRECTION_OFFSETS)}"
            )
        self.title = title
        self.convention = convention
        super().__init__(
            [x_component_id, y_component_id],
            [VECTOR_MAGNITUDE_SUFFIX, VECTOR_DIRECTION_SUFFIX],
        )
        logger.debug(
            "Vector %s uses the '%s' direction convention, offset %s degrees",
            self.combined_name,
            convention,
            VECTOR_DIRECTION_OFFSETS[convention],
        )

    @property
    def magnitude_id(self) -> str:
        return self.get_full_id(VECTOR_MAGNITUDE_SUFFIX)

    @property
    def direction_id(self) -> str:
        return self.get_full_id(VECTOR_DIRECTION_SUFFIX)

    @property
    def group_id(self) -> str:
        return self.get_full_id(VECTOR_GROUP_SUFFIX)

    def _do_process_variable_metadata(self, *metadata):
        x_metadata, y_metadata = metadata

        horizontal_domain = _union_or_none(
            self._get_union_of_horizontal_domains,
            x_metadata.horizontal_domain,
            y_metadata.horizontal_domain,
        )
        vertical_domain = _union_or_none(
            self._get_union_of_vertical_domains,
            x_metadata.vertical_domain,
            y_metadata.vertical_domain,
        )
        temporal_domain = _union_or_none(
            self._get_union_of_temporal_domains,
            x_metadata.temporal_domain,
            y_metadata.temporal_domain,
        )
        units = x_metadata.parameter.units if x_metadata.parameter else ""

        group = VariableMetadata(
            self.group_id,
            parameter=Parameter(
                self.group_id,
                title=self.title,
                description=f"Vector fields for {self.title}",
            ),
            horizontal_domain=horizontal_domain,
            vertical_domain=vertical_domain,
            temporal_domain=temporal_domain,
            scalar=False,
            parent_id=x_metadata.parent_id,
        )
        x_metadata.set_parent(group)
        y_metadata.set_parent(group)

        magnitude = VariableMetadata(
            self.magnitude_id,
            parameter=Parameter(
                self.magnitude_id,
                title=f"Magnitude of {self.title}",
                description=f"Magnitude of components: {', '.join(self.uses_variables)}",
                units=units,
            ),
            horizontal_domain=horizontal_domain,
            vertical_domain=vertical_domain,
            temporal_domain=temporal_domain,
            parent_id=group.var_id,
        )
        direction = VariableMetadata(
            self.direction_id,
            parameter=Parameter(
                self.direction_id,
                title=f"Direction of {self.title}",
                description=(
                    f"Direction of components: {', '.join(self.uses_variables)}, "
                    f"clockwise from north ({self.convention} convention)"
                ),
                units="degrees",
            ),
            horizontal_domain=horizontal_domain,
            vertical_domain=vertical_domain,
            temporal_domain=temporal_domain,
            parent_id=group.var_id,
        )
        return [group, magnitude, direction]

    def _generate_value(self, var_suffix, *source_values):
        x, y = source_values
        if var_suffix == VECTOR_MAGNITUDE_SUFFIX:
            return float(np.sqrt(x**2 + y**2))
        if var_suffix == VECTOR_DIRECTION_SUFFIX:
            offset = VECTOR_DIRECTION_OFFSETS[self.convention]
            return float((offset - np.degrees(np.arctan2(y, x))) % 360)
        # suffixes come from the constructor, so this is a programming error
        raise ValueError(f"Unexpected suffix '{var_suffix}'")
