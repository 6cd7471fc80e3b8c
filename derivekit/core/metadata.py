"""Variable metadata and the tree that holds it.

Variables are described by ``VariableMetadata`` nodes. Nodes do not hold
references to each other: each one records the ID of its parent, and the
``MetadataTree`` arena resolves relationships by ID. Re-parenting a node is a
single field update, so a plugin can restructure the tree without having to
keep two-way links consistent.

Classes
-------
Parameter
    What a variable measures (title, units, standard name).
VariableMetadata
    A node of the tree: a variable (or group of variables) and its domains.
MetadataTree
    Arena of nodes addressed by variable ID.

"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from derivekit.core.domains import HorizontalDomain, TemporalDomain, VerticalDomain
from derivekit.core.exceptions import UnknownVariableError

# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameter:
    """What a variable measures.

    Attributes
    ----------
    var_id : str
        ID of the variable this parameter describes.
    title : str
        Human-readable title.
    description : str
        Longer description.
    units : str
        Units of the values.
    standard_name : str, optional
        CF standard name, if there is one.

    """

    var_id: str
    title: str
    description: str = ""
    units: str = ""
    standard_name: Optional[str] = None


@dataclass
class VariableMetadata:
    """A node of the metadata tree.

    Attributes
    ----------
    var_id : str
        Unique ID of the variable within its tree.
    parameter : Parameter, optional
        What the variable measures.
    horizontal_domain, vertical_domain, temporal_domain : optional
        Where the variable has values. ``None`` when the variable has no such
        axis.
    scalar : bool
        ``False`` for grouping nodes that carry no values of their own.
    parent_id : str, optional
        ID of the parent node, ``None`` for roots.
    attrs : dict
        Free-form attributes, e.g. the source ``xarray`` attributes.

    """

    var_id: str
    parameter: Optional[Parameter] = None
    horizontal_domain: Optional[HorizontalDomain] = None
    vertical_domain: Optional[VerticalDomain] = None
    temporal_domain: Optional[TemporalDomain] = None
    scalar: bool = True
    parent_id: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)

    def set_parent(self, parent: Optional["VariableMetadata"]):
        """Move this node under ``parent``, or make it a root if ``None``."""
        new_parent_id = None if parent is None else parent.var_id
        if new_parent_id == self.var_id:
            raise ValueError(f"Variable '{self.var_id}' cannot be its own parent")
        logger.debug(
            "Re-parenting '%s' from %s to %s",
            self.var_id,
            self.parent_id,
            new_parent_id,
        )
        self.parent_id = new_parent_id


class MetadataTree:
    """Arena of ``VariableMetadata`` nodes addressed by variable ID.

    Parameters
    ----------
    nodes : iterable of VariableMetadata, optional
        Initial nodes. Added in order with ``add``.

    Notes
    -----
    The tree owns its index, not the nodes' relationships: parents are
    whatever ``parent_id`` says at the time of the query. Children are
    returned in insertion order.
    """

    def __init__(self, nodes: Optional[Iterable[VariableMetadata]] = None):
        self._nodes: Dict[str, VariableMetadata] = {}
        for node in nodes or []:
            self.add(node)

    def __contains__(self, var_id: str) -> bool:
        return var_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[VariableMetadata]:
        return iter(self._nodes.values())

    @property
    def ids(self) -> List[str]:
        return list(self._nodes)

    def add(self, node: VariableMetadata):
        """Add a node.

        Raises
        ------
        ValueError
            If a node with the same ID is already present.

        """
        if node.var_id in self._nodes:
            raise ValueError(f"Variable '{node.var_id}' is already in the tree")
        self._nodes[node.var_id] = node

    def attach(self, nodes: Iterable[VariableMetadata]):
        """Add several nodes at once, checking that every parent resolves.

        Nodes may refer to each other, so all of them are added before the
        parent IDs are checked. If any check fails none of the nodes are kept.

        Raises
        ------
        ValueError
            If a node ID is already present or a parent ID does not resolve.

        """
        nodes = list(nodes)
        added = []
        try:
            for node in nodes:
                self.add(node)
                added.append(node.var_id)
            for node in nodes:
                if node.parent_id is not None and node.parent_id not in self._nodes:
                    raise ValueError(
                        f"Parent '{node.parent_id}' of '{node.var_id}' is not in the tree"
                    )
        except ValueError:
            for var_id in added:
                del self._nodes[var_id]
            raise
        logger.debug("Attached %d metadata nodes", len(nodes))

    def get(self, var_id: str) -> VariableMetadata:
        try:
            return self._nodes[var_id]
        except KeyError:
            raise UnknownVariableError(
                var_id, f"Variable '{var_id}' is not in the metadata tree"
            ) from None

    def parent(self, var_id: str) -> Optional[VariableMetadata]:
        parent_id = self.get(var_id).parent_id
        if parent_id is None:
            return None
        return self.get(parent_id)

    def children(self, var_id: str) -> List[VariableMetadata]:
        self.get(var_id)
        return [node for node in self._nodes.values() if node.parent_id == var_id]

    def roots(self) -> List[VariableMetadata]:
        return [node for node in self._nodes.values() if node.parent_id is None]

    def ancestors(self, var_id: str) -> List[VariableMetadata]:
        """Return the chain of parents from the nearest up to the root.

        Raises
        ------
        ValueError
            If the parent links form a cycle.

        """
        chain = []
        seen = {var_id}
        current = self.parent(var_id)
        while current is not None:
            if current.var_id in seen:
                raise ValueError(f"Cycle in metadata tree at '{current.var_id}'")
            seen.add(current.var_id)
            chain.append(current)
            current = self.parent(current.var_id)
        return chain
