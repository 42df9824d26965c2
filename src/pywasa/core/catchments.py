"""Sub-catchments and the inflow dependencies between them."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from pywasa.core.exceptions import DependencyGraphError


@dataclass
class SubCatchment:
    """A spatial simulation unit with its own model setup and output stream.

    Attributes
    ----------
    name : str
        Identifier of the sub-catchment (also the name of its setup and
        output directories).
    rank : int
        Position in the declared processing order (0-based).
    dependencies : dict[str, int]
        Upstream sub-catchment name -> subbasin id whose simulated outflow
        feeds this sub-catchment.
    """

    name: str
    rank: int = 0
    dependencies: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the name and normalize subbasin ids."""
        invalid_chars = '<>:"/\\|?*'
        for char in invalid_chars:
            if char in self.name:
                raise ValueError(
                    f"Sub-catchment name contains invalid character: {char}"
                )
        self.dependencies = {
            str(upstream): int(subbasin)
            for upstream, subbasin in self.dependencies.items()
        }

    @property
    def has_dependencies(self) -> bool:
        """Check if this sub-catchment receives upstream inflows."""
        return bool(self.dependencies)

    @property
    def upstream(self) -> list[str]:
        """Names of the upstream sub-catchments."""
        return list(self.dependencies)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SubCatchment(name='{self.name}', upstream={self.upstream})"


class CatchmentNetwork:
    """Ordered collection of sub-catchments with dependency checks.

    Parameters
    ----------
    subcatchments : Sequence[SubCatchment]
        Sub-catchments in the declared processing order.

    Examples
    --------
    >>> net = CatchmentNetwork.from_mapping(
    ...     ["Oros", "Salgado", "Castanhao"],
    ...     {"Castanhao": {"Oros": 30, "Salgado": 25}},
    ... )
    >>> [s.name for s in net.topological_order()]
    ['Oros', 'Salgado', 'Castanhao']
    """

    def __init__(self, subcatchments: Sequence[SubCatchment]) -> None:
        self._subcatchments = list(subcatchments)
        self._by_name: dict[str, SubCatchment] = {}
        for sub in self._subcatchments:
            if sub.name in self._by_name:
                raise DependencyGraphError(f"Duplicate sub-catchment '{sub.name}'")
            self._by_name[sub.name] = sub

    @classmethod
    def from_mapping(
        cls,
        order: Sequence[str],
        dependencies: Mapping[str, Mapping[str, int]] | None = None,
    ) -> CatchmentNetwork:
        """Build a network from a declared order and a dependency mapping."""
        dependencies = dependencies or {}
        unknown = sorted(set(dependencies) - set(order))
        if unknown:
            raise DependencyGraphError(
                f"Dependencies declared for unknown sub-catchments: {', '.join(unknown)}"
            )
        return cls(
            [
                SubCatchment(name, rank=i, dependencies=dict(dependencies.get(name) or {}))
                for i, name in enumerate(order)
            ]
        )

    def __iter__(self) -> Iterator[SubCatchment]:
        return iter(self._subcatchments)

    def __len__(self) -> int:
        return len(self._subcatchments)

    def __getitem__(self, name: str) -> SubCatchment:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown sub-catchment: {name}") from None

    @property
    def names(self) -> list[str]:
        """Sub-catchment names in declared order."""
        return [s.name for s in self._subcatchments]

    def downstream_of(self, name: str) -> list[str]:
        """Names of sub-catchments that directly depend on ``name``."""
        return [s.name for s in self._subcatchments if name in s.dependencies]

    def topological_order(self) -> list[SubCatchment]:
        """Compute a processing order in which upstreams come first.

        Ties are broken by declared rank, so a valid declared order is
        returned unchanged.

        Raises
        ------
        DependencyGraphError
            If a dependency references an unknown sub-catchment or the
            graph contains a cycle.
        """
        for sub in self._subcatchments:
            for upstream in sub.dependencies:
                if upstream not in self._by_name:
                    raise DependencyGraphError(
                        f"Sub-catchment '{sub.name}' depends on unknown "
                        f"sub-catchment '{upstream}'"
                    )
                if upstream == sub.name:
                    raise DependencyGraphError(
                        f"Sub-catchment '{sub.name}' depends on itself"
                    )

        indegree = {s.name: len(s.dependencies) for s in self._subcatchments}
        ordered: list[SubCatchment] = []
        ready = [s for s in self._subcatchments if indegree[s.name] == 0]

        while ready:
            ready.sort(key=lambda s: s.rank)
            current = ready.pop(0)
            ordered.append(current)
            for name in self.downstream_of(current.name):
                indegree[name] -= 1
                if indegree[name] == 0:
                    ready.append(self._by_name[name])

        if len(ordered) != len(self._subcatchments):
            cyclic = sorted(name for name, deg in indegree.items() if deg > 0)
            raise DependencyGraphError(
                f"Dependency cycle between sub-catchments: {', '.join(cyclic)}"
            )
        return ordered

    def validate_order(self) -> None:
        """Check that the declared order is a valid topological order.

        Raises
        ------
        DependencyGraphError
            If the graph is invalid or a sub-catchment is declared before
            one of its upstream sub-catchments.
        """
        self.topological_order()
        for sub in self._subcatchments:
            late = [
                upstream
                for upstream in sub.dependencies
                if self._by_name[upstream].rank >= sub.rank
            ]
            if late:
                raise DependencyGraphError(
                    f"Sub-catchment '{sub.name}' is declared before its upstream "
                    f"sub-catchment(s): {', '.join(late)}"
                )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"CatchmentNetwork({self.names})"
