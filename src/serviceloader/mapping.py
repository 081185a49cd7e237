"""The service type -> implementations mapping produced by a discovery run."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, eq=False)
class ServiceImplementationSet(Mapping[str, tuple[str, ...]]):
    """Read-only mapping of service type name to implementation names.

    Keys are exactly the service types that resolved. A service type that
    resolved but has no implementations maps to an empty tuple; one dropped
    because it could not be resolved is absent and listed in
    ``dropped_services`` instead.
    """

    implementations: dict[str, tuple[str, ...]] = field(default_factory=dict)
    dropped_services: tuple[str, ...] = ()
    unresolved_units: tuple[str, ...] = ()

    def __getitem__(self, service: str) -> tuple[str, ...]:
        return self.implementations[service]

    def __iter__(self) -> Iterator[str]:
        return iter(self.implementations)

    def __len__(self) -> int:
        return len(self.implementations)

    @property
    def implementation_count(self) -> int:
        return sum(len(names) for names in self.implementations.values())

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize to a plain dictionary."""
        return {service: list(names) for service, names in self.implementations.items()}


def build_mapping(
    services: Sequence[str],
    filtered: Mapping[str, Sequence[str]],
    *,
    sort: bool = True,
    dropped_services: Iterable[str] = (),
    unresolved_units: Iterable[str] = (),
) -> ServiceImplementationSet:
    """Combine per-service results into the final mapping.

    Args:
        services: Resolved service type names, in the order they were requested.
        filtered: Filtered implementation names per service type.
        sort: Order implementations by binary name. Otherwise keep discovery order.
        dropped_services: Service types removed by the missing-service policy.
        unresolved_units: Candidates that could not be resolved.
    """
    implementations: dict[str, tuple[str, ...]] = {}
    for service in services:
        names = [name for name in filtered.get(service, ()) if name != service]
        implementations[service] = tuple(sorted(names) if sort else names)
    return ServiceImplementationSet(
        implementations=implementations,
        dropped_services=tuple(dropped_services),
        unresolved_units=tuple(unresolved_units),
    )
