"""Assignability matching of scanned candidates against service types."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from serviceloader.resolver import ResolutionContext, TypeHandle

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Unfiltered implementations per service type, in discovery order."""

    implementations: dict[str, list[str]] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)


def is_eligible(handle: TypeHandle) -> bool:
    """Whether a type can be listed as a service provider at all.

    Providers must be public, concrete, named classes that are not enums.
    """
    return (
        handle.is_public
        and not handle.is_interface
        and not handle.is_abstract
        and not handle.is_enum
        and not handle.is_anonymous
        and not handle.platform
    )


def is_assignable(context: ResolutionContext, service: TypeHandle, candidate: TypeHandle) -> bool:
    """Whether ``candidate`` is a strict subtype of ``service``."""
    if candidate.name == service.name:
        return False
    return service.name in context.supertypes(candidate)


def match_candidates(
    context: ResolutionContext,
    services: Sequence[TypeHandle],
    candidate_names: Iterable[str],
) -> MatchResult:
    """Test every candidate against every service type.

    Candidates that cannot be resolved are skipped and reported in
    ``MatchResult.unresolved``; they never abort the run.
    """
    result = MatchResult(implementations={service.name: [] for service in services})
    for name in candidate_names:
        logger.debug("checking class: %s", name)
        candidate = context.resolve(name)
        if not isinstance(candidate, TypeHandle):
            logger.debug("Skipping %s: %s", name, candidate.reason)
            result.unresolved.append(name)
            continue
        if not is_eligible(candidate):
            continue
        for service in services:
            if is_assignable(context, service, candidate):
                result.implementations[service.name].append(name)
    return result
