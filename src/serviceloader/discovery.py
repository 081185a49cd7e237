"""One discovery run: classpath -> scan -> match -> filter -> mapping."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from serviceloader.classpath import assemble_classpath
from serviceloader.errors import ConfigurationError, ServiceTypeResolutionError
from serviceloader.filters import apply_filters, compile_patterns
from serviceloader.jdk import platform_classpath
from serviceloader.mapping import ServiceImplementationSet, build_mapping
from serviceloader.matcher import match_candidates
from serviceloader.resolver import DEFAULT_PLATFORM_PREFIXES, ResolutionContext, TypeHandle
from serviceloader.scanner import list_compiled_units

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryRequest:
    """Inputs of a discovery run."""

    classes_directory: Path
    services: Sequence[str]
    classpath: Sequence[str] = field(default_factory=list)
    includes: Sequence[str] = field(default_factory=list)
    excludes: Sequence[str] = field(default_factory=list)
    fail_on_missing_service: bool = True
    platform_prefixes: Sequence[str] = DEFAULT_PLATFORM_PREFIXES
    sort_implementations: bool = True
    java_home: Path | None = None


def _classpath_entries(request: DiscoveryRequest) -> list[str]:
    entries = [str(entry) for entry in request.classpath]
    classes_directory = Path(request.classes_directory)
    if not any(Path(entry) == classes_directory for entry in entries):
        entries.insert(0, str(classes_directory))
    return entries


def resolve_services(
    context: ResolutionContext,
    services: Sequence[str],
    fail_on_missing_service: bool = True,
) -> tuple[list[TypeHandle], list[str]]:
    """Resolve the declared service types.

    Returns:
        The resolved handles and the names of dropped service types.

    Raises:
        ServiceTypeResolutionError: If a service type does not resolve and
            ``fail_on_missing_service`` is set.
    """
    resolved: list[TypeHandle] = []
    dropped: list[str] = []
    for name in services:
        outcome = context.resolve(name)
        if isinstance(outcome, TypeHandle):
            if outcome.platform:
                logger.warning(
                    "Service type %s could not be checked without a JDK; assuming it exists", name
                )
            resolved.append(outcome)
            continue
        if fail_on_missing_service:
            raise ServiceTypeResolutionError(name, outcome.reason)
        logger.warning("Could not load service type %s (%s); skipping it", name, outcome.reason)
        dropped.append(name)
    return resolved, dropped


def discover(request: DiscoveryRequest) -> ServiceImplementationSet:
    """Find the implementations of every requested service type.

    Raises:
        ConfigurationError: On an empty service list, an invalid classpath
            entry or an empty selector pattern.
        ServiceTypeResolutionError: See resolve_services.
    """
    services = list(dict.fromkeys(name.strip() for name in request.services))
    if not services or not all(services):
        raise ConfigurationError("At least one service type must be declared")
    includes = compile_patterns(request.includes)
    excludes = compile_patterns(request.excludes)
    classpath = assemble_classpath(_classpath_entries(request))
    platform = platform_classpath(request.java_home)

    with ResolutionContext(classpath, request.platform_prefixes, platform) as context:
        handles, dropped = resolve_services(context, services, request.fail_on_missing_service)

        logger.info("Scanning generated classes for implementations...")
        candidates = list_compiled_units(request.classes_directory)
        matched = match_candidates(context, handles, candidates)

    if matched.unresolved:
        logger.info(
            "Skipped %d compiled units that could not be resolved",
            len(matched.unresolved),
        )

    filtered = {
        service: apply_filters(names, includes, excludes)
        for service, names in matched.implementations.items()
    }
    return build_mapping(
        [handle.name for handle in handles],
        filtered,
        sort=request.sort_implementations,
        dropped_services=dropped,
        unresolved_units=matched.unresolved,
    )
