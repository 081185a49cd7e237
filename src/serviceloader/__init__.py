"""serviceloader - generate java.util.ServiceLoader provider files from compiled classes.

Scans a class output directory, resolves every compiled unit against an
isolated classpath and lists, per declared service type, the public concrete
classes that implement or extend it.
"""

from .classpath import ArchiveRoot, Classpath, DirectoryRoot, assemble_classpath
from .discovery import DiscoveryRequest, discover
from .errors import (
    ClassFormatError,
    ConfigurationError,
    ServiceFileWriteError,
    ServiceLoaderError,
    ServiceTypeResolutionError,
)
from .filters import SelectorPattern, apply_filters
from .jdk import find_java_home, platform_classpath
from .mapping import ServiceImplementationSet, build_mapping
from .matcher import is_assignable, is_eligible, match_candidates
from .resolver import NotFound, ResolutionContext, TypeHandle, Unusable
from .scanner import list_compiled_units
from .version import __version__
from .writer import ServiceFileWriter


__all__ = [
    # Discovery
    "DiscoveryRequest",
    "discover",
    "ServiceImplementationSet",
    "build_mapping",
    # Components
    "ArchiveRoot",
    "Classpath",
    "DirectoryRoot",
    "assemble_classpath",
    "find_java_home",
    "platform_classpath",
    "list_compiled_units",
    "ResolutionContext",
    "TypeHandle",
    "NotFound",
    "Unusable",
    "is_assignable",
    "is_eligible",
    "match_candidates",
    "SelectorPattern",
    "apply_filters",
    # Output
    "ServiceFileWriter",
    # Errors
    "ServiceLoaderError",
    "ConfigurationError",
    "ServiceTypeResolutionError",
    "ClassFormatError",
    "ServiceFileWriteError",
]
