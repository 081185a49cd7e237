"""Type resolution against an assembled classpath.

A ResolutionContext plays the part of a class loader for exactly one run.
Resolving a type also resolves its whole supertype chain, the same way the
JVM links a class at load time, so a handle is only returned when every
supertype is available. Failures are split in two: ``NotFound`` when the
class file is nowhere on the classpath, ``Unusable`` when it was found but a
dependency is missing or broken.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from serviceloader.classfile import (
    CLASS_FILE_EXTENSION,
    OBJECT_CLASS,
    AccessFlags,
    parse_class_file,
)
from serviceloader.classpath import Classpath, Located
from serviceloader.errors import ClassFormatError

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_PREFIXES: tuple[str, ...] = (
    "java.",
    "javax.",
    "jdk.",
    "sun.",
    "com.sun.",
    "org.w3c.",
    "org.xml.",
    "org.ietf.",
)

_BINARY_NAME = re.compile(r"^[^./\\;\[\s]+(\.[^./\\;\[\s]+)*$")


@dataclass(frozen=True)
class TypeHandle:
    """A successfully resolved type."""

    name: str
    access_flags: int
    super_name: str | None = None
    interfaces: tuple[str, ...] = ()
    anonymous: bool = False
    location: str | None = None
    platform: bool = False

    @classmethod
    def platform_type(cls, name: str) -> TypeHandle:
        """Placeholder for a JDK type when no JDK class files are available."""
        return cls(
            name=name,
            access_flags=AccessFlags.PUBLIC,
            super_name=None if name == OBJECT_CLASS else OBJECT_CLASS,
            platform=True,
        )

    @property
    def supertype_names(self) -> tuple[str, ...]:
        if self.super_name is None:
            return self.interfaces
        return (self.super_name, *self.interfaces)

    @property
    def is_public(self) -> bool:
        return bool(self.access_flags & AccessFlags.PUBLIC)

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & AccessFlags.INTERFACE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & AccessFlags.ABSTRACT)

    @property
    def is_enum(self) -> bool:
        return bool(self.access_flags & AccessFlags.ENUM)

    @property
    def is_anonymous(self) -> bool:
        return self.anonymous


@dataclass(frozen=True)
class NotFound:
    """The name could not be located on the classpath at all."""

    name: str

    @property
    def reason(self) -> str:
        return "not found on classpath"


@dataclass(frozen=True)
class Unusable:
    """The name was located but could not be linked."""

    name: str
    reason: str
    cause: NotFound | Unusable | None = field(default=None, compare=False)


Resolution = TypeHandle | NotFound | Unusable


def is_binary_name(name: str) -> bool:
    return bool(_BINARY_NAME.match(name))


def resource_path(name: str) -> str:
    """``com.foo.Bar`` -> ``com/foo/Bar.class``"""
    return name.replace(".", "/") + CLASS_FILE_EXTENSION


class ResolutionContext:
    """Run-scoped view of the classpath used to resolve and compare types.

    ``platform`` holds the JDK class files and is searched before the
    classpath. Without it, names under ``platform_prefixes`` resolve to
    placeholders instead of NotFound.

    Results are cached: resolving the same name twice returns the same
    object. A context must not outlive the run it was created for.
    """

    def __init__(
        self,
        classpath: Classpath,
        platform_prefixes: Iterable[str] = DEFAULT_PLATFORM_PREFIXES,
        platform: Classpath | None = None,
    ) -> None:
        self.classpath = classpath
        self.platform = platform
        self.platform_prefixes = tuple(platform_prefixes)
        self._cache: dict[str, Resolution] = {}
        self._supertypes: dict[str, frozenset[str]] = {}
        self._in_progress: set[str] = set()

    def __enter__(self) -> ResolutionContext:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.classpath.close()
        if self.platform is not None:
            self.platform.close()
        self._cache.clear()
        self._supertypes.clear()

    def is_platform_type(self, name: str) -> bool:
        return name.startswith(self.platform_prefixes)

    def resolve(self, name: str) -> Resolution:
        """Resolve ``name`` to a TypeHandle, NotFound or Unusable."""
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        outcome = self._load(name)
        self._cache[name] = outcome
        return outcome

    def _find(self, resource: str) -> Located | None:
        # The JDK is consulted first, like a parent class loader.
        if self.platform is not None:
            located = self.platform.find(resource)
            if located is not None:
                return located
        return self.classpath.find(resource)

    def _load(self, name: str) -> Resolution:
        if not is_binary_name(name):
            return NotFound(name)

        located = self._find(resource_path(name))
        if located is None:
            if self.platform is None and self.is_platform_type(name):
                return TypeHandle.platform_type(name)
            return NotFound(name)

        try:
            classfile = parse_class_file(located.data)
        except ClassFormatError as exc:
            return Unusable(name, f"malformed class file in {located.root}: {exc}")

        if classfile.name != name:
            return Unusable(name, f"wrong name: {classfile.name}")
        if classfile.is_module:
            return Unusable(name, "module descriptor is not a class")
        if classfile.super_name is None and name != OBJECT_CLASS:
            return Unusable(name, "no super class")

        self._in_progress.add(name)
        try:
            for supertype in classfile.supertype_names:
                if supertype in self._in_progress:
                    return Unusable(name, f"class circularity through {supertype}")
                outcome = self.resolve(supertype)
                if not isinstance(outcome, TypeHandle):
                    return Unusable(
                        name,
                        f"supertype {supertype} is unavailable ({outcome.reason})",
                        cause=outcome,
                    )
        finally:
            self._in_progress.discard(name)

        return TypeHandle(
            name=name,
            access_flags=classfile.effective_access_flags,
            super_name=classfile.super_name,
            interfaces=classfile.interfaces,
            anonymous=classfile.is_anonymous,
            location=str(located.root),
        )

    def supertypes(self, handle: TypeHandle) -> frozenset[str]:
        """All transitive supertypes of ``handle``, not including itself."""
        cached = self._supertypes.get(handle.name)
        if cached is not None:
            return cached

        found: set[str] = set()
        pending = list(handle.supertype_names)
        while pending:
            current = pending.pop()
            if current in found:
                continue
            found.add(current)
            outcome = self.resolve(current)
            if isinstance(outcome, TypeHandle):
                pending.extend(outcome.supertype_names)
        if handle.name != OBJECT_CLASS:
            # Every reference type is assignable to java.lang.Object.
            found.add(OBJECT_CLASS)

        result = frozenset(found)
        self._supertypes[handle.name] = result
        return result
