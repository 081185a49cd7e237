"""Classpath assembly: ordered directory and archive roots."""

from __future__ import annotations

import logging
import os
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from serviceloader.errors import ConfigurationError

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = frozenset({".jar", ".zip"})


class ClasspathRoot(ABC):
    """A location types can be loaded from."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @abstractmethod
    def read(self, resource: str) -> bytes | None:
        """Return the bytes of ``resource`` (a ``/``-separated path) or None."""

    def close(self) -> None:
        """Release any open handle."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def __str__(self) -> str:
        return str(self.path)


class DirectoryRoot(ClasspathRoot):
    """Resources resolved relative to a directory."""

    def read(self, resource: str) -> bytes | None:
        candidate = self.path.joinpath(*resource.split("/"))
        if not candidate.is_file():
            return None
        try:
            return candidate.read_bytes()
        except OSError as exc:
            logger.warning("Could not read %s: %s", candidate, exc)
            return None


class ArchiveRoot(ClasspathRoot):
    """Resources resolved inside a jar or zip archive.

    ``prefix`` is the directory holding the resources, e.g. ``classes/`` in
    a JDK ``.jmod``. The archive is opened on first lookup and stays open
    until close().
    """

    def __init__(self, path: Path, prefix: str = "") -> None:
        super().__init__(path)
        self.prefix = prefix
        self._archive: zipfile.ZipFile | None = None
        self._unavailable = False

    def _open(self) -> zipfile.ZipFile | None:
        if self._archive is None and not self._unavailable:
            try:
                self._archive = zipfile.ZipFile(self.path)
            except FileNotFoundError:
                logger.debug("Classpath archive %s does not exist", self.path)
                self._unavailable = True
            except (zipfile.BadZipFile, OSError) as exc:
                logger.warning("Ignoring unreadable classpath archive %s: %s", self.path, exc)
                self._unavailable = True
        return self._archive

    def read(self, resource: str) -> bytes | None:
        archive = self._open()
        if archive is None:
            return None
        try:
            return archive.read(self.prefix + resource)
        except KeyError:
            return None
        except (zipfile.BadZipFile, OSError) as exc:
            logger.warning("Could not read %s from %s: %s", resource, self.path, exc)
            return None

    def close(self) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None


@dataclass(frozen=True)
class Located:
    root: ClasspathRoot
    data: bytes


@dataclass(frozen=True)
class Classpath:
    """Ordered, immutable sequence of roots. The first root holding a name wins."""

    roots: tuple[ClasspathRoot, ...] = ()

    def find(self, resource: str) -> Located | None:
        for root in self.roots:
            data = root.read(resource)
            if data is not None:
                return Located(root, data)
        return None

    def close(self) -> None:
        for root in self.roots:
            root.close()

    def __iter__(self):
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)


def _to_path(entry: object) -> Path:
    if not isinstance(entry, (str, os.PathLike)):
        raise ConfigurationError(f"Could not set up classpath: unsupported entry {entry!r}")
    text = os.fspath(entry)
    if isinstance(text, bytes):
        raise ConfigurationError(f"Could not set up classpath: unsupported entry {entry!r}")
    if not text.strip():
        raise ConfigurationError("Could not set up classpath: empty entry")
    if "\x00" in text:
        raise ConfigurationError(f"Could not set up classpath: malformed entry {text!r}")
    return Path(text)


def make_root(entry: str | os.PathLike) -> ClasspathRoot:
    """Build the root for one classpath entry."""
    path = _to_path(entry)
    if path.suffix.lower() in ARCHIVE_EXTENSIONS:
        return ArchiveRoot(path)
    return DirectoryRoot(path)


def assemble_classpath(entries: Iterable[str | os.PathLike]) -> Classpath:
    """Turn ordered classpath entries into a Classpath.

    Raises:
        ConfigurationError: If an entry cannot be turned into a root.
    """
    roots = tuple(make_root(entry) for entry in entries)
    logger.debug("Assembled classpath with %d roots", len(roots))
    return Classpath(roots)
