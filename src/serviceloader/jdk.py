"""Locating the class files of the JDK the scanned code was compiled against.

JDK 9 and later ship every module as ``jmods/<module>.jmod``, a zip archive
behind a 4-byte header with its classes under ``classes/``. JDK 8 keeps them
in ``rt.jar``. Runtime images without either (jlink images, most JREs) hold
their classes in a ``lib/modules`` image this package cannot read.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from serviceloader.classpath import ArchiveRoot, Classpath

logger = logging.getLogger(__name__)

JMOD_CLASSES_PREFIX = "classes/"
BASE_MODULE = "java.base.jmod"


def find_java_home(explicit: str | os.PathLike | None = None) -> Path | None:
    """Return the JDK installation to use, or None when none can be found.

    An explicit location wins, then ``JAVA_HOME``, then the ``java``
    executable on ``PATH``.
    """
    if explicit is not None:
        return Path(explicit)

    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        return Path(java_home)

    java = shutil.which("java")
    if java is None:
        return None
    # <home>/bin/java
    return Path(java).resolve().parent.parent


def platform_roots(java_home: Path) -> tuple[ArchiveRoot, ...]:
    """Archive roots holding the JDK's own class files, java.base first."""
    jmods = java_home / "jmods"
    if jmods.is_dir():
        modules = sorted(jmods.glob("*.jmod"), key=lambda path: (path.name != BASE_MODULE, path.name))
        return tuple(ArchiveRoot(path, prefix=JMOD_CLASSES_PREFIX) for path in modules)

    for candidate in (java_home / "jre" / "lib" / "rt.jar", java_home / "lib" / "rt.jar"):
        if candidate.is_file():
            return (ArchiveRoot(candidate),)
    return ()


def platform_classpath(java_home: str | os.PathLike | None = None) -> Classpath | None:
    """The JDK class files as a Classpath, or None when no JDK is available."""
    home = find_java_home(java_home)
    if home is None:
        logger.info("No JDK found; platform types will not be verified")
        return None

    roots = platform_roots(home)
    if not roots:
        logger.info("No JDK class files under %s; platform types will not be verified", home)
        return None

    logger.debug("Using %d JDK archives from %s", len(roots), home)
    return Classpath(roots)
