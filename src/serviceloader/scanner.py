"""Compiled-unit scanning of a class output directory."""

import logging
import os
from pathlib import Path

from serviceloader.classfile import CLASS_FILE_EXTENSION

logger = logging.getLogger(__name__)


def binary_name(relative_path: Path) -> str:
    """Derive a binary name from a class file path relative to its root.

    ``com/foo/Outer$Inner.class`` -> ``com.foo.Outer$Inner``
    """
    parts = list(relative_path.parts)
    parts[-1] = parts[-1][: -len(CLASS_FILE_EXTENSION)]
    return ".".join(parts)


def list_compiled_units(directory: Path | str) -> list[str]:
    """Walk a directory and find all compiled classes.

    Args:
        directory: The folder to scan for .class files.

    Returns:
        Binary names in filesystem walk order. A missing directory yields an
        empty list.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.info("Class folder %s does not exist; skipping scan", root)
        return []

    names: list[str] = []
    for current, _dirs, files in os.walk(root):
        for file in files:
            if not file.endswith(CLASS_FILE_EXTENSION) or file == CLASS_FILE_EXTENSION:
                continue
            name = binary_name(Path(current, file).relative_to(root))
            logger.debug("Found class: %s", name)
            names.append(name)
    return names
