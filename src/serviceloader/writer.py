"""Persistence of META-INF/services provider-configuration files."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from serviceloader.errors import ServiceFileWriteError

logger = logging.getLogger(__name__)

SERVICES_DIRECTORY = Path("META-INF", "services")


def render_service_file(implementations: Sequence[str]) -> str:
    return "".join(f"{name}\n" for name in implementations)


class ServiceFileWriter:
    """Writes one provider-configuration file per service type.

    ``on_changed`` is called with the path of every file actually written,
    so an incremental build can pick it up. Files whose content did not
    change are left alone.
    """

    def __init__(
        self,
        output_root: Path | str,
        on_changed: Callable[[Path], None] | None = None,
    ) -> None:
        self.output_root = Path(output_root)
        self.on_changed = on_changed

    @property
    def services_directory(self) -> Path:
        return self.output_root / SERVICES_DIRECTORY

    def write(self, implementations: Mapping[str, Sequence[str]]) -> list[Path]:
        """Write every service file and return the paths written."""
        parent = self.services_directory
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ServiceFileWriteError(parent, str(exc)) from exc

        written: list[Path] = []
        for service, names in implementations.items():
            service_file = parent / service
            logger.info("Generating service file %s", service_file.absolute())
            for name in names:
                logger.info("  + %s", name)
            if self._write_if_changed(service_file, render_service_file(names)):
                written.append(service_file)
                if self.on_changed is not None:
                    self.on_changed(service_file)
        return written

    def _write_if_changed(self, path: Path, content: str) -> bool:
        encoded = content.encode("utf-8")
        try:
            if path.is_file() and path.read_bytes() == encoded:
                logger.debug("Service file %s is up to date", path)
                return False
            path.write_bytes(encoded)
        except OSError as exc:
            raise ServiceFileWriteError(path, str(exc)) from exc
        return True
