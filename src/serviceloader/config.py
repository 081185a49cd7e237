"""Configuration management for serviceloader."""

import json
from pathlib import Path
from typing import Any, List, Optional

import yaml  # type: ignore
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from serviceloader.discovery import DiscoveryRequest
from serviceloader.resolver import DEFAULT_PLATFORM_PREFIXES


class GeneratorConfig(BaseSettings):
    """Configuration for a service file generation run.

    Loads from environment variables prefixed with ``SERVICELOADER_``
    (list fields as JSON, e.g. ``SERVICELOADER_SERVICES='["com.foo.Service"]'``).
    Values passed directly take precedence.
    """

    # Inputs
    classes_directory: Path = Field(
        default=Path("target/classes"), description="Compiled output directory to scan"
    )
    classpath: List[str] = Field(
        default_factory=list, description="Ordered classpath entries (directories or jars)"
    )
    services: List[str] = Field(
        default_factory=list, description="Service types to generate provider files for"
    )

    # Filtering
    includes: List[str] = Field(
        default_factory=list, description="Glob patterns implementations must match"
    )
    excludes: List[str] = Field(
        default_factory=list, description="Glob patterns removing implementations"
    )

    # Resolution
    fail_on_missing_service: bool = Field(
        default=True, description="Abort when a service type cannot be resolved"
    )
    platform_prefixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PLATFORM_PREFIXES),
        description="Package prefixes assumed to be provided by the JDK",
    )
    java_home: Optional[Path] = Field(
        default=None, description="JDK whose class files resolve platform types (defaults to JAVA_HOME)"
    )

    # Output
    output_directory: Optional[Path] = Field(
        default=None, description="Root for META-INF/services (defaults to classes_directory)"
    )
    sort_implementations: bool = Field(
        default=True, description="Sort implementations by name for reproducible output"
    )
    verbose: bool = Field(default=False, description="Enable debug logging")

    model_config = SettingsConfigDict(
        env_prefix="SERVICELOADER_",
        case_sensitive=False,
        extra="forbid",
    )

    @field_validator("classpath", "services", "includes", "excludes", "platform_prefixes")
    @classmethod
    def _reject_blank_entries(cls, values: List[str]) -> List[str]:
        stripped = [value.strip() for value in values]
        if any(not value for value in stripped):
            raise ValueError("entries must not be blank")
        return stripped

    @classmethod
    def from_file(cls, config_path: str, **overrides: Any) -> "GeneratorConfig":
        """Load configuration from a YAML or JSON file.

        Keyword overrides win over the file's values.
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in [".yaml", ".yml"]:
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        data.update(overrides)
        return cls(**data)

    def save(self, config_path: str) -> None:
        """Save configuration to file."""
        path = Path(config_path)
        data = self.model_dump(mode="json")

        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() in [".yaml", ".yml"]:
                yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

    @property
    def resolved_output_directory(self) -> Path:
        return self.output_directory or self.classes_directory

    def to_request(self) -> DiscoveryRequest:
        return DiscoveryRequest(
            classes_directory=self.classes_directory,
            services=list(self.services),
            classpath=list(self.classpath),
            includes=list(self.includes),
            excludes=list(self.excludes),
            fail_on_missing_service=self.fail_on_missing_service,
            platform_prefixes=tuple(self.platform_prefixes),
            sort_implementations=self.sort_implementations,
            java_home=self.java_home,
        )
