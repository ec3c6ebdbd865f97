"""Configuration classes for TrafficLens."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class Config:
    """Configuration for traffic summary assembly.

    Attributes:
        port_limit: Number of (port, protocol) pairs kept in the port ranking.
            Categories are built from this limited list only.
        talker_limit: Number of hosts kept in the talker ranking.
        domain_limit: Number of DNS domains kept in the domain ranking.
        destination_limit: Number of destinations kept in the destination ranking.
        category_port_limit: Number of ports shown per category.
        parallel: Whether to read the five dimensions concurrently.
        max_workers: Thread pool size used when ``parallel`` is set.
        database: Default database DSN or SQLite path for the CLI.
    """

    port_limit: int = 20
    talker_limit: int = 20
    domain_limit: int = 50
    destination_limit: int = 20
    category_port_limit: int = 5
    parallel: bool = False
    max_workers: int = 5
    database: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for name in (
            "port_limit",
            "talker_limit",
            "domain_limit",
            "destination_limit",
            "category_port_limit",
            "max_workers",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive")
        if not isinstance(self.parallel, bool):
            raise ValueError(f"parallel must be true or false, got {self.parallel!r}")
        if self.database is not None and not isinstance(self.database, str):
            raise ValueError(f"database must be a string, got {self.database!r}")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return {
            "port_limit": self.port_limit,
            "talker_limit": self.talker_limit,
            "domain_limit": self.domain_limit,
            "destination_limit": self.destination_limit,
            "category_port_limit": self.category_port_limit,
            "parallel": self.parallel,
            "max_workers": self.max_workers,
            "database": self.database,
        }

    def to_json(self, path: str | Path) -> None:
        """Save configuration to JSON file.

        Args:
            path: Path to output JSON file.
        """
        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to output YAML file.

        Raises:
            ImportError: If PyYAML is not installed.
        """
        try:
            import yaml
        except ImportError as e:
            raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml") from e

        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create configuration from dictionary.

        Args:
            data: Dictionary with configuration values.

        Returns:
            Config instance.

        Raises:
            ValueError: If ``data`` is not a mapping or holds invalid values.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")
        return cls(
            port_limit=data.get("port_limit", 20),
            talker_limit=data.get("talker_limit", 20),
            domain_limit=data.get("domain_limit", 50),
            destination_limit=data.get("destination_limit", 20),
            category_port_limit=data.get("category_port_limit", 5),
            parallel=data.get("parallel", False),
            max_workers=data.get("max_workers", 5),
            database=data.get("database"),
        )

    @classmethod
    def from_json(cls, path: str | Path) -> Config:
        """Load configuration from JSON file.

        Args:
            path: Path to JSON configuration file.

        Returns:
            Config instance.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Config instance.

        Raises:
            ImportError: If PyYAML is not installed.
        """
        try:
            import yaml
        except ImportError as e:
            raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml") from e

        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from file (auto-detect format).

        Supports JSON (.json) and YAML (.yaml, .yml) files.

        Args:
            path: Path to configuration file.

        Returns:
            Config instance.

        Raises:
            ValueError: If file extension is not recognized.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".json":
            return cls.from_json(path)
        elif suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        else:
            raise ValueError(f"Unsupported config file format: {suffix}. Use .json or .yaml/.yml")
