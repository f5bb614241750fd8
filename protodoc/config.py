"""Configuration loading for protodoc (.protodoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ProtodocError
from .links import DEFAULT_PAGE_ROOT

CONFIG_FILENAME = ".protodoc.yml"


class ConfigError(ProtodocError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ProtodocConfig:
    """Represents the settings defined in .protodoc.yml."""

    root: Path
    proto_descriptor: Optional[Path] = None
    source_url: Optional[str] = None
    page_root: str = DEFAULT_PAGE_ROOT
    fail_on_unresolved: bool = False
    documents: List[str] = field(default_factory=list)
    default_scope: Optional[str] = None

    def descriptor_path(self) -> Path:
        if self.proto_descriptor is None:
            raise ConfigError(
                f"expected `proto_descriptor` key in {CONFIG_FILENAME} under {self.root}"
            )
        return self.proto_descriptor

    def document_paths(self) -> List[Path]:
        found: List[Path] = []
        for pattern in self.documents:
            for path in sorted(self.root.glob(pattern)):
                if path.is_file() and path not in found:
                    found.append(path)
        return found


def load_config(config_path: Path) -> ProtodocConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ProtodocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    descriptor = _as_str(data.get("proto_descriptor"))
    if data.get("proto_descriptor") is not None and descriptor is None:
        raise ConfigError("`proto_descriptor` should be a string")

    return ProtodocConfig(
        root=root,
        proto_descriptor=(root / descriptor).resolve() if descriptor else None,
        source_url=_as_str(data.get("source_url")),
        page_root=_as_str(data.get("page_root")) or DEFAULT_PAGE_ROOT,
        fail_on_unresolved=_as_bool(data.get("fail_on_unresolved")) or False,
        documents=_as_str_list(data.get("documents")),
        default_scope=_as_str(data.get("default_scope")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "ProtodocConfig", "load_config"]
