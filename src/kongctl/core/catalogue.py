"""
Catalogue of gateway plugins with dedicated kongctl commands.

Entries live in ``kongctl/data/plugins.yaml`` so descriptions can be edited
without touching code. The catalogue backs ``kongctl plugin available``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Iterator, List, MutableMapping, Optional, Sequence

import yaml

_PACKAGED_CATALOGUE = "plugins.yaml"


class CatalogueLoadError(RuntimeError):
    """Raised when a catalogue YAML document cannot be parsed or validated."""


@dataclass(slots=True)
class PluginDescriptor:
    """
    Metadata for one gateway plugin.

    Parameters
    ----------
    name:
        Plugin name as the gateway knows it (e.g. ``basic-auth``).
    description:
        One-line summary printed by ``plugin available``.
    category:
        Loose grouping such as ``authentication`` or ``logging``.
    scopes:
        Entities the plugin may be attached to (``global``, ``service``,
        ``route``, ``consumer``).
    docs:
        Reference URL for the plugin's configuration.
    """

    name: str
    description: str
    category: str = "misc"
    scopes: Sequence[str] = field(default_factory=lambda: ("global", "service", "route"))
    docs: Optional[str] = None

    def validate(self) -> None:
        if not self.name or any(char.isspace() for char in self.name):
            raise CatalogueLoadError(f"Plugin name '{self.name}' must be a non-empty token without whitespace.")


class PluginCatalogue:
    """In-memory catalogue of :class:`PluginDescriptor` entries keyed by name."""

    def __init__(self) -> None:
        self._entries: MutableMapping[str, PluginDescriptor] = {}

    def register(self, descriptor: PluginDescriptor) -> None:
        descriptor.validate()
        self._entries[descriptor.name] = descriptor

    def get(self, name: str) -> Optional[PluginDescriptor]:
        return self._entries.get(name)

    def __iter__(self) -> Iterator[PluginDescriptor]:
        return iter(sorted(self._entries.values(), key=lambda item: item.name))

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> List[str]:
        return sorted(self._entries)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "PluginCatalogue":
        """Load descriptors from a YAML list of mappings."""

        location = Path(path)
        if not location.exists():
            raise CatalogueLoadError(f"Catalogue file '{location}' does not exist.")
        try:
            with location.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise CatalogueLoadError(f"Failed to parse '{location}': {exc}") from exc

        if not isinstance(payload, list):
            raise CatalogueLoadError(f"Catalogue file '{location}' must contain a list of plugins.")

        catalogue = cls()
        for entry in payload:
            catalogue.register(_descriptor_from_payload(entry, origin=location))
        return catalogue

    @classmethod
    def load_default(cls) -> "PluginCatalogue":
        with resources.as_file(resources.files("kongctl.data") / _PACKAGED_CATALOGUE) as resolved:
            return cls.from_yaml(resolved)


def _descriptor_from_payload(entry: object, *, origin: Path) -> PluginDescriptor:
    if not isinstance(entry, dict):
        raise CatalogueLoadError(f"Invalid entry in '{origin}': expected mapping, got {type(entry)!r}")
    try:
        return PluginDescriptor(
            name=str(entry["name"]),
            description=str(entry.get("description", "")).strip(),
            category=str(entry.get("category", "misc")),
            scopes=tuple(_ensure_list(entry.get("scopes")) or ("global", "service", "route")),
            docs=_optional_str(entry.get("docs")),
        )
    except KeyError as exc:
        raise CatalogueLoadError(f"Missing required key {exc!s} in '{origin}'.") from exc


def _ensure_list(value: object | None) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


def _optional_str(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
