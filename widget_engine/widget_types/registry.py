"""Widget type registry — loads and serves widget type definitions from YAML.

- Single YAML file in definitions/ (overridable via WIDGET_TYPES_FILE)
- Lazy loading with _loaded guard
- In-memory dict keyed by type tag, aliases included
- Global singleton via get_widget_type_registry()
- Classification queries used by the interpreter and the guards
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .schemas import WidgetTypeDefinition, WidgetTypeSummary

logger = logging.getLogger(__name__)

DEFAULT_DEFINITIONS_FILE = Path(__file__).parent / "definitions" / "widget_types.yaml"
WIDGET_TYPES_FILE = os.environ.get("WIDGET_TYPES_FILE", "")


class WidgetTypeRegistry:
    """Registry of widget type definitions loaded from a YAML file."""

    def __init__(self, definitions_file: Optional[Path] = None):
        if definitions_file is None:
            definitions_file = (
                Path(WIDGET_TYPES_FILE) if WIDGET_TYPES_FILE else DEFAULT_DEFINITIONS_FILE
            )
        self.definitions_file = definitions_file
        self._definitions: dict[str, WidgetTypeDefinition] = {}
        self._by_tag: dict[str, WidgetTypeDefinition] = {}
        self._loaded = False

    def load(self) -> None:
        """Load all widget type definitions from the YAML file."""
        if self._loaded:
            return

        if not self.definitions_file.exists():
            logger.warning(
                f"Widget type definitions not found: {self.definitions_file}"
            )
            self._loaded = True
            return

        with open(self.definitions_file, "r") as f:
            data = yaml.safe_load(f) or {}

        for entry in data.get("widget_types", []):
            try:
                definition = WidgetTypeDefinition.model_validate(entry)
            except Exception as e:
                logger.error(f"Failed to load widget type {entry!r}: {e}")
                continue

            self._definitions[definition.type_key] = definition
            self._by_tag[definition.type_key] = definition
            for alias in definition.aliases:
                if alias in self._by_tag:
                    logger.warning(
                        f"Alias '{alias}' of {definition.type_key} shadows an existing tag"
                    )
                self._by_tag[alias] = definition
            logger.debug(f"Loaded widget type: {definition.type_key}")

        self._loaded = True
        logger.info(
            f"Loaded {len(self._definitions)} widget types "
            f"({len(self._by_tag)} tags including aliases)"
        )

    def get(self, type_tag: Optional[str]) -> Optional[WidgetTypeDefinition]:
        """Get a widget type definition by tag or alias."""
        self.load()
        if not type_tag:
            return None
        return self._by_tag.get(type_tag)

    def list_all(self) -> list[WidgetTypeDefinition]:
        """List all widget type definitions."""
        self.load()
        return list(self._definitions.values())

    def list_summaries(self) -> list[WidgetTypeSummary]:
        """List widget type summaries."""
        self.load()
        return [
            WidgetTypeSummary(
                type_key=d.type_key,
                type_name=d.type_name,
                category=d.category,
                buffered=d.buffered,
                requires_telemetry=d.requires_telemetry,
                requires_data=d.requires_data,
                aliases=d.aliases,
                status=d.status,
            )
            for d in sorted(self._definitions.values(), key=lambda d: d.type_key)
        ]

    def list_keys(self) -> list[str]:
        """List every dispatchable tag, aliases included."""
        self.load()
        return list(self._by_tag.keys())

    def count(self) -> int:
        """Get total number of widget type definitions."""
        self.load()
        return len(self._definitions)

    def for_category(self, category: str) -> list[WidgetTypeDefinition]:
        """Get active widget types in a category."""
        self.load()
        return [
            d
            for d in self._definitions.values()
            if d.category == category and d.status == "active"
        ]

    # ── Classification queries ──────────────────────────────

    def is_buffered(self, type_tag: Optional[str]) -> bool:
        """True for chart-like widgets that keep a rolling sample window."""
        definition = self.get(type_tag)
        return definition.buffered if definition else False

    def is_telemetry_exempt(self, type_tag: Optional[str]) -> bool:
        """True for widgets that render with no telemetry key selected."""
        definition = self.get(type_tag)
        return not definition.requires_telemetry if definition else False

    def is_data_exempt(self, type_tag: Optional[str]) -> bool:
        """True for widgets that render before any data arrives."""
        definition = self.get(type_tag)
        return not definition.requires_data if definition else False

    def reload(self) -> None:
        """Force reload all definitions."""
        self._loaded = False
        self._definitions.clear()
        self._by_tag.clear()
        self.load()


# Global registry instance
_registry: Optional[WidgetTypeRegistry] = None


def get_widget_type_registry() -> WidgetTypeRegistry:
    """Get the global widget type registry instance."""
    global _registry
    if _registry is None:
        _registry = WidgetTypeRegistry()
        _registry.load()
    return _registry
