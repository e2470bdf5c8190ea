"""
Shared YAML loading for statforge catalogs.

Handles reading catalog files, validating entries with Pydantic templates, and
indexing them by ID.
"""

from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

import structlog
import yaml
from pydantic import BaseModel, ValidationError

logger = structlog.get_logger(__name__)


class CatalogLoadError(Exception):
    """Raised when there's an error loading catalog data."""

    pass


class CatalogValidationError(Exception):
    """Raised when catalog entry validation fails."""

    pass


def load_yaml_file(file_path: Path, root_key: str) -> list[dict[str, Any]]:
    """
    Load a YAML file containing a list of catalog entries.

    Args:
        file_path: Path to the YAML file
        root_key: Top-level key holding the entry list (e.g. "items")

    Returns:
        List of entry dictionaries

    Raises:
        CatalogLoadError: If the file cannot be loaded or parsed
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"YAML parsing error in {file_path}: {e}") from e
    except FileNotFoundError as e:
        raise CatalogLoadError(f"File not found: {file_path}") from e
    except OSError as e:
        raise CatalogLoadError(f"Error loading {file_path}: {e}") from e

    if not data:
        raise CatalogLoadError(f"Empty YAML file: {file_path}")

    if not isinstance(data, dict) or root_key not in data:
        raise CatalogLoadError(f"Missing '{root_key}' key in {file_path}")

    entries = data[root_key]
    if not isinstance(entries, list):
        raise CatalogLoadError(f"'{root_key}' must be a list in {file_path}")

    return entries


T = TypeVar("T", bound=BaseModel)


class Catalog(Generic[T]):
    """
    Read-only lookup of Pydantic templates keyed by ID.

    Subclasses set ``root_key`` (the YAML list key) and ``template`` (the model
    class used to validate each entry).
    """

    root_key: ClassVar[str] = ""
    template: ClassVar[type[BaseModel]]

    def __init__(self, entries: dict[str, T] | None = None) -> None:
        self._entries: dict[str, T] = dict(entries or {})

    @classmethod
    def from_dicts(cls, raw_entries: list[dict[str, Any]], source: str = "<memory>"):
        """
        Build a catalog from raw dictionaries.

        Args:
            raw_entries: Entry dictionaries, each with at least an ``id``
            source: Where the entries came from (for error messages)

        Raises:
            CatalogValidationError: If an entry is invalid or an ID is duplicated
        """
        entries: dict[str, Any] = {}
        for raw in raw_entries:
            if not isinstance(raw, dict) or "id" not in raw:
                raise CatalogValidationError(f"Entry in {source} missing required field: id")
            try:
                entry = cls.template(**raw)
            except ValidationError as e:
                raise CatalogValidationError(
                    f"Invalid {cls.root_key} entry '{raw.get('id', 'unknown')}' in {source}: {e}"
                ) from e

            entry_id = getattr(entry, "id")
            if entry_id in entries:
                raise CatalogValidationError(f"Duplicate ID '{entry_id}' found in {source}")
            entries[entry_id] = entry

        return cls(entries)

    @classmethod
    def load(cls, file_path: Path):
        """
        Load a catalog from a YAML file.

        Raises:
            CatalogLoadError: If the file cannot be read
            CatalogValidationError: If an entry fails validation
        """
        raw_entries = load_yaml_file(file_path, cls.root_key)
        catalog = cls.from_dicts(raw_entries, source=str(file_path))
        logger.info("catalog_loaded", kind=cls.root_key, path=str(file_path), total=len(catalog))
        return catalog

    def get(self, entry_id: str | None) -> T | None:
        """Get an entry by ID, or None if it is not in the catalog."""
        if entry_id is None:
            return None
        return self._entries.get(entry_id)

    def add(self, entry: T) -> None:
        """Add or replace an entry."""
        self._entries[getattr(entry, "id")] = entry

    def all(self) -> list[T]:
        """Get every entry."""
        return list(self._entries.values())

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
