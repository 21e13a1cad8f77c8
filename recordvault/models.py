"""
Data model for the records vault: categories, records and the AppData payload.
"""

import datetime
import time
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Any, Iterable

from . import config


OPTIONAL_RECORD_FIELDS = (
    "contact_information",
    "institute_name",
    "account_name",
    "account_owner",
    "id_number",
    "credentials",
    "location",
    "nominee",
    "notes",
)

# Fields joined, in order, to form a record's display label
NAME_SOURCE_FIELDS = ("institute_name", "account_name", "account_owner")
NAME_SEPARATOR = " - "


def now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _next_id(existing: Iterable[int]) -> int:
    """Millisecond timestamp id, bumped past any id already in use."""
    candidate = int(time.time() * 1000)
    highest = max(existing, default=None)
    if highest is not None and candidate <= highest:
        candidate = highest + 1
    return candidate


def _absent_if_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not value.strip():
        return None
    return value


@dataclass
class Category:
    """A named group of records."""
    category_id: int
    name: str
    created_at: str
    is_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


@dataclass
class RecordItem:
    """
    A single stored record.

    The optional attributes are None when not recorded; blank strings are
    normalized to None on construction.
    """
    record_id: int
    category_id: int
    name: str
    created_at: str
    contact_information: Optional[str] = None
    institute_name: Optional[str] = None
    account_name: Optional[str] = None
    account_owner: Optional[str] = None
    id_number: Optional[str] = None
    credentials: Optional[str] = None
    location: Optional[str] = None
    nominee: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        for name in OPTIONAL_RECORD_FIELDS:
            setattr(self, name, _absent_if_blank(getattr(self, name)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    def recorded_fields(self) -> Dict[str, str]:
        """The optional attributes that hold a value."""
        return {name: getattr(self, name) for name in OPTIONAL_RECORD_FIELDS
                if getattr(self, name) is not None}

    def display_name(self) -> str:
        """Label built from institute, account name and owner, skipping absent ones."""
        parts = [getattr(self, name) for name in NAME_SOURCE_FIELDS]
        return NAME_SEPARATOR.join(p for p in parts if p is not None)

    def refresh_name(self) -> None:
        """Re-derive name from the label fields; keep it when they are all absent."""
        label = self.display_name()
        if label:
            self.name = label


@dataclass
class AppData:
    """The plaintext payload encrypted into a vault."""
    categories: List[Category] = field(default_factory=list)
    records: List[RecordItem] = field(default_factory=list)

    @classmethod
    def default(cls) -> 'AppData':
        """Seed data for a newly registered user."""
        created_at = now_iso()
        base_id = int(time.time() * 1000)
        categories = [
            Category(category_id=base_id + index, name=name, created_at=created_at)
            for index, name in enumerate(config.DEFAULT_CATEGORY_NAMES)
        ]
        return cls(categories=categories, records=[])

    def get_category(self, category_id: int) -> Category:
        for category in self.categories:
            if category.category_id == category_id:
                return category
        raise KeyError(category_id)

    def add_category(self, name: str) -> Category:
        name = name.strip()
        if not name:
            raise ValueError("Category name must not be empty")
        category = Category(
            category_id=_next_id(c.category_id for c in self.categories),
            name=name,
            created_at=now_iso(),
        )
        self.categories.append(category)
        return category

    def rename_category(self, category_id: int, name: str) -> Category:
        name = name.strip()
        if not name:
            raise ValueError("Category name must not be empty")
        category = self.get_category(category_id)
        category.name = name
        return category

    def toggle_category(self, category_id: int) -> Category:
        category = self.get_category(category_id)
        category.is_enabled = not category.is_enabled
        return category

    def delete_category(self, category_id: int) -> None:
        """Remove a category together with every record filed under it."""
        self.get_category(category_id)
        self.categories = [c for c in self.categories if c.category_id != category_id]
        self.records = [r for r in self.records if r.category_id != category_id]

    def new_record(self, category_id: int, name: Optional[str] = None,
                   **attributes: Optional[str]) -> RecordItem:
        """
        Create and store a record with a fresh id.

        Without an explicit name the record is labelled by display_name().
        """
        record = RecordItem(
            record_id=_next_id(r.record_id for r in self.records),
            category_id=category_id,
            name=name or "",
            created_at=now_iso(),
            **attributes
        )
        if name is None:
            record.name = record.display_name()
        self.records.append(record)
        return record

    def save_record(self, record: RecordItem) -> None:
        """Insert a record, or replace the stored one with the same id."""
        record.refresh_name()
        for i, existing in enumerate(self.records):
            if existing.record_id == record.record_id:
                self.records[i] = record
                return
        self.records.append(record)

    def delete_record(self, record_id: int) -> None:
        original_count = len(self.records)
        self.records = [r for r in self.records if r.record_id != record_id]
        if len(self.records) == original_count:
            raise KeyError(record_id)

    def sorted_categories(self) -> List[Category]:
        """Enabled categories first, then alphabetically."""
        return sorted(self.categories, key=lambda c: (not c.is_enabled, c.name.lower()))

    def records_in(self, category_id: int) -> List[RecordItem]:
        return sorted((r for r in self.records if r.category_id == category_id),
                      key=lambda r: r.name.lower())
