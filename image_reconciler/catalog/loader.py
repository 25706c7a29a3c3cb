"""Catalog JSON file loading and serialization"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from image_reconciler.models.catalog import Catalog, CatalogEntry
from image_reconciler.models.configs import CatalogFieldsConfig

WRAPPER_KEYS = ("products", "items")


def load_catalog(
    file_path: Path | str, fields: Optional[CatalogFieldsConfig] = None
) -> Catalog:
    """
    Load catalog entries from a JSON file.

    The file holds either an array of product objects or an object with the
    array under ``products`` (or ``items``). Records without a name or with a
    repeated id are loaded anyway and listed in ``Catalog.issues``; the
    reconciler reports them per entry.

    Args:
        file_path: Path to the catalog JSON file
        fields: Record field names

    Returns:
        Catalog with entries in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON or has an unexpected structure
    """
    file_path = Path(file_path)
    fields = fields or CatalogFieldsConfig()

    if not file_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"Error reading catalog file {file_path}: {e}") from e

    wrapper_key = None
    wrapper: Dict[str, Any] = {}
    records = data

    if isinstance(data, dict):
        wrapper_key = next(
            (key for key in WRAPPER_KEYS if isinstance(data.get(key), list)), None
        )
        if wrapper_key is None:
            raise ValueError(
                f"Catalog object has no product array. Expected one of: {list(WRAPPER_KEYS)}"
            )
        wrapper = data
        records = data[wrapper_key]

    if not isinstance(records, list):
        raise ValueError(
            f"Catalog must be a JSON array of products, got {type(records).__name__}"
        )

    entries: List[CatalogEntry] = []
    issues: List[str] = []
    seen_ids: Dict[str, int] = {}

    for position, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(
                f"Catalog record at position {position} is not an object: {record!r}"
            )

        entry = entry_from_record(record, position, fields)

        if entry.id is None:
            issues.append(f"Entry at position {position}: missing required field '{fields.id_field}'")
        elif entry.id in seen_ids:
            issues.append(
                f"Entry {entry.id} at position {position}: duplicate id "
                f"(first seen at position {seen_ids[entry.id]})"
            )
        else:
            seen_ids[entry.id] = position

        entries.append(entry)

    return Catalog(
        source_path=file_path,
        entries=entries,
        wrapper_key=wrapper_key,
        wrapper=wrapper,
        issues=issues,
    )


def entry_from_record(
    record: Dict[str, Any], position: int, fields: CatalogFieldsConfig
) -> CatalogEntry:
    """
    Build a CatalogEntry from a raw catalog record.

    Args:
        record: JSON object from the catalog
        position: Index of the record in the catalog
        fields: Record field names

    Returns:
        CatalogEntry referencing the original record
    """
    raw_id = record.get(fields.id_field)
    raw_name = record.get(fields.name_field)

    image_refs: List[str] = []
    for field in fields.primary_image_fields:
        value = record.get(field)
        if isinstance(value, str) and value.strip():
            image_refs.append(value.strip())
            break

    if fields.alternate_images_field:
        alternates = record.get(fields.alternate_images_field)
        if isinstance(alternates, list):
            for ref in alternates:
                if isinstance(ref, str) and ref.strip() and ref.strip() not in image_refs:
                    image_refs.append(ref.strip())

    return CatalogEntry(
        id=None if raw_id is None else str(raw_id),
        name=raw_name.strip() if isinstance(raw_name, str) and raw_name.strip() else None,
        image_refs=image_refs,
        created_by=_optional_str(record.get(fields.created_by_field)),
        updated_by=_optional_str(record.get(fields.updated_by_field)),
        position=position,
        record=record,
    )


def entry_to_record(
    entry: CatalogEntry,
    fields: CatalogFieldsConfig,
    updated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Write an entry's image references and provenance back into its record.

    Every configured primary image field present in the record is updated;
    when none is present the first configured field is added. The alternate
    list, when the record has one, is replaced by ``image_refs``.

    Args:
        entry: Catalog entry, possibly mutated by the reconciler
        fields: Record field names
        updated_at: Timestamp stamped on changed entries

    Returns:
        New record dictionary; the entry's source record is not modified
    """
    record = dict(entry.record)

    if entry.image_refs == entry_from_record(entry.record, entry.position, fields).image_refs:
        return record

    primary = entry.primary_image
    present = [field for field in fields.primary_image_fields if field in record]
    for field in present or fields.primary_image_fields[:1]:
        record[field] = primary

    if fields.alternate_images_field and fields.alternate_images_field in record:
        record[fields.alternate_images_field] = list(entry.image_refs)

    if entry.updated_by:
        record[fields.updated_by_field] = entry.updated_by
    if fields.updated_at_field:
        stamp = updated_at or datetime.now(timezone.utc)
        record[fields.updated_at_field] = stamp.isoformat().replace("+00:00", "Z")

    return record


def serialize_catalog(
    catalog: Catalog,
    entries: List[CatalogEntry],
    fields: Optional[CatalogFieldsConfig] = None,
    updated_at: Optional[datetime] = None,
) -> str:
    """
    Render catalog entries as JSON text in the catalog's original layout.

    Args:
        catalog: Catalog the entries were loaded from
        entries: Entries to write, in order
        fields: Record field names
        updated_at: Timestamp stamped on changed entries

    Returns:
        JSON text (2-space indent, UTF-8 characters kept) ending with a newline
    """
    fields = fields or CatalogFieldsConfig()
    records = [entry_to_record(entry, fields, updated_at) for entry in entries]

    if catalog.wrapper_key:
        document: Any = dict(catalog.wrapper)
        document[catalog.wrapper_key] = records
    else:
        document = records

    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
