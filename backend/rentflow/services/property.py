"""Property wizard orchestration: drafts, publishing, photos.

Unlike applications, a property's wizard answers all live on the
Property row, so each step is validated against the persisted columns
with the request payload laid over them.

Publishing runs the same step rules as a gate, then flips the listing
live and applies the photo operations in a fixed order:
  1. delete removed photos
  2. store new uploads (temporary sort_order 999)
  3. apply image_order ("new:<i>" for uploads, otherwise an image id)
  4. pick the main photo: explicit id, else new upload index, else the
     first photo by sort_order
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentflow.middleware.exceptions import IncompleteWizardError, WizardStateError
from rentflow.models.property import Property, PropertyImage
from rentflow.services.documents import DocumentStore, Visibility
from rentflow.utils.coercion import assign_columns
from rentflow.wizard.lookups import PROPERTY_BOOLEAN_FIELDS
from rentflow.wizard.merger import entity_values, merge_entity, unflatten
from rentflow.wizard.property_steps import IMAGE_RULE, property_engine
from rentflow.wizard.registry import WizardContext
from rentflow.wizard.rules import ErrorMap, evaluate, to_bool
from rentflow.wizard.validator import ValidationOutcome

logger = logging.getLogger(__name__)

# Wizard-editable columns. Transient keys (images, new_images,
# deleted_image_ids, image_order, main_image_index, main_image_id,
# wizard_step, is_active) are never written from a payload.
PROPERTY_FIELDS = (
    "type", "subtype",
    "house_number", "street_name", "street_line2", "city", "state", "postal_code", "country",
    "bedrooms", "bathrooms", "size", "floor_level", "has_elevator", "year_built",
    "parking_spots_interior", "parking_spots_exterior", "balcony_size", "land_size",
    "kitchen_equipped", "kitchen_separated", "has_cellar", "has_laundry", "has_fireplace",
    "has_air_conditioning", "has_garden", "has_rooftop",
    "energy_class", "thermal_insulation_class", "heating_type",
    "rent_amount", "rent_currency", "available_date",
    "title", "description", "extras",
)

DRAFT_DEFAULTS = {
    "title": "",
    "type": "apartment",
    "subtype": "studio",
    "house_number": "",
    "street_name": "",
    "city": "",
    "postal_code": "",
    "country": "CH",
    "bedrooms": 0,
    "bathrooms": 0,
    "rent_amount": 0,
    "rent_currency": "eur",
}

PENDING_SORT_ORDER = 999
NO_PHOTOS = "At least one photo is required"


def _context(property: Property, today: date | None) -> WizardContext:
    return WizardContext(entity=property, today=today or date.today())


def convert_boolean_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for field in PROPERTY_BOOLEAN_FIELDS:
        if result.get(field) is not None:
            result[field] = bool(to_bool(result[field]))
    return result


def filter_draft_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key in PROPERTY_FIELDS}


def images_folder(property: Property) -> str:
    return f"properties/{property.id}"


def image_errors(images: Sequence[Any]) -> ErrorMap:
    """Field errors (`new_images.<i>`) for a batch of photo uploads."""
    return evaluate([IMAGE_RULE], {"new_images": list(images)}, date.today())


# ── Drafts ──────────────────────────────────────────────────

async def create_draft(
    db: AsyncSession, property_manager_id: str, data: Mapping[str, Any] | None = None
) -> Property:
    data = convert_boolean_fields(unflatten(data or {}))
    values = {**DRAFT_DEFAULTS, **{k: v for k, v in filter_draft_fields(data).items() if v is not None}}

    property = Property(property_manager_id=property_manager_id, status="draft", wizard_step=1)
    assign_columns(property, values)
    db.add(property)
    await db.flush()
    logger.info("Created property draft %s for manager %s", property.id, property_manager_id)
    return property


def _require_draft(property: Property) -> None:
    if property.status != "draft":
        raise WizardStateError(f"Property {property.id} is {property.status}, not a draft")


async def save_draft(
    db: AsyncSession,
    property: Property,
    data: Mapping[str, Any],
    requested_step: int,
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Persist a draft and return {max_valid_step, saved_at}."""
    _require_draft(property)
    data = convert_boolean_fields(unflatten(data))
    merged = merge_entity(property, data, PROPERTY_FIELDS)
    max_valid_step = property_engine.calculate_max_valid_step(
        merged, requested_step, _context(property, today)
    )

    assign_columns(property, filter_draft_fields(data))
    property.wizard_step = min(requested_step, max_valid_step)
    await db.flush()

    logger.info(
        "Property %s draft saved: requested step %s, max valid step %s",
        property.id, requested_step, max_valid_step,
    )
    return {
        "max_valid_step": max_valid_step,
        "saved_at": datetime.now(timezone.utc).isoformat(),
    }


async def revalidate_draft(
    db: AsyncSession, property: Property, *, today: date | None = None
) -> Property:
    merged = entity_values(property, PROPERTY_FIELDS)
    target = property_engine.target_step(merged, _context(property, today))
    if target != property.wizard_step:
        logger.info(
            "Property %s moved from step %s to %s on revalidation",
            property.id, property.wizard_step, target,
        )
        property.wizard_step = target
        await db.flush()
    return property


def validate_property_step(
    property: Property,
    step: int,
    data: Mapping[str, Any] | None = None,
    *,
    today: date | None = None,
) -> ValidationOutcome:
    merged = merge_entity(property, convert_boolean_fields(unflatten(data or {})), PROPERTY_FIELDS)
    return property_engine.validate_step(step, merged, _context(property, today))


def step_errors(property: Property, *, today: date | None = None) -> dict[int, ErrorMap]:
    merged = entity_values(property, PROPERTY_FIELDS)
    return property_engine.collect_errors(merged, _context(property, today))


# ── Publishing ──────────────────────────────────────────────

async def publish(
    db: AsyncSession,
    property: Property,
    data: Mapping[str, Any],
    store: DocumentStore,
    options: Mapping[str, Any] | None = None,
    *,
    today: date | None = None,
) -> Property:
    """Publish a draft listing.

    `options` may carry new_images, deleted_image_ids, image_order,
    main_image_id, main_image_index and is_active (default True).
    """
    _require_draft(property)
    options = dict(options or {})
    new_images = list(options.get("new_images") or [])
    deleted_ids = {str(i) for i in options.get("deleted_image_ids") or []}
    data = convert_boolean_fields(unflatten(data))

    merged = merge_entity(
        property,
        {**data, "new_images": new_images, "main_image_index": options.get("main_image_index")},
        PROPERTY_FIELDS,
    )
    context = _context(property, today)
    first_invalid = property_engine.find_first_invalid_step(merged, context)
    if first_invalid is not None:
        errors = property_engine.validate_step(first_invalid, merged, context).errors
        raise IncompleteWizardError(first_invalid, errors)

    remaining = [img for img in await list_images(db, property) if img.id not in deleted_ids]
    if not remaining and not new_images:
        raise IncompleteWizardError(property_engine.last_step, {"images": [NO_PHOTOS]})

    is_active = options.get("is_active")
    is_active = True if is_active is None else bool(to_bool(is_active))

    assign_columns(property, filter_draft_fields(data))
    property.status = "vacant"
    property.visibility = "unlisted" if is_active else "private"
    property.accepting_applications = is_active
    property.published_at = datetime.now(timezone.utc).replace(tzinfo=None)
    property.wizard_step = property_engine.review_step

    await _apply_publish_images(db, property, store, options, new_images, deleted_ids)
    await db.flush()

    logger.info("Property %s published (visibility=%s)", property.id, property.visibility)
    return property


async def _apply_publish_images(
    db: AsyncSession,
    property: Property,
    store: DocumentStore,
    options: Mapping[str, Any],
    new_images: list[Any],
    deleted_ids: set[str],
) -> None:
    if deleted_ids:
        await delete_images(db, property, deleted_ids, store)

    new_records = []
    for image in new_images:
        record = PropertyImage(
            property_id=property.id,
            image_path=store.store(image, images_folder(property), Visibility.PRIVATE),
            original_filename=image.filename,
            sort_order=PENDING_SORT_ORDER,
            is_main=False,
        )
        db.add(record)
        new_records.append(record)
    await db.flush()

    images = await list_images(db, property)
    by_id = {image.id: image for image in images}
    for index, value in enumerate(options.get("image_order") or []):
        value = str(value)
        if value.startswith("new:"):
            position = value[4:]
            if position.isdigit() and int(position) < len(new_records):
                new_records[int(position)].sort_order = index
        elif value in by_id:
            by_id[value].sort_order = index

    for image in images:
        image.is_main = False
    main_id = options.get("main_image_id")
    main_index = _to_int(options.get("main_image_index"), default=0)
    if main_id is not None and str(main_id) in by_id:
        by_id[str(main_id)].is_main = True
    elif new_records and 0 <= main_index < len(new_records):
        new_records[main_index].is_main = True
    elif images:
        min(images, key=lambda image: image.sort_order).is_main = True


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ── Photos ──────────────────────────────────────────────────

async def list_images(db: AsyncSession, property: Property) -> list[PropertyImage]:
    result = await db.execute(
        select(PropertyImage)
        .where(PropertyImage.property_id == property.id)
        .order_by(PropertyImage.sort_order, PropertyImage.created_at)
    )
    return list(result.scalars().all())


async def upload_images(
    db: AsyncSession,
    property: Property,
    images: Sequence[Any],
    store: DocumentStore,
    main_image_index: int | None = None,
) -> list[PropertyImage]:
    """Append photos; the first upload set may nominate its main photo."""
    existing_count = (
        await db.execute(
            select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property.id)
        )
    ).scalar() or 0

    records = []
    for index, image in enumerate(images):
        record = PropertyImage(
            property_id=property.id,
            image_path=store.store(image, images_folder(property), Visibility.PRIVATE),
            original_filename=image.filename,
            is_main=main_image_index == index and existing_count == 0,
            sort_order=existing_count + index,
        )
        db.add(record)
        records.append(record)
    await db.flush()
    return records


async def delete_images(
    db: AsyncSession, property: Property, image_ids: Iterable[str], store: DocumentStore
) -> int:
    """Delete photos and their files; re-elect a main photo if it was removed."""
    ids = {str(i) for i in image_ids}
    deleted = 0
    for image in await list_images(db, property):
        if image.id in ids:
            store.delete(image.image_path, Visibility.PRIVATE)
            await db.delete(image)
            deleted += 1
    await db.flush()

    remaining = await list_images(db, property)
    if remaining and not any(image.is_main for image in remaining):
        remaining[0].is_main = True
        await db.flush()
    return deleted


async def set_main_image(db: AsyncSession, property: Property, image_id: str) -> bool:
    images = await list_images(db, property)
    if not any(image.id == image_id for image in images):
        return False
    for image in images:
        image.is_main = image.id == image_id
    await db.flush()
    return True


async def reorder_images(db: AsyncSession, property: Property, image_ids: Sequence[str]) -> None:
    by_id = {image.id: image for image in await list_images(db, property)}
    for index, image_id in enumerate(image_ids):
        image = by_id.get(str(image_id))
        if image is not None:
            image.sort_order = index
    await db.flush()
