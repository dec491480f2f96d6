import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from catalog_models import Entity, Item, Project, Quest, Requirement, Stage, WorkbenchUpgrade
from constants import ITEMS_FIXTURE, PROGRESS_CATEGORIES, PROGRESS_CATEGORY_BY_ID
from db import APP_DIR
from requirements_service import make_progress_key, normalize

CATALOG_DIR = Path(os.environ.get("CATALOG_DIR", str(APP_DIR / "catalog")))

_ENTITY_MODELS: Dict[str, Type[BaseModel]] = {
    "quest": Quest,
    "project": Project,
    "workbench": WorkbenchUpgrade,
}


class CatalogError(ValueError):
    pass


@dataclass
class Catalog:
    quests: List[Quest] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    workbench: List[WorkbenchUpgrade] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    item_by_id: Dict[str, Item] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.item_by_id = {item.id: item for item in self.items}

    def entities(self, category: str) -> List[Entity]:
        if category == "quest":
            return list(self.quests)
        if category == "project":
            return list(self.projects)
        if category == "workbench":
            return list(self.workbench)
        raise KeyError(category)

    def find_entity(self, category: str, entity_id: str) -> Optional[Entity]:
        if category not in PROGRESS_CATEGORY_BY_ID:
            return None
        for entity in self.entities(category):
            if entity.id == entity_id:
                return entity
        return None

    def item_name(self, item_id: str) -> str:
        item = self.item_by_id.get(item_id)
        return item.name if item is not None else item_id


@dataclass
class RequirementIndex:
    """Reverse lookup from requirements back to the entities that declare them."""

    labels_by_item: Dict[str, List[str]] = field(default_factory=dict)
    label_by_key: Dict[str, str] = field(default_factory=dict)

    def labels_for(self, item_id: str) -> List[str]:
        return list(self.labels_by_item.get(item_id, []))


def _load_json_array(path: Path) -> List[Any]:
    if not path.exists():
        raise CatalogError(f"Catalog fixture not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(raw, list):
        raise CatalogError(f"{path.name} root must be an array")
    return raw


def _parse_records(path: Path, model: Type[BaseModel]) -> List[Any]:
    records = []
    for index, entry in enumerate(_load_json_array(path)):
        try:
            records.append(model.model_validate(entry))
        except ValidationError as exc:
            raise CatalogError(f"{path.name}[{index}] is malformed: {exc}") from exc
    return records


def load_catalog(catalog_dir: Path = CATALOG_DIR) -> Catalog:
    by_category = {
        c["id"]: _parse_records(catalog_dir / c["fixture"], _ENTITY_MODELS[c["id"]])
        for c in PROGRESS_CATEGORIES
    }
    catalog = Catalog(
        quests=by_category["quest"],
        projects=by_category["project"],
        workbench=by_category["workbench"],
        items=_parse_records(catalog_dir / ITEMS_FIXTURE, Item),
    )
    logging.info(
        "Loaded catalog from %s: %d quests, %d projects, %d workbench upgrades, %d items",
        catalog_dir,
        len(catalog.quests),
        len(catalog.projects),
        len(catalog.workbench),
        len(catalog.items),
    )
    return catalog


@lru_cache(maxsize=1)
def load_default_catalog() -> Catalog:
    return load_catalog(CATALOG_DIR)


def source_label(entity: Entity) -> str:
    return f"{PROGRESS_CATEGORY_BY_ID[entity.category]['label']}: {entity.name}"


def build_requirement_index(catalog: Catalog) -> RequirementIndex:
    index = RequirementIndex()
    for category in PROGRESS_CATEGORIES:
        for entity in catalog.entities(category["id"]):
            label = source_label(entity)
            for stage in normalize(entity):
                for req in stage.requirements:
                    labels = index.labels_by_item.setdefault(req.item_id, [])
                    if label not in labels:
                        labels.append(label)
                    key = make_progress_key(entity.category, entity.id, stage.id, req.item_id)
                    index.label_by_key[key] = label
    return index


def find_requirement(
    catalog: Catalog,
    category: str,
    entity_id: str,
    stage_id: str,
    item_id: str,
) -> Optional[Tuple[Entity, Stage, Requirement]]:
    entity = catalog.find_entity(category, entity_id)
    if entity is None:
        return None
    for stage in normalize(entity):
        if stage.id != stage_id:
            continue
        for req in stage.requirements:
            if req.item_id == item_id:
                return entity, stage, req
    return None


def build_catalog_stats(catalog: Catalog) -> List[Dict[str, Any]]:
    return [
        {"label": "Quests", "value": len(catalog.quests)},
        {"label": "Projects", "value": len(catalog.projects)},
        {"label": "Workbench upgrades", "value": len(catalog.workbench)},
        {"label": "Items", "value": len(catalog.items)},
    ]
