"""
Requirement normalization and progress keys.

Every catalog entity is flattened into an ordered list of stages, each
carrying its own item requirements. A requirement instance is identified by
``category|entityId|stageId|itemId``; that string keys the progress ledger.
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional

from catalog_models import Entity, Project, Quest, Stage, WorkbenchUpgrade
from constants import (
    PROGRESS_CATEGORY_BY_ID,
    PROGRESS_KEY_SEPARATOR,
    QUEST_OBJECTIVE_FALLBACK,
    QUEST_STAGE_LABEL,
)


class ProgressKey(NamedTuple):
    category: str
    entity_id: str
    stage_id: str
    item_id: str


def make_progress_key(category: str, entity_id: str, stage_id: str, item_id: str) -> str:
    return PROGRESS_KEY_SEPARATOR.join((category, entity_id, stage_id, item_id))


def parse_progress_key(raw: str) -> Optional[ProgressKey]:
    parts = str(raw).split(PROGRESS_KEY_SEPARATOR)
    if len(parts) != 4 or parts[0] not in PROGRESS_CATEGORY_BY_ID:
        return None
    return ProgressKey(*parts)


def _quest_stages(quest: Quest) -> List[Stage]:
    if quest.stages:
        return list(quest.stages)
    name = quest.objective
    if name is None:
        name = quest.description if quest.description is not None else QUEST_OBJECTIVE_FALLBACK
    return [
        Stage(
            id=f"{quest.id}-objective",
            name=name,
            requirements=[],
            reward=quest.reward,
            stage_label=f"Trader: {quest.trader}" if quest.trader else QUEST_STAGE_LABEL,
        )
    ]


def _project_stages(project: Project) -> List[Stage]:
    return list(project.stages)


def _workbench_stages(upgrade: WorkbenchUpgrade) -> List[Stage]:
    return [
        Stage(
            id=f"level-{upgrade.level}",
            name=upgrade.name,
            requirements=list(upgrade.requirements),
            reward=upgrade.benefit,
            stage_label=f"Level {upgrade.level}",
        )
    ]


_NORMALIZERS: Dict[str, Callable[[Any], List[Stage]]] = {
    "quest": _quest_stages,
    "project": _project_stages,
    "workbench": _workbench_stages,
}


def normalize(entity: Entity) -> List[Stage]:
    return _NORMALIZERS[entity.category](entity)


def stage_summary(
    category: str,
    entity_id: str,
    stage: Stage,
    get_value: Callable[[str], int],
) -> Dict[str, int]:
    """Completion totals for one stage.

    Stored progress above a requirement's quantity is capped here only; the
    ledger itself keeps whatever was written.
    """
    total = sum(req.quantity for req in stage.requirements)
    have = sum(
        min(get_value(make_progress_key(category, entity_id, stage.id, req.item_id)), req.quantity)
        for req in stage.requirements
    )
    percent = round(have / total * 100) if total > 0 else 0
    return {"total": total, "have": have, "percent": percent}
