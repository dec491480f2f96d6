"""
Typed records for the static game catalog.

Fixture JSON uses camelCase keys; every model accepts either the alias or
the Python field name. Quest, Project and WorkbenchUpgrade form a closed
set tagged by ``category``.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ItemLocation(CatalogModel):
    map: str
    area: str
    spots: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


class Item(CatalogModel):
    id: str
    name: str
    type: Optional[str] = None
    rarity: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    recycles_to: Optional[str] = Field(default=None, alias="recyclesTo")
    recycled_from: Optional[str] = Field(default=None, alias="recycledFrom")
    sell_price: Optional[int] = Field(default=None, alias="sellPrice")
    max_stack: Optional[int] = Field(default=None, alias="maxStack")
    category: Optional[str] = None
    keep_for: Optional[str] = Field(default=None, alias="keepFor")
    locations: List[ItemLocation] = Field(default_factory=list)


class Requirement(CatalogModel):
    item_id: str = Field(alias="itemId")
    quantity: int
    notes: Optional[str] = None


class Stage(CatalogModel):
    id: str
    name: str
    requirements: List[Requirement] = Field(default_factory=list)
    reward: Optional[str] = None
    stage_label: Optional[str] = Field(default=None, alias="stageLabel")


class Quest(CatalogModel):
    category: Literal["quest"] = "quest"
    id: str
    name: str
    description: Optional[str] = None
    stages: List[Stage] = Field(default_factory=list)
    faction: Optional[str] = None
    trader: Optional[str] = None
    required_location: Optional[str] = Field(default=None, alias="requiredLocation")
    objective: Optional[str] = None
    reward: Optional[str] = None
    image: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


class Project(CatalogModel):
    category: Literal["project"] = "project"
    id: str
    name: str
    description: Optional[str] = None
    stages: List[Stage]
    unlocks: Optional[str] = None
    image: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


class WorkbenchUpgrade(CatalogModel):
    category: Literal["workbench"] = "workbench"
    id: str
    name: str
    level: int
    description: Optional[str] = None
    requirements: List[Requirement] = Field(default_factory=list)
    benefit: str
    image: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


Entity = Union[Quest, Project, WorkbenchUpgrade]
