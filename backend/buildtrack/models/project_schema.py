"""
Project / BOM document schema.

Input records mirror the documents the persistence layer stores for a
project: floors with tasks and images, and a bill of materials grouped into
categories. Legacy keys written by the old generator (``_id``, ``category``,
``cost``, ``totalAmount``) are accepted alongside the camelCase names.

Output records are the derived views produced by the aggregators. All records
are frozen; nothing here is ever mutated after validation.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from buildtrack.services.numeric import round_percent, to_optional_number


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _number(value: Any) -> Optional[float]:
    return to_optional_number(value)


def _sequence(value: Any) -> Any:
    # A missing list is an empty list and null entries are skipped; anything
    # else is left for pydantic.
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(item for item in value if item is not None)
    return value


def _text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _record_or_none(value: Any) -> Any:
    # A nested document that is not a mapping is treated as absent.
    if isinstance(value, (dict, BaseModel)):
        return value
    return None


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------

class Image(_Record):
    path: str = ""
    remark: Optional[str] = None

    coerce_path = field_validator("path", mode="before")(_text)

    @model_validator(mode="before")
    @classmethod
    def bare_path(cls, value: Any) -> Any:
        # Older uploads stored the image as its path string alone.
        if isinstance(value, str):
            return {"path": value}
        return value


class Task(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"), serialization_alias="id")
    name: str = ""
    progress: Optional[float] = None
    images: Tuple[Image, ...] = ()

    coerce_id = field_validator("id", mode="before")(_identifier)
    coerce_name = field_validator("name", mode="before")(_text)
    coerce_progress = field_validator("progress", mode="before")(_number)
    coerce_images = field_validator("images", mode="before")(_sequence)


class Floor(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"), serialization_alias="id")
    name: str = ""
    tasks: Tuple[Task, ...] = ()
    images: Tuple[Image, ...] = ()
    # Stored by the editing workflow; recomputed, never trusted.
    progress: Optional[float] = None

    coerce_id = field_validator("id", mode="before")(_identifier)
    coerce_name = field_validator("name", mode="before")(_text)
    coerce_progress = field_validator("progress", mode="before")(_number)
    coerce_lists = field_validator("tasks", "images", mode="before")(_sequence)


class ProjectDetails(_Record):
    total_area: Optional[float] = None          # sqm
    num_floors: Optional[float] = None
    room_count: Optional[float] = None
    foundation_depth: Optional[float] = None    # m
    avg_floor_height: Optional[float] = None    # m

    coerce_numbers = field_validator(
        "total_area", "num_floors", "room_count", "foundation_depth", "avg_floor_height",
        mode="before",
    )(_number)


class Material(_Record):
    description: str = ""
    quantity: Optional[float] = None
    unit: str = ""
    unit_cost: Optional[float] = Field(
        None, validation_alias=AliasChoices("unitCost", "unit_cost", "cost"),
        serialization_alias="unitCost",
    )
    # Whatever the editor last stored; the engine recomputes it.
    line_total: Optional[float] = Field(
        None, validation_alias=AliasChoices("lineTotal", "line_total", "totalAmount"),
        serialization_alias="lineTotal",
    )

    coerce_text = field_validator("description", "unit", mode="before")(_text)
    coerce_numbers = field_validator("quantity", "unit_cost", "line_total", mode="before")(_number)


class Category(_Record):
    name: str = Field(
        "", validation_alias=AliasChoices("name", "category"), serialization_alias="name"
    )
    materials: Tuple[Material, ...] = ()

    coerce_name = field_validator("name", mode="before")(_text)
    coerce_materials = field_validator("materials", mode="before")(_sequence)


class MarkedUpCosts(_Record):
    markup_rate: Optional[float] = None
    markup_amount: Optional[float] = None
    total_project_cost: Optional[float] = None

    coerce_numbers = field_validator(
        "markup_rate", "markup_amount", "total_project_cost", mode="before"
    )(_number)


class RawBOM(_Record):
    project_details: ProjectDetails = ProjectDetails()
    categories: Tuple[Category, ...] = ()
    labor_cost: Optional[float] = None
    tax: Optional[float] = None
    material_total_cost: Optional[float] = None
    total_project_cost: Optional[float] = None
    marked_up_costs: Optional[MarkedUpCosts] = None
    # Per-BOM policy overrides; take precedence over PricingPolicy.
    tax_rate: Optional[float] = None
    markup_rate: Optional[float] = None
    markup_amount: Optional[float] = None

    coerce_numbers = field_validator(
        "labor_cost", "tax", "material_total_cost", "total_project_cost",
        "tax_rate", "markup_rate", "markup_amount",
        mode="before",
    )(_number)
    coerce_categories = field_validator("categories", mode="before")(_sequence)
    coerce_marked_up = field_validator("marked_up_costs", mode="before")(_record_or_none)

    @model_validator(mode="before")
    @classmethod
    def lift_flat_details(cls, data: Any) -> Any:
        """
        The project form saves totalArea, numFloors, etc. on the BOM itself
        rather than under projectDetails. Move them into the nested block;
        values already set there win.
        """
        if not isinstance(data, dict):
            return data
        flat = {}
        for name in ProjectDetails.model_fields:
            value = data.get(to_camel(name), data.get(name))
            if value is not None:
                flat[name] = value
        if not flat:
            return data

        nested = data.get("projectDetails", data.get("project_details"))
        if isinstance(nested, ProjectDetails):
            nested = nested.model_dump()
        elif nested is None:
            nested = {}
        elif not isinstance(nested, dict):
            return data

        details = dict(flat)
        for name in ProjectDetails.model_fields:
            value = nested.get(to_camel(name), nested.get(name))
            if value is not None:
                details[name] = value

        lifted = {k: v for k, v in data.items() if k not in ("projectDetails", "project_details")}
        lifted["projectDetails"] = details
        return lifted

    @field_validator("project_details", mode="before")
    @classmethod
    def default_details(cls, value: Any) -> Any:
        return {} if value is None else value


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Project(_Record):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"), serialization_alias="id")
    name: str = ""
    start_date: Optional[datetime] = None
    status: Optional[ProjectStatus] = None
    updated_at: Optional[datetime] = None
    floors: Tuple[Floor, ...] = ()
    # A BOM that does not validate is kept as the raw mapping so the project's
    # progress stays readable; pricing it raises MissingDataError.
    bom: Optional[Union[RawBOM, Dict[str, Any]]] = Field(None, union_mode="left_to_right")

    coerce_id = field_validator("id", mode="before")(_identifier)
    coerce_name = field_validator("name", mode="before")(_text)
    coerce_floors = field_validator("floors", mode="before")(_sequence)
    coerce_bom = field_validator("bom", mode="before")(_record_or_none)

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, value: Any) -> Optional[str]:
        if isinstance(value, ProjectStatus):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-").replace(" ", "-")
        if key == "inprogress":
            key = "in-progress"
        valid = {s.value for s in ProjectStatus}
        return key if key in valid else None

    @field_validator("start_date", "updated_at", mode="wrap")
    @classmethod
    def lenient_datetime(cls, value: Any, handler) -> Optional[datetime]:
        if value is None or value == "":
            return None
        try:
            return handler(value)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------

class PricedMaterial(_Record):
    description: str
    quantity: float
    unit: str
    unit_cost: float
    line_total: float


class PricedCategory(_Record):
    name: str
    materials: Tuple[PricedMaterial, ...]
    category_total: float


class PricedMarkedUpCosts(_Record):
    markup_rate: Optional[float] = None
    markup_amount: float
    total_project_cost: float


class PricedBOM(_Record):
    project_details: ProjectDetails
    categories: Tuple[PricedCategory, ...]
    labor_cost: float
    tax: float
    tax_rate: Optional[float] = None
    material_total_cost: float
    total_project_cost: float
    marked_up_costs: Optional[PricedMarkedUpCosts] = None

    def client_total(self) -> float:
        """Client-facing price: the marked-up total when a markup was applied."""
        if self.marked_up_costs is not None:
            return self.marked_up_costs.total_project_cost
        return self.total_project_cost


class TaskProgress(_Record):
    id: Optional[str] = None
    name: str
    progress: float
    images: Tuple[Image, ...] = ()

    def rounded_progress(self) -> int:
        return round_percent(self.progress)


class FloorProgress(_Record):
    id: Optional[str] = None
    name: str
    progress: float
    task_count: int
    tasks: Tuple[TaskProgress, ...] = ()
    images: Tuple[Image, ...] = ()

    def rounded_progress(self) -> int:
        return round_percent(self.progress)


class ProgressSnapshot(_Record):
    project_id: Optional[str] = None
    floors: Tuple[FloorProgress, ...]
    progress: float
    has_data: bool

    def rounded_progress(self) -> int:
        """Whole-percent value for display (37.5 -> 38)."""
        return round_percent(self.progress)
