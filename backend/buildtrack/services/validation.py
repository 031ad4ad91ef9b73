"""
Boundary validation for incoming project / BOM documents.

Documents arrive either as already-validated records or as plain mappings
decoded from storage. Anything that is not there, or is not shaped like the
expected document, is reported as MissingDataError; field-level problems are
absorbed by the schema's coercion rules instead.
"""
from typing import Any, Mapping, Union

from pydantic import ValidationError

from buildtrack.models.project_schema import Project, RawBOM
from buildtrack.services.errors import MissingDataError

BOMInput = Union[RawBOM, Mapping[str, Any], None]
ProjectInput = Union[Project, Mapping[str, Any], None]


def coerce_bom(bom: BOMInput) -> RawBOM:
    """Validate a raw BOM document, raising MissingDataError if there is none."""
    if bom is None:
        raise MissingDataError("bom")
    if isinstance(bom, RawBOM):
        return bom
    if not isinstance(bom, Mapping):
        raise MissingDataError("bom", f"Expected a BOM document, got {type(bom).__name__}")
    try:
        return RawBOM.model_validate(dict(bom))
    except ValidationError as exc:
        raise MissingDataError(
            "bom", f"BOM document is not structurally valid: {exc.error_count()} error(s)"
        ) from exc


def coerce_project(project: ProjectInput) -> Project:
    """Validate a raw project document, raising MissingDataError if there is none."""
    if project is None:
        raise MissingDataError("project")
    if isinstance(project, Project):
        return project
    if not isinstance(project, Mapping):
        raise MissingDataError("project", f"Expected a project document, got {type(project).__name__}")
    try:
        return Project.model_validate(dict(project))
    except ValidationError as exc:
        raise MissingDataError(
            "project", f"Project document is not structurally valid: {exc.error_count()} error(s)"
        ) from exc
