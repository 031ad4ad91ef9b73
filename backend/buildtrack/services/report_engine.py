"""
Report Engine — plain-data views handed to the reporting / UI layer.

Outputs:
  - Client BOM summary (title, project details, grand total, one row per category)
  - Project overview (status, dates, floor and task progress with images)
  - Budget filter over a list of projects (pre-project browser)

Nothing here renders or formats currency; values are numbers and ISO dates so
the consumer (PDF writer, web UI) can present them however it likes.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from buildtrack.config import DEFAULT_POLICY, PricingPolicy
from buildtrack.models.project_schema import Image, PricedBOM
from buildtrack.services.cost_aggregator import CostAggregator
from buildtrack.services.errors import MissingDataError
from buildtrack.services.numeric import clamp_non_negative, to_optional_number
from buildtrack.services.progress_aggregator import ProgressAggregator
from buildtrack.services.validation import ProjectInput, coerce_project

logger = logging.getLogger("buildtrack-report")

UNTITLED_PROJECT = "UNTITLED PROJECT"
UNKNOWN_STATUS = "UNKNOWN"


def _iso_date(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value is not None else None


def _images(images: Iterable[Image]) -> List[Dict[str, Any]]:
    return [{"path": img.path, "remark": img.remark} for img in images]


class ReportEngine:

    def __init__(self, policy: Optional[PricingPolicy] = None):
        self.policy = policy or DEFAULT_POLICY
        self.costs = CostAggregator(self.policy)
        self.progress = ProgressAggregator()

    # ------------------------------------------------------------------
    # Client BOM
    # ------------------------------------------------------------------

    def client_bom_summary(self, project: ProjectInput) -> Dict[str, Any]:
        """
        Data for the client-facing BOM document.

        Category names are upper-cased for display and rows are numbered from
        1. The grand total is the marked-up price when a markup applies,
        otherwise the pre-markup project total.

        Raises:
            MissingDataError: no project, or the project has no BOM.
        """
        proj = coerce_project(project)
        priced: PricedBOM = self.costs.compute_project_bom(proj)
        details = priced.project_details

        return {
            "title": f"Client BOM: {proj.name or 'N/A'}",
            "project_name": proj.name,
            "currency": self.policy.currency,
            "total_area": details.total_area,
            "num_floors": details.num_floors,
            "avg_floor_height": details.avg_floor_height,
            "grand_total": priced.client_total(),
            "total_project_cost": priced.total_project_cost,
            "rows": [
                {
                    "index": idx + 1,
                    "category": category.name.upper(),
                    "total": category.category_total,
                }
                for idx, category in enumerate(priced.categories)
            ],
        }

    # ------------------------------------------------------------------
    # Progress overview
    # ------------------------------------------------------------------

    def project_overview(self, project: ProjectInput) -> Dict[str, Any]:
        """Header, floor and task rows of the project progress page."""
        proj = coerce_project(project)
        snapshot = self.progress.compute_progress(proj)

        return {
            "project_id": proj.id,
            "name": proj.name.upper() if proj.name else UNTITLED_PROJECT,
            "status": proj.status.value.upper() if proj.status else UNKNOWN_STATUS,
            "start_date": _iso_date(proj.start_date),
            "last_update": _iso_date(proj.updated_at),
            "progress": snapshot.progress,
            "progress_pct": snapshot.rounded_progress(),
            "has_data": snapshot.has_data,
            "has_bom": proj.bom is not None,
            "floors": [
                {
                    "id": floor.id,
                    "name": floor.name,
                    "progress": floor.progress,
                    "progress_pct": floor.rounded_progress(),
                    "images": _images(floor.images),
                    "tasks": [
                        {
                            "id": task.id,
                            "name": task.name or "Unnamed Task",
                            "progress": task.progress,
                            "progress_pct": task.rounded_progress(),
                            "images": _images(task.images),
                        }
                        for task in floor.tasks
                    ],
                }
                for floor in snapshot.floors
            ],
        }

    # ------------------------------------------------------------------
    # Budget filter
    # ------------------------------------------------------------------

    def filter_by_budget(
        self,
        projects: Iterable[ProjectInput],
        min_budget: Any = None,
        max_budget: Any = None,
    ) -> List[Dict[str, Any]]:
        """
        Keep projects whose priced total project cost lies in [min, max].

        Bounds follow the browser's budget inputs: they are whole amounts
        (fractions truncate), blank or junk means "no bound", negatives clamp
        to 0, and a max of 0 means no upper bound. Projects without a BOM, or
        whose BOM cannot be priced, are skipped.

        Returns:
            One dict per kept project: ``project_id``, ``name`` and
            ``total_project_cost``, in input order.
        """
        low = float(int(clamp_non_negative(to_optional_number(min_budget) or 0.0)))
        high = float(int(clamp_non_negative(to_optional_number(max_budget) or 0.0))) or None

        kept: List[Dict[str, Any]] = []
        for project in projects:
            try:
                proj = coerce_project(project)
                priced = self.costs.compute_project_bom(proj)
            except MissingDataError as exc:
                logger.debug(f"Skipping project in budget filter: {exc}")
                continue
            total = priced.total_project_cost
            if total < low or (high is not None and total > high):
                continue
            kept.append({
                "project_id": proj.id,
                "name": proj.name,
                "total_project_cost": total,
            })
        return kept


def build_client_bom_summary(project: ProjectInput, policy: Optional[PricingPolicy] = None) -> Dict[str, Any]:
    return ReportEngine(policy).client_bom_summary(project)


def build_project_overview(project: ProjectInput) -> Dict[str, Any]:
    return ReportEngine().project_overview(project)


def filter_projects_by_budget(
    projects: Iterable[ProjectInput],
    min_budget: Any = None,
    max_budget: Any = None,
    policy: Optional[PricingPolicy] = None,
) -> List[Dict[str, Any]]:
    return ReportEngine(policy).filter_by_budget(projects, min_budget, max_budget)
