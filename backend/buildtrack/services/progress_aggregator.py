"""
ProgressAggregator — task completion rolled up to floor and project level.

Every task counts equally on its floor and every floor counts equally on the
project (unweighted means). Values keep full precision; rounding to whole
percentages is left to ``rounded_progress()`` at the presentation boundary.
"""
import logging

from buildtrack.models.project_schema import (
    Floor,
    FloorProgress,
    ProgressSnapshot,
    Task,
    TaskProgress,
)
from buildtrack.services.numeric import clamp_percent, mean, unwrap_or_zero
from buildtrack.services.perf_monitor import timed
from buildtrack.services.validation import ProjectInput, coerce_project

logger = logging.getLogger("buildtrack-progress")


class ProgressAggregator:

    def task_progress(self, task: Task) -> TaskProgress:
        return TaskProgress(
            id=task.id,
            name=task.name,
            progress=clamp_percent(unwrap_or_zero(task.progress)),
            images=task.images,
        )

    def floor_progress(self, floor: Floor) -> FloorProgress:
        """Mean of the floor's task progress; 0 for a floor without tasks."""
        tasks = tuple(self.task_progress(t) for t in floor.tasks)
        return FloorProgress(
            id=floor.id,
            name=floor.name,
            progress=mean(t.progress for t in tasks),
            task_count=len(tasks),
            tasks=tasks,
            images=floor.images,
        )

    @timed
    def compute_progress(self, project: ProjectInput) -> ProgressSnapshot:
        """
        Build the progress snapshot for a project document.

        A project without floors reports 0% with ``has_data`` False so callers
        can tell "not started" from "nothing recorded".

        Raises:
            MissingDataError: no project document was supplied.
        """
        proj = coerce_project(project)

        floors = tuple(self.floor_progress(f) for f in proj.floors)
        snapshot = ProgressSnapshot(
            project_id=proj.id,
            floors=floors,
            progress=mean(f.progress for f in floors),
            has_data=bool(floors),
        )

        logger.debug(
            f"Project progress {snapshot.progress:.4f}% over {len(floors)} floors",
            extra={"project_id": proj.id},
        )
        return snapshot


def compute_progress(project: ProjectInput) -> ProgressSnapshot:
    """Functional entry point: ``ProgressAggregator().compute_progress(project)``."""
    return ProgressAggregator().compute_progress(project)
