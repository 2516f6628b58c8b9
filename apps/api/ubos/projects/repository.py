from __future__ import annotations

from typing import Any

from ubos.platform.tenancy.repository import ScopedRepository
from ubos.projects.models import Project, Task


class ProjectRepository(ScopedRepository[Project]):
    model = Project
    resource = "projects.project"


class TaskRepository(ScopedRepository[Task]):
    model = Task
    resource = "projects.task"

    def ordering(self) -> tuple[Any, ...]:
        return (Task.sort_order.asc(), Task.created_at.asc())
