"""arq worker settings module.

Import path for arq CLI: arq glp.workers.settings.WorkerSettings
"""

from __future__ import annotations

from glp.workers.milestone_worker import WorkerSettings

__all__ = ["WorkerSettings"]
