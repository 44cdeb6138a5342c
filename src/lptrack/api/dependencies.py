"""FastAPI dependencies for dependency injection."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from lptrack.config.settings import Settings, get_settings
from lptrack.core.pnl.orchestrator import PnlOrchestrator

SettingsDep = Annotated[Settings, Depends(get_settings)]

OrchestratorFactory = Callable[[Settings, str | None], PnlOrchestrator]


def get_orchestrator_factory() -> OrchestratorFactory:
    """Factory building an orchestrator per request (overridden in tests)."""
    return PnlOrchestrator.from_settings


OrchestratorFactoryDep = Annotated[OrchestratorFactory, Depends(get_orchestrator_factory)]
