"""Domain layer -- models, errors, protocols, and events.

Re-exports all public domain types for convenient access::

    from pooled_screening.domain import ScreeningDesign, SplitTable
"""

from __future__ import annotations

from pooled_screening.domain.errors import (
    DegenerateRatioError,
    InvalidParameterError,
    MalformedDesignError,
    ScreeningError,
    SimulationTimeoutError,
)
from pooled_screening.domain.events import (
    DESIGN_EVALUATED,
    REPLAY_COMPLETED,
    SIMULATION_COMPLETED,
    Event,
    EventBus,
)
from pooled_screening.domain.models import (
    AppConfig,
    DesignEvaluation,
    Group,
    IterationOutcome,
    MonteCarloSummary,
    ReplayResult,
    ScreeningDesign,
    SimulationSettings,
    SplitTable,
    TestCounter,
)
from pooled_screening.domain.protocols import DesignOptimizer

__all__ = [
    # Errors
    "ScreeningError",
    "InvalidParameterError",
    "DegenerateRatioError",
    "MalformedDesignError",
    "SimulationTimeoutError",
    # Events
    "DESIGN_EVALUATED",
    "SIMULATION_COMPLETED",
    "REPLAY_COMPLETED",
    "Event",
    "EventBus",
    # Models
    "AppConfig",
    "DesignEvaluation",
    "Group",
    "IterationOutcome",
    "MonteCarloSummary",
    "ReplayResult",
    "ScreeningDesign",
    "SimulationSettings",
    "SplitTable",
    "TestCounter",
    # Protocols
    "DesignOptimizer",
]
