"""Self-update gate for the prflow checkout."""

from prflow.app.maintenance.service import GateOutcome, GateState, MaintenanceGate

__all__ = ["GateOutcome", "GateState", "MaintenanceGate"]
