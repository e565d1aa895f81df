"""Backend liveness gating."""

from __future__ import annotations

from talos.health.gate import HealthGate, HealthStatus

__all__ = ["HealthGate", "HealthStatus"]
