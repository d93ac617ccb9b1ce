"""API routes."""

from payroll_checks.api.routes.batches import router as batches_router
from payroll_checks.api.routes.health import router as health_router

__all__ = ["batches_router", "health_router"]
