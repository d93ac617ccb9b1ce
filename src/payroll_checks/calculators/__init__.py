"""Pure review calculators: periods, relationships, aggregation."""

from payroll_checks.calculators.aggregation import AggregationEngine, build_review
from payroll_checks.calculators.period_calculator import (
    WorkPeriod,
    previous_period_end,
    week_ending_label,
    week_key,
    work_period_number,
)
from payroll_checks.calculators.relationship_resolver import RelationshipResolver

__all__ = [
    "AggregationEngine",
    "build_review",
    "RelationshipResolver",
    "WorkPeriod",
    "previous_period_end",
    "week_ending_label",
    "week_key",
    "work_period_number",
]
