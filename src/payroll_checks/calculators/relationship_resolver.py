"""Relationship resolution for tab entries."""

from __future__ import annotations

from payroll_checks.calculators.types import (
    LEGACY_RELATIONSHIP_ID,
    MULTIPLE,
    EmployeeProfile,
    PayRelationship,
    TabEntry,
)


class RelationshipResolver:
    """Resolves which pay relationships govern an employee on a tab.

    Resolution rules:
    1. Active relationships whose client matches the tab's client
       (every active relationship on the "multiple" tab)
    2. An employee with no relationships at all falls back to the legacy
       single pay type/rate, scoped to the tab's client
    3. An employee with relationships, none matching, resolves to nothing:
       the tab does not apply to them
    """

    @staticmethod
    def resolve_for_tab(
        employee: EmployeeProfile, client_id: str
    ) -> list[PayRelationship]:
        """Active relationships governing ``employee`` on ``client_id``'s tab."""
        if not employee.relationships:
            return [RelationshipResolver.legacy_relationship(employee, client_id)]

        return [
            rel
            for rel in employee.relationships
            if rel.active and (client_id == MULTIPLE or rel.client_id == client_id)
        ]

    @staticmethod
    def default_selection(employee: EmployeeProfile, client_id: str) -> list[str]:
        """Relationship ids selected for totals when the operator picked none.

        An employee may hold an hourly and a per-diem relationship with the
        same client; both are selected and both contribute to one check.
        """
        return [
            rel.relationship_id
            for rel in RelationshipResolver.resolve_for_tab(employee, client_id)
        ]

    @staticmethod
    def selected_for_entry(
        employee: EmployeeProfile, client_id: str, entry: TabEntry
    ) -> list[PayRelationship]:
        """Resolved relationships filtered by the entry's selection, in directory order."""
        resolved = RelationshipResolver.resolve_for_tab(employee, client_id)
        if entry.selected_relationship_ids is None:
            return resolved
        return [
            rel for rel in resolved if rel.relationship_id in entry.selected_relationship_ids
        ]

    @staticmethod
    def legacy_relationship(
        employee: EmployeeProfile, client_id: str
    ) -> PayRelationship:
        """Synthesize a relationship from the employee's legacy pay fields."""
        return PayRelationship(
            relationship_id=LEGACY_RELATIONSHIP_ID,
            client_id=client_id,
            pay_type=employee.legacy_pay_type,
            pay_rate=employee.legacy_pay_rate,
            active=True,
        )
