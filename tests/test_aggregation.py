"""Tests for the aggregation engine."""

from datetime import date
from decimal import Decimal

from payroll_checks.calculators.aggregation import (
    AggregationEngine,
    build_review,
    pay_type_label,
    round_to_cents,
)
from payroll_checks.calculators.types import (
    MULTIPLE,
    UNKNOWN_EMPLOYEE,
    MissingRelationship,
    OtherPayItem,
    PayType,
    RelationshipInput,
    Weekday,
    frozen_mapping,
)
from tests.conftest import (
    NORTH,
    SOUTH,
    batch,
    entry,
    flat_perdiem,
    hourly,
    hours,
    perdiem,
    standard_directory,
    tab,
)


class TestRelationshipAmount:
    """Sub-amount of a single relationship."""

    def test_hourly_regular_overtime_holiday(self):
        """40h regular, 5h OT, 8h holiday at 17.00 is 680 + 127.50 + 136."""
        rel = hourly("ann-h", NORTH, "17.00")

        result = AggregationEngine.compute_relationship_amount(
            rel, hours("40", "5", "8"), NORTH
        )

        assert result.hourly_amount == Decimal("943.50")
        assert result.perdiem_amount == Decimal("0")
        assert result.amount == Decimal("943.50")
        assert [(line.description, line.amount) for line in result.lines] == [
            ("Regular", Decimal("680.00")),
            ("Overtime", Decimal("127.50")),
            ("Holiday", Decimal("136.00")),
        ]
        assert result.lines[1].rate == Decimal("25.500")

    def test_overtime_uses_relationship_rate(self):
        north = hourly("zed-n", NORTH, "16.00")
        south = hourly("zed-s", SOUTH, "25.00")
        ot_only = hours(ot="2")

        assert AggregationEngine.compute_relationship_amount(north, ot_only, NORTH).amount == Decimal(
            "48.00"
        )
        assert AggregationEngine.compute_relationship_amount(south, ot_only, SOUTH).amount == Decimal(
            "75.00"
        )

    def test_hourly_other_pay(self):
        pay_input = RelationshipInput(
            hours=Decimal("10"),
            other_pay=(
                OtherPayItem(description="Safety bonus", amount=Decimal("30.00")),
                OtherPayItem(description="", amount=Decimal("5.00")),
                OtherPayItem(description="Nothing", amount=Decimal("0")),
            ),
        )

        result = AggregationEngine.compute_relationship_amount(
            hourly("ann-h", NORTH, "17.00"), pay_input, NORTH
        )

        assert result.amount == Decimal("205.00")
        assert [line.description for line in result.lines] == [
            "Regular",
            "Safety bonus",
            "Other pay",
        ]

    def test_perdiem_breakdown_ignores_flat_amount(self):
        """Mon 50 + Wed 60 + PTO 25 is 135 whatever the flat field says."""
        pay_input = RelationshipInput(
            perdiem_amount=Decimal("999.00"),
            perdiem_breakdown=True,
            perdiem_days=frozen_mapping(
                {Weekday.WEDNESDAY: Decimal("60"), Weekday.MONDAY: Decimal("50")}
            ),
            pto_amount=Decimal("25"),
        )

        result = AggregationEngine.compute_relationship_amount(
            perdiem("ann-p", NORTH), pay_input, NORTH
        )

        assert result.perdiem_amount == Decimal("135.00")
        assert result.hourly_amount == Decimal("0")
        assert [line.description for line in result.lines] == [
            "Per diem Mon",
            "Per diem Wed",
            "PTO",
        ]

    def test_perdiem_flat_amount(self):
        result = AggregationEngine.compute_relationship_amount(
            perdiem("ann-p", NORTH), flat_perdiem("120.00"), NORTH
        )

        assert result.perdiem_amount == Decimal("120.00")

    def test_pto_only_disbursement(self):
        result = AggregationEngine.compute_relationship_amount(
            perdiem("ann-p", NORTH), flat_perdiem("0", pto="40.00"), NORTH
        )

        assert result.amount == Decimal("40.00")
        assert [line.description for line in result.lines] == ["PTO"]

    def test_hourly_fields_ignored_for_perdiem(self):
        result = AggregationEngine.compute_relationship_amount(
            perdiem("ann-p", NORTH), hours("40"), NORTH
        )

        assert result.amount == Decimal("0")
        assert result.lines == ()

    def test_perdiem_fields_ignored_for_hourly(self):
        result = AggregationEngine.compute_relationship_amount(
            hourly("bob-h", NORTH, "20.00"), flat_perdiem("100", pto="25"), NORTH
        )

        assert result.amount == Decimal("0")

    def test_rounds_to_cents(self):
        result = AggregationEngine.compute_relationship_amount(
            hourly("ann-h", NORTH, "17.00"), hours("1.333"), NORTH
        )

        assert result.amount == Decimal("22.66")

    def test_hourly_lines_sum_to_subtotal(self):
        """Fractional-cent rate: 10.005 regular and 15.0075 OT round to 10.01 and 15.01."""
        result = AggregationEngine.compute_relationship_amount(
            hourly("bob-h", NORTH, "10.005"), hours("1", "1"), NORTH
        )

        assert [line.amount for line in result.lines] == [Decimal("10.01"), Decimal("15.01")]
        assert result.hourly_amount == Decimal("25.02")
        assert sum(line.amount for line in result.lines) == result.amount

    def test_round_to_cents_half_up(self):
        assert round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert round_to_cents(Decimal("10.124")) == Decimal("10.12")


class TestEmployeeTotal:
    """Consolidation across tabs and relationships."""

    def test_two_relationships_same_client(self):
        review = build_review(
            batch(tab(NORTH, entry("emp-ann", {"ann-h": hours("40"), "ann-p": flat_perdiem("100")})))
        )

        assert len(review) == 1
        result = review[0]
        assert result.total == Decimal("780.00")
        assert len(result.breakdowns) == 1

        breakdown = result.breakdowns[0]
        assert breakdown.client_id == NORTH
        assert breakdown.client_name == "North Yard"
        assert breakdown.pay_type_label == "Hourly + Per Diem"
        assert breakdown.hourly_amount == Decimal("680.00")
        assert breakdown.perdiem_amount == Decimal("100.00")

    def test_across_tabs_and_clients(self):
        review = build_review(
            batch(
                tab(NORTH, entry("emp-zed", {"zed-n": hours("10")})),
                tab(SOUTH, entry("emp-zed", {"zed-s": hours("10")})),
            )
        )

        result = review[0]
        assert result.total == Decimal("410.00")
        assert [b.client_id for b in result.breakdowns] == [NORTH, SOUTH]
        assert [b.amount for b in result.breakdowns] == [Decimal("160.00"), Decimal("250.00")]
        assert result.client_names == ("North Yard", "South Dock")

    def test_multiple_tab_spans_clients(self):
        review = build_review(
            batch(
                tab(
                    MULTIPLE,
                    entry("emp-zed", {"zed-n": hours("10"), "zed-s": hours("10")}),
                )
            )
        )

        assert review[0].total == Decimal("410.00")
        assert [b.client_id for b in review[0].breakdowns] == [NORTH, SOUTH]

    def test_legacy_employee(self):
        review = build_review(batch(tab(SOUTH, entry("emp-lou", {"legacy": hours("8")}))))

        assert review[0].total == Decimal("120.00")
        assert review[0].breakdowns[0].client_id == SOUTH
        assert review[0].breakdowns[0].pay_type_label == "Hourly"

    def test_unselected_entries_do_not_count(self):
        review = build_review(
            batch(
                tab(NORTH, entry("emp-bob", {"bob-h": hours("10")})),
                tab(MULTIPLE, entry("emp-bob", {"bob-h": hours("30")}, selected=False)),
            )
        )

        assert review[0].total == Decimal("200.00")

    def test_deselected_relationship_does_not_count(self):
        review = build_review(
            batch(
                tab(
                    NORTH,
                    entry(
                        "emp-ann",
                        {"ann-h": hours("10"), "ann-p": flat_perdiem("100")},
                        selected_ids=["ann-p"],
                    ),
                )
            )
        )

        assert review[0].total == Decimal("100.00")
        assert review[0].breakdowns[0].pay_type_label == "Per Diem"

    def test_missing_relationship_contributes_zero_and_is_flagged(self):
        data = batch(
            tab(NORTH, entry("emp-bob", {"bob-h": hours("10")})),
            tab(SOUTH, entry("emp-bob", {"bob-h": hours("10")})),
        )

        review = build_review(data)

        assert review[0].total == Decimal("200.00")
        assert review[0].missing == (
            MissingRelationship(employee_id="emp-bob", tab_id=SOUTH, client_id=SOUTH),
        )
        assert AggregationEngine.find_missing_relationships(data) == [
            MissingRelationship(employee_id="emp-bob", tab_id=SOUTH, client_id=SOUTH)
        ]

    def test_zero_in_two_tabs_is_dropped(self):
        data = batch(
            tab(NORTH, entry("emp-bob"), entry("emp-ann", {"ann-h": hours("1")})),
            tab(MULTIPLE, entry("emp-bob", {"bob-h": hours("0")})),
        )

        assert [r.employee_id for r in build_review(data)] == ["emp-ann"]
        # Still aggregated, just not reviewed
        assert {r.employee_id for r in AggregationEngine.aggregate(data)} == {"emp-ann", "emp-bob"}

    def test_unknown_employee_skipped_and_flagged(self):
        data = batch(
            tab(NORTH, entry("emp-gone", {"x": hours("10")}), entry("emp-bob", {"bob-h": hours("1")})),
            tab(SOUTH, entry("emp-gone", {"x": hours("4")}), entry("emp-gone", selected=False)),
        )

        assert [r.employee_id for r in build_review(data)] == ["emp-bob"]
        assert AggregationEngine.find_missing_relationships(data) == [
            MissingRelationship(
                employee_id="emp-gone", tab_id=NORTH, client_id=NORTH, reason=UNKNOWN_EMPLOYEE
            ),
            MissingRelationship(
                employee_id="emp-gone", tab_id=SOUTH, client_id=SOUTH, reason=UNKNOWN_EMPLOYEE
            ),
        ]

    def test_first_encounter_order(self):
        review = build_review(
            batch(
                tab(NORTH, entry("emp-zed", {"zed-n": hours("1")}), entry("emp-ann", {"ann-h": hours("1")})),
                tab(SOUTH, entry("emp-lou", {"legacy": hours("1")})),
            )
        )

        assert [r.employee_id for r in review] == ["emp-zed", "emp-ann", "emp-lou"]

    def test_entry_date_and_memo_carried(self):
        review = build_review(
            batch(
                tab(
                    NORTH,
                    entry(
                        "emp-bob",
                        {"bob-h": hours("10")},
                        check_date=date(2024, 3, 20),
                        memo="Advance",
                    ),
                )
            )
        )

        assert review[0].check_date == date(2024, 3, 20)
        assert review[0].memo == "Advance"
        assert review[0].breakdowns[0].check_date == date(2024, 3, 20)


class TestBuildReview:
    """Review is a pure function of the snapshot."""

    def test_idempotent(self):
        data = batch(
            tab(NORTH, entry("emp-ann", {"ann-h": hours("40", "5", "8")}), entry("emp-bob")),
            tab(SOUTH, entry("emp-zed", {"zed-s": hours("12")})),
            tab(MULTIPLE, entry("emp-zed", {"zed-n": hours("3")})),
        )

        first = build_review(data)
        second = build_review(data)

        assert first == second
        assert [r.employee_id for r in first] == [r.employee_id for r in second]

    def test_does_not_mutate_snapshot(self):
        directory = standard_directory()
        data = batch(tab(NORTH, entry("emp-ann", {"ann-h": hours("10")})), directory=directory)

        build_review(data)

        assert data.directory is directory
        assert data.tabs[0].entries[0].inputs["ann-h"].hours == Decimal("10")

    def test_pay_type_labels(self):
        assert pay_type_label({PayType.HOURLY}) == "Hourly"
        assert pay_type_label({PayType.PERDIEM}) == "Per Diem"
        assert pay_type_label({PayType.HOURLY, PayType.PERDIEM}) == "Hourly + Per Diem"
