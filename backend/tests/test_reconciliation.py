"""
Tests for the fleet reconciliation engine.
"""

import pytest

from conftest import make_fleet, make_record
from schemas import UNKNOWN_OWNER
from services import reconciliation_service
from services.reconciliation_service import find_fleet_match, normalize, reconcile, summarize


# ============================================
# Normalizer
# ============================================

class TestNormalize:
    def test_strips_spaces_and_hyphens(self):
        assert normalize("AB-123 CD") == "AB123CD"
        assert normalize(" ab 123\tcd\n") == "AB123CD"

    def test_strips_unicode_dashes(self):
        assert normalize("AB‐123‑CD") == "AB123CD"
        assert normalize("AB – 123 — CD") == "AB123CD"

    def test_absent_input(self):
        assert normalize(None) == ""
        assert normalize("") == ""

    @pytest.mark.parametrize("value", ["AB-123 CD", "  x-y-z ", "already", "ñandú 12-3", "--", "A.B/C"])
    def test_idempotent(self, value):
        assert normalize(normalize(value)) == normalize(value)

    def test_keeps_other_punctuation(self):
        assert normalize("ab.12/3") == "AB.12/3"


# ============================================
# Matching precedence
# ============================================

class TestFindFleetMatch:
    def test_tag_wins_over_plate(self):
        by_plate = make_fleet(plate="AB123CD", owner="Plate Owner", unit_code="P")
        by_tag = make_fleet(plate="ZZ999ZZ", owner="Tag Owner", tag="TAG0001", unit_code="T")
        record = make_record("r1", plate="AB123CD", tag="TAG0001")

        assert find_fleet_match(record, [by_plate, by_tag]) is by_tag

    def test_fleet_tag_inside_record_tag(self):
        fleet = [make_fleet(plate="AA000AA", tag="AB12")]
        record = make_record("r1", tag="AB1234")

        assert find_fleet_match(record, fleet) is fleet[0]

    def test_record_tag_inside_fleet_tag(self):
        fleet = [make_fleet(plate="AA000AA", tag="AB1234XY")]
        record = make_record("r1", tag="AB123")

        assert find_fleet_match(record, fleet) is fleet[0]

    def test_tag_formatting_is_ignored(self):
        fleet = [make_fleet(plate="AA000AA", tag="ab-12 34")]
        record = make_record("r1", tag="AB1234")

        assert find_fleet_match(record, fleet) is fleet[0]

    def test_empty_fleet_tag_never_matches(self):
        fleet = [make_fleet(plate="QQ111QQ", tag=""), make_fleet(plate="QQ222QQ", tag=None)]
        record = make_record("r1", tag="TAG12345")

        assert find_fleet_match(record, fleet) is None

    def test_first_match_in_roster_order(self):
        first = make_fleet(plate="AA111AA", tag="12345", owner="First")
        second = make_fleet(plate="AA222AA", tag="123456", owner="Second")
        record = make_record("r1", tag="1234567")

        assert find_fleet_match(record, [first, second]) is first
        assert find_fleet_match(record, [second, first]) is second

    def test_plate_requires_exact_equality(self):
        fleet = [make_fleet(plate="AB123CDE")]
        record = make_record("r1", plate="AB123CD")

        assert find_fleet_match(record, fleet) is None

    def test_plate_match_when_tag_finds_nothing(self):
        fleet = [make_fleet(plate="AB123CD", tag="99999999")]
        record = make_record("r1", plate="ab-123-cd", tag="11111111")

        assert find_fleet_match(record, fleet) is fleet[0]

    def test_short_plate_never_matches(self):
        fleet = [make_fleet(plate="AB12")]
        record = make_record("r1", plate="AB12")

        assert find_fleet_match(record, fleet) is None

    def test_short_tag_never_matches(self):
        fleet = [make_fleet(plate="AA000AA", tag="AB12")]
        record = make_record("r1", tag="AB-12")

        assert find_fleet_match(record, fleet) is None


# ============================================
# reconcile()
# ============================================

class TestReconcile:
    def test_end_to_end_plate_match(self):
        record = make_record("r1", plate="AB123CD", tag="", owner="?")
        fleet = [make_fleet(plate="AB123CD", owner="ACME", unit_code="U1")]

        [result] = reconcile([record], fleet)

        assert result.is_verified is True
        assert result.owner == "ACME"
        assert result.unit_code == "U1"
        assert result.registered_owner == "ACME"

    def test_unknown_owner_is_not_propagated(self):
        record = make_record("r1", plate="AB123CD", owner="Juan Perez")
        fleet = [make_fleet(plate="AB123CD", owner=UNKNOWN_OWNER)]

        [result] = reconcile([record], fleet)

        assert result.owner == "Juan Perez"
        assert result.registered_owner == UNKNOWN_OWNER
        assert result.is_verified is True

    def test_match_keeps_record_values_the_fleet_lacks(self):
        record = make_record("r1", plate="XX", tag="TAG-55555", owner="Driver")
        fleet = [make_fleet(plate="", owner="", tag="TAG55555")]

        [result] = reconcile([record], fleet)

        assert result.plate == "XX"
        assert result.owner == "Driver"
        assert result.tag == "TAG55555"
        assert result.unit_code == ""
        assert result.registered_owner == UNKNOWN_OWNER
        assert result.is_verified is True

    def test_unmatched_record(self):
        record = make_record("r1", plate="NOPE123", tag="00000000", owner="Someone",
                             unit_code="stale", registered_owner="stale", is_verified=True)

        [result] = reconcile([record], [make_fleet(plate="AB123CD")])

        assert result.is_verified is False
        assert result.unit_code == ""
        assert result.registered_owner is None
        assert result.plate == "NOPE123"
        assert result.owner == "Someone"
        assert result.tag == "00000000"

    def test_pure_and_repeatable(self):
        records = [
            make_record("r1", plate="AB123CD"),
            make_record("r2", tag="TAG12345"),
            make_record("r3", plate="ZZ"),
        ]
        fleet = [
            make_fleet(plate="AB123CD", owner="ACME", unit_code="U1"),
            make_fleet(plate="CD456EF", owner="Beta", tag="TAG12345"),
        ]
        before = [r.model_dump() for r in records]

        first = reconcile(records, fleet)
        second = reconcile(records, fleet)

        assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
        assert [r.model_dump() for r in records] == before

    def test_rerun_against_new_roster_drops_stale_match(self):
        record = make_record("r1", plate="AB123CD")
        [matched] = reconcile([record], [make_fleet(plate="AB123CD", owner="ACME", unit_code="U1")])

        [rerun] = reconcile([matched], [make_fleet(plate="OTHER99", owner="Beta")])

        assert rerun.is_verified is False
        assert rerun.unit_code == ""
        assert rerun.registered_owner is None

    def test_failing_record_degrades_to_unverified(self, monkeypatch):
        real_find = reconciliation_service.find_fleet_match

        def flaky_find(record, fleet):
            if record.id == "bad":
                raise ValueError("corrupt record")
            return real_find(record, fleet)

        monkeypatch.setattr(reconciliation_service, "find_fleet_match", flaky_find)
        fleet = [make_fleet(plate="AB123CD", owner="ACME")]

        good, bad = reconcile([make_record("good", plate="AB123CD"), make_record("bad", plate="AB123CD")], fleet)

        assert good.is_verified is True
        assert bad.is_verified is False
        assert bad.unit_code == ""

    def test_summarize(self):
        fleet = [make_fleet(plate="AB123CD")]
        results = reconcile([make_record("a", plate="AB123CD"), make_record("b", plate="NOPE999")], fleet)

        summary = summarize(results)

        assert (summary.total, summary.verified, summary.unverified) == (2, 1, 1)

