import pytest

from workshop_ledger.config import DEFAULT_COUNTERPARTY_BUCKETS
from workshop_ledger.services.attribution import (
    CounterpartyBuckets,
    add_paid_by,
    extract_paid_by,
    receiver_bucket,
    strip_paid_by,
)


NOTES = [
    "Paid for parts",
    "",
    None,
    "  leading spaces kept",
    "brackets [inside] are fine",
    "PAID_BY:not a tag",
]


class TestPaidByTag:
    @pytest.mark.parametrize("note", NOTES)
    def test_strip_recovers_original_note(self, note):
        tagged = add_paid_by("Tanmeet", note)
        assert strip_paid_by(tagged) == note

    @pytest.mark.parametrize("note", NOTES)
    def test_extract_recovers_name(self, note):
        assert extract_paid_by(add_paid_by("Bank Account", note)) == "Bank Account"

    def test_stored_format(self):
        assert add_paid_by("Tanmeet", "Paid for parts") == "[PAID_BY:Tanmeet] Paid for parts"
        assert add_paid_by("Tanmeet", None) == "[PAID_BY:Tanmeet]"

    def test_blank_note_survives_round_trip(self):
        assert add_paid_by("Tanmeet", "") == "[PAID_BY:Tanmeet] "
        assert strip_paid_by(add_paid_by("Tanmeet", "")) == ""
        assert strip_paid_by(add_paid_by("Tanmeet", None)) is None
        assert add_paid_by(None, "") == ""
        assert strip_paid_by("") == ""

    def test_no_payer_is_a_no_op(self):
        assert add_paid_by(None, "Diesel") == "Diesel"
        assert add_paid_by("", "Diesel") == "Diesel"

    def test_untagged_note(self):
        assert extract_paid_by("Diesel") is None
        assert strip_paid_by("Diesel") == "Diesel"
        assert extract_paid_by(None) is None

    def test_tag_must_be_a_prefix(self):
        note = "see [PAID_BY:Nitesh]"
        assert extract_paid_by(note) is None
        assert strip_paid_by(note) == note


class TestReceiverBucket:
    def test_missing_receiver_is_unknown_not_a_person(self):
        assert receiver_bucket(None) == "Unknown"
        assert receiver_bucket("   ") == "Unknown"

    def test_receiver_is_trimmed(self):
        assert receiver_bucket(" Nitesh ") == "Nitesh"


class TestCounterpartyBuckets:
    def test_aliases_are_case_insensitive(self):
        buckets = CounterpartyBuckets(DEFAULT_COUNTERPARTY_BUCKETS)

        assert buckets.bucket_for("NITESH") == "Nitesh"
        assert buckets.bucket_for("bank") == "Bank Account"
        assert buckets.bucket_for("Bank Account") == "Bank Account"

    def test_everything_else_is_untracked(self):
        buckets = CounterpartyBuckets(DEFAULT_COUNTERPARTY_BUCKETS)

        assert buckets.bucket_for("Ravi") == "untracked"
        assert buckets.bucket_for(None) == "untracked"

    def test_buckets_come_from_configuration(self):
        buckets = CounterpartyBuckets({"Ravi": ["ravi k"], "Petty Cash": []})

        assert buckets.bucket_for("ravi k") == "Ravi"
        assert buckets.bucket_for("petty cash") == "Petty Cash"
        assert buckets.bucket_for("Nitesh") == "untracked"
        assert buckets.empty_totals() == {"Ravi": 0, "Petty Cash": 0, "untracked": 0}
