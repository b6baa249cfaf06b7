"""
Bureau Detection Tests

Verifies:
1. Presence flags follow the three pattern families
2. The primary bureau is always one of the present bureaus
3. No primary bureau is invented without a signal
4. Free-text spellings normalize to one bureau
"""

import pytest

from credit_dispute.models.ssot import Bureau, BureausPresent
from credit_dispute.services.parsing.bureau_detector import (
    attribute_bureau,
    detect_bureau_in_block,
    detect_bureaus,
    normalize_bureau_name,
)
from credit_dispute.services.parsing.sample_data import SAMPLE_REPORT_TEXT


class TestPresence:
    """Which bureaus a report mentions."""

    def test_single_bureau_is_primary(self):
        detection = detect_bureaus(SAMPLE_REPORT_TEXT)

        assert detection.bureaus_present.transunion is True
        assert detection.bureaus_present.experian is False
        assert detection.bureaus_present.equifax is False
        assert detection.primary_bureau == Bureau.TRANSUNION

    def test_abbreviations_are_case_sensitive(self):
        detection = detect_bureaus("The tu tuc exp words should not count")

        assert detection.bureaus_present.count() == 0
        assert detection.primary_bureau is None

    def test_abbreviations_need_bureau_context(self):
        detection = detect_bureaus("Card EXP 12/2025, ref TU-58213477")
        assert detection.bureaus_present.count() == 0

        detection = detect_bureaus("Source: TU\nEFX credit report")
        assert detection.bureaus_present.transunion is True
        assert detection.bureaus_present.equifax is True
        assert detection.bureaus_present.experian is False

    def test_no_signal_gives_no_primary(self):
        detection = detect_bureaus("Consumer credit file\nName: JOHN DOE")

        assert detection.bureaus_present.present() == []
        assert detection.primary_bureau is None


class TestPrimaryBureau:
    """Primary bureau policy for multi-bureau reports."""

    def test_earliest_header_phrase_wins(self):
        text = (
            "Experian data furnished. Experian reference.\n"
            "Equifax Credit Report\n"
            "TransUnion Credit Report\n"
            "Experian Experian Experian"
        )
        detection = detect_bureaus(text)

        assert detection.bureaus_present.count() == 3
        assert detection.primary_bureau == Bureau.EQUIFAX

    def test_strict_maximum_count_without_header(self):
        detection = detect_bureaus("Experian, Experian and Equifax accounts")

        assert detection.primary_bureau == Bureau.EXPERIAN

    def test_count_tie_gives_no_primary(self):
        detection = detect_bureaus("Experian and Equifax accounts")

        assert detection.bureaus_present.count() == 2
        assert detection.primary_bureau is None

    def test_primary_is_always_present(self):
        texts = [
            SAMPLE_REPORT_TEXT,
            "Equifax Credit Report with TransUnion mention",
            "EXP and EFX and TU",
            "",
        ]
        for text in texts:
            detection = detect_bureaus(text)
            if detection.primary_bureau is not None:
                assert detection.bureaus_present.is_present(detection.primary_bureau)


class TestBlockAttribution:
    """Bureau of a single account or inquiry block."""

    def test_explicit_mention_in_block(self):
        assert detect_bureau_in_block("CHASE CARD\nReported by: Equifax") == Bureau.EQUIFAX

    def test_only_bureau_of_report(self):
        present = BureausPresent(experian=True)
        assert attribute_bureau("CHASE CARD\nBalance: $100", present) == Bureau.EXPERIAN

    def test_ambiguous_block_is_unattributed(self):
        present = BureausPresent(experian=True, equifax=True)
        assert attribute_bureau("CHASE CARD\nBalance: $100", present) is None


class TestNormalization:
    """normalize_bureau_name()."""

    @pytest.mark.parametrize("spelling", [
        "TransUnion", "Trans Union", "TRANSUNION", "TU", "transunion.com", "TransUnion LLC",
    ])
    def test_transunion_spellings(self, spelling):
        assert normalize_bureau_name(spelling) == Bureau.TRANSUNION

    @pytest.mark.parametrize("spelling", ["Equifax", "EFX", "Equifax Information Services LLC"])
    def test_equifax_spellings(self, spelling):
        assert normalize_bureau_name(spelling) == Bureau.EQUIFAX

    @pytest.mark.parametrize("spelling", ["Experian", "EXP", "experian.com"])
    def test_experian_spellings(self, spelling):
        assert normalize_bureau_name(spelling) == Bureau.EXPERIAN

    def test_unknown_spelling(self):
        assert normalize_bureau_name("Acme Credit Services") is None
        assert normalize_bureau_name(None) is None
        assert normalize_bureau_name("") is None
