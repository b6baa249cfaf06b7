"""
Field Extractor Tests

Runs the parsing layer over the bundled sample report and checks each
extractor's output, plus the keyword-block fallbacks for unstructured text.
"""

import pytest

from credit_dispute.models.ssot import AccountSource, AccountStatus, Bureau, BureausPresent
from credit_dispute.services.parsing import (
    extract_accounts,
    extract_inquiries,
    extract_personal_info,
    extract_public_records,
    parse_report_text,
)
from credit_dispute.services.parsing.sample_data import SAMPLE_REPORT_TEXT


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def report():
    return parse_report_text(SAMPLE_REPORT_TEXT)


@pytest.fixture
def accounts_by_name(report):
    return {a.account_name: a for a in report.accounts}


# =============================================================================
# ACCOUNTS
# =============================================================================

class TestAccountExtraction:
    """Structured account blocks."""

    def test_all_account_blocks_found(self, report):
        names = [a.account_name for a in report.accounts]
        assert names == [
            "CAPITAL ONE BANK USA",
            "MIDLAND CREDIT MANAGEMENT",
            "NAVIENT SOLUTIONS",
            "DEPT OF ED / AIDVANTAGE",
        ]

    def test_revolving_account_fields(self, accounts_by_name):
        account = accounts_by_name["CAPITAL ONE BANK USA"]

        assert account.account_number == "5178XXXXXXXX1234"
        assert account.account_type == "Revolving Credit Card"
        assert account.balance == 1250.0
        assert account.credit_limit == 5000.0
        assert account.payment_status == "Current"
        assert account.status == AccountStatus.OPEN
        assert account.date_opened == "06/15/2016"
        assert account.date_reported == "02/15/2024"
        assert account.is_negative is False
        assert account.source == AccountSource.STRUCTURED

    def test_collection_account_is_negative(self, accounts_by_name):
        account = accounts_by_name["MIDLAND CREDIT MANAGEMENT"]

        assert account.balance == 640.0
        assert account.is_negative is True
        assert "Placed for collection" in account.remarks

    def test_late_account_is_negative(self, accounts_by_name):
        account = accounts_by_name["NAVIENT SOLUTIONS"]

        assert account.balance == 12480.40
        assert account.payment_status == "30 days late"
        assert account.is_negative is True

    def test_accounts_attributed_to_only_bureau(self, report):
        assert all(a.bureau == Bureau.TRANSUNION for a in report.accounts)

    def test_current_balance_alias(self, accounts_by_name):
        account = accounts_by_name["DEPT OF ED / AIDVANTAGE"]
        assert account.current_balance == account.balance == 12480.0


class TestAccountFallbacks:
    """Unstructured text still yields accounts where possible."""

    def test_creditor_scan(self):
        accounts = extract_accounts("Your CHASE account ending 1234 shows a balance.", BureausPresent())

        assert len(accounts) == 1
        assert accounts[0].account_name == "CHASE"
        assert accounts[0].source == AccountSource.CREDITOR_SCAN

    def test_placeholder_accounts(self):
        accounts = extract_accounts("The file lists a mortgage and an auto loan.", BureausPresent())

        types = [a.account_type for a in accounts]
        assert "Mortgage" in types
        assert "Auto Loan" in types
        assert all(a.source == AccountSource.PLACEHOLDER for a in accounts)

    def test_nothing_recognizable(self):
        assert extract_accounts("Nothing to see here.", BureausPresent()) == []


# =============================================================================
# INQUIRIES / PUBLIC RECORDS
# =============================================================================

class TestInquiryExtraction:
    """Inquiry section rows."""

    def test_sample_inquiries(self, report):
        rows = [(i.inquiry_date, i.creditor) for i in report.inquiries]
        assert rows == [("01/05/2022", "CAPITAL ONE"), ("03/18/2023", "AMERICAN EXPRESS")]
        assert all(i.bureau == Bureau.TRANSUNION for i in report.inquiries)

    def test_creditor_first_layout(self):
        text = "INQUIRIES\nCAPITAL ONE 01/05/2022\nDISCOVER BANK 02/11/2023\n"
        inquiries = extract_inquiries(text, BureausPresent(equifax=True))

        assert [i.creditor for i in inquiries] == ["CAPITAL ONE", "DISCOVER BANK"]
        assert inquiries[1].inquiry_date == "02/11/2023"
        assert inquiries[0].bureau == Bureau.EQUIFAX

    def test_no_inquiry_section(self):
        assert extract_inquiries("ACCOUNTS\nCHASE 01/05/2022", BureausPresent()) == []

    def test_tabular_layout(self):
        text = "INQUIRIES\nCreditor\tDate\nCAPITAL ONE\t2022-01-05\n2023-02-11 | DISCOVER BANK\n"
        inquiries = extract_inquiries(text, BureausPresent(experian=True))

        assert [(i.creditor, i.inquiry_date) for i in inquiries] == [
            ("CAPITAL ONE", "2022-01-05"),
            ("DISCOVER BANK", "2023-02-11"),
        ]

    def test_placeholder_creditors_dropped(self):
        text = "INQUIRIES\n01/05/2022 N/A\n02/11/2023 -\n03/01/2023 X\n04/02/2023 CAPITAL ONE\n"

        assert [i.creditor for i in extract_inquiries(text, BureausPresent())] == ["CAPITAL ONE"]

    def test_keyword_blocks_without_header(self):
        text = (
            "TransUnion\n\n"
            "CAPITAL ONE   01/15/2020\n"
            "Inquiry Date: 02/01/2020 Creditor: DISCOVER BANK\n"
        )
        inquiries = extract_inquiries(text, BureausPresent(transunion=True))

        assert [(i.creditor, i.inquiry_date) for i in inquiries] == [
            ("CAPITAL ONE", "01/15/2020"),
            ("DISCOVER BANK", "02/01/2020"),
        ]
        assert all(i.bureau == Bureau.TRANSUNION for i in inquiries)

    def test_creditor_name_alias(self, report):
        assert report.inquiries[0].creditor_name == "CAPITAL ONE"


class TestPublicRecordExtraction:
    """Public record blocks."""

    def test_sample_bankruptcy(self, report):
        assert len(report.public_records) == 1
        record = report.public_records[0]

        assert record.record_type == "Chapter 7 Bankruptcy"
        assert record.date_reported == "05/14/2013"
        assert record.status == "Discharged"
        assert record.bureau == Bureau.TRANSUNION

    def test_none_reported(self):
        text = "PUBLIC RECORDS\nNo public records reported\n"
        assert extract_public_records(text, BureausPresent()) == []

    def test_prose_is_not_a_record(self):
        text = "PUBLIC RECORDS\nAll items paid as agreed. Paid.\n"
        assert extract_public_records(text, BureausPresent()) == []

    def test_type_without_other_fields_is_not_a_record(self):
        text = "PUBLIC RECORDS\nA Tax Lien was mentioned in passing here.\n"
        assert extract_public_records(text, BureausPresent()) == []

    def test_keyword_blocks_without_header(self):
        text = (
            "Experian\n\n"
            "Record Type: Tax Lien\nDate Filed: 03/02/2016\nStatus: Released\n\n"
            "CHASE\nAccount Number: XXXX1234\nRemarks: Included in Bankruptcy\nStatus: Closed\n"
        )
        records = extract_public_records(text, BureausPresent(experian=True))

        assert len(records) == 1
        assert records[0].record_type == "Tax Lien"
        assert records[0].date_reported == "03/02/2016"
        assert records[0].bureau == Bureau.EXPERIAN


# =============================================================================
# PERSONAL INFO
# =============================================================================

class TestPersonalInfoExtraction:
    """Consumer identity block."""

    def test_sample_personal_info(self, report):
        info = report.personal_info

        assert info.name == "JANE Q SAMPLE"
        assert info.address == "1420 MAPLE AVE"
        assert info.city == "SPRINGFIELD"
        assert info.state == "IL"
        assert info.zip_code == "62704"
        assert info.ssn_last4 == "1234"
        assert info.phone == "(217) 555-0142"
        assert info.employers == ["ACME LOGISTICS"]
        assert info.aliases == ["JANE SAMPLE"]
        assert info.multi_value_fields == {}

    def test_multi_value_name(self):
        info = extract_personal_info("Name: JOHN DOE, JOHNNY DOE\nAddress: 12 OAK ST")

        assert info.multi_value_fields.get("name") == ["JOHN DOE", "JOHNNY DOE"]

    def test_surname_first_is_single_name(self):
        info = extract_personal_info("Name: DOE, JOHN\n")

        assert "name" not in info.multi_value_fields

    def test_empty_text(self):
        info = extract_personal_info("")
        assert info.is_empty()


class TestReportLevel:
    """Report-wide values."""

    def test_report_number_and_bureau(self, report):
        assert report.report_number == "TU-58213477"
        assert report.primary_bureau == Bureau.TRANSUNION
        assert report.raw_text == SAMPLE_REPORT_TEXT
