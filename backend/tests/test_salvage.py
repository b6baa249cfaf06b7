"""
Text Salvage Tests

Verifies:
1. Plain text passes through the early stages unchanged; PDFs are read page by page
2. Markup is rendered with script and style content dropped
3. Text operators are recovered from damaged document bytes, keyword windows from noise
4. Unreadable input yields empty text unless sample data is allowed
"""

import pytest
from unittest.mock import MagicMock

from credit_dispute.services.parsing import salvage as salvage_module
from credit_dispute.services.parsing.salvage import TextSalvage, salvage_text
from credit_dispute.services.parsing.sample_data import SAMPLE_REPORT_TEXT


@pytest.fixture
def salvage():
    return TextSalvage(allow_sample_data=False)


class TestPlainText:
    """Readable text input."""

    def test_plain_text_is_kept(self, salvage):
        text = "TransUnion Credit Report\nName: JOHN DOE\nBalance: $500"
        result = salvage.salvage(text, "text")

        assert "TransUnion Credit Report" in result.text
        assert "Balance: $500" in result.text
        assert result.is_sample_data is False

    def test_bytes_are_decoded(self, salvage):
        result = salvage.salvage(SAMPLE_REPORT_TEXT.encode("utf-8"), "text")

        assert "MIDLAND CREDIT MANAGEMENT" in result.text
        assert result.stage != "none"


class TestPdfText:
    """pdfplumber text layer."""

    @pytest.fixture
    def pages(self, monkeypatch):
        pages = [MagicMock(), MagicMock(), MagicMock()]
        pages[0].extract_text.return_value = "TransUnion Credit Report\nName: JOHN DOE"
        pages[1].extract_text.return_value = None
        pages[2].extract_text.return_value = "Account Name: CAPITAL ONE\nBalance: $1,250"

        pdf = MagicMock()
        pdf.pages = pages
        opener = MagicMock()
        opener.return_value.__enter__.return_value = pdf
        monkeypatch.setattr(salvage_module.pdfplumber, "open", opener)
        return pages

    def test_pages_extracted(self, pages):
        result = TextSalvage(allow_sample_data=False).salvage(b"%PDF-1.4 binary", "pdf")

        assert result.stage == "pdf_text"
        assert "Name: JOHN DOE" in result.text
        assert "Account Name: CAPITAL ONE" in result.text

    def test_page_limit(self, pages):
        result = TextSalvage(allow_sample_data=False, max_pages=1).salvage(b"%PDF-1.4 binary", "pdf")

        assert result.stage == "pdf_text"
        assert "CAPITAL ONE" not in result.text
        pages[2].extract_text.assert_not_called()

    def test_unreadable_pdf_falls_through(self, monkeypatch, salvage):
        monkeypatch.setattr(salvage_module.pdfplumber, "open", MagicMock(side_effect=ValueError("bad xref")))
        data = b"%PDF-1.4\nBT (TransUnion Account Summary Balance 1250) Tj ET\n%%EOF"

        result = salvage.salvage(data, "pdf")

        assert result.stage == "stripped"
        assert "TransUnion Account Summary" in result.text


class TestMarkup:
    """HTML uploads."""

    def test_html_rendered_without_scripts(self, salvage):
        html = (
            "<html><head><title>Report</title><style>p {color: red}</style></head><body>"
            "<script>var trackingSecret = 'abc';</script>"
            "<p>TransUnion Credit Report</p>"
            "<table><tr><td>Account Name</td><td>CAPITAL ONE</td></tr>"
            "<tr><td>Balance</td><td>$1,250</td></tr></table>"
            "</body></html>"
        )
        result = salvage.salvage(html, "html")

        assert result.stage == "rendered_markup"
        assert "TransUnion Credit Report" in result.text
        assert "CAPITAL ONE" in result.text
        assert "trackingSecret" not in result.text
        assert "color: red" not in result.text
        assert "<td>" not in result.text


class TestDamagedBytes:
    """Byte-level recovery."""

    def test_text_operators_recovered(self, salvage):
        data = (
            b"\x00\x01\x02 1 0 obj << /Type /Page /Length 64 >> stream\n"
            b"BT /F1 12 Tf (TransUnion Account Summary) Tj ET\n"
            b"BT (Balance 1250 Payment Status Current) Tj ET\n"
            b"endstream endobj \xff\xfe\xfd"
        )
        result = salvage.salvage(data, "text")

        assert result.stage == "stripped"
        assert "TransUnion Account Summary" in result.text
        assert "Balance 1250 Payment Status Current" in result.text
        assert "\x00" not in result.text

    def test_keyword_windows_from_noise(self, salvage):
        noise = b"#$%&*+=~^" * 120
        data = noise + b" ACCOUNT CAPITAL ONE BALANCE 1250 " + noise

        result = salvage.salvage(data, "text")

        assert result.stage == "keyword_windows"
        assert "ACCOUNT CAPITAL ONE BALANCE 1250" in result.text
        assert len(result.text) < len(data)

    def test_noise_only_yields_empty(self, salvage):
        result = salvage.salvage(b"\x00\x01\x02\x03\xff\xfe" * 20, "text")

        assert result.text == ""
        assert result.stage == "none"


class TestEmptyInput:
    """Nothing to salvage."""

    @pytest.mark.parametrize("data", [b"", "", None])
    def test_empty_input(self, salvage, data):
        result = salvage.salvage(data, "text")

        assert result.text == ""
        assert result.stage == "none"
        assert result.is_sample_data is False

    def test_sample_data_is_flagged(self):
        result = salvage_text(b"", "text", allow_sample_data=True)

        assert result.stage == "sample_data"
        assert result.is_sample_data is True
        assert result.text == SAMPLE_REPORT_TEXT
