import pytest

from almox.models.enums import DocumentType
from almox.services.codes import FormatError, ParsedCode, format_code, parse_code
from almox.services.codes.formatter import TEMPLATES, CodeFormatter


class TestFormatCode:
    def test_generic_document(self):
        assert format_code(DocumentType.PURCHASE_ORDER, "00", 1) == "ODC-AL-00-0001"
        assert format_code(DocumentType.DOCUMENT_TRANSMITTAL, "A1B2", 9999) == "GRD-AL-A1B2-9999"

    def test_purchase_requisition(self):
        assert format_code(DocumentType.PURCHASE_REQUISITION, "1000", 1) == "SCO-AL-1000-0001"

    def test_manifests_accept_long_scope_codes(self):
        assert format_code(DocumentType.OUTBOUND_MANIFEST, "ALM001", 2) == "ROM-AL-ALM001-0002"
        assert format_code(DocumentType.RETURN_MANIFEST, "PROD100", 25) == "RDV-AL-PROD100-0025"

    def test_inventory_item_is_bare_five_digits(self):
        assert format_code(DocumentType.INVENTORY_ITEM, "", 10040) == "10040"

    def test_generic_scope_too_long_is_rejected_not_truncated(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.SERVICE_ORDER, "ALMOX1", 1)

    def test_generic_scope_lowercase_rejected(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.PURCHASE_ORDER, "ab", 1)

    def test_requisition_scope_over_six_chars_rejected(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.PURCHASE_REQUISITION, "1234567", 1)

    def test_sequence_overflow(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.OUTBOUND_MANIFEST, "ALM001", 10000)
        with pytest.raises(FormatError):
            format_code(DocumentType.INVENTORY_ITEM, "", 100000)

    def test_negative_sequence(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.OUTBOUND_MANIFEST, "ALM001", -1)

    def test_empty_manifest_scope_rejected(self):
        with pytest.raises(FormatError):
            format_code(DocumentType.OUTBOUND_MANIFEST, "", 1)


class TestParseCode:
    def test_return_manifest(self):
        assert parse_code("RDV-AL-PROD100-0025") == ParsedCode(DocumentType.RETURN_MANIFEST, "PROD100", 25)

    def test_requisition_wins_over_generic_grammar(self):
        assert parse_code("SCO-AL-00-0001") == ParsedCode(DocumentType.PURCHASE_REQUISITION, "00", 1)

    def test_generic_document(self):
        assert parse_code("OSA-AL-01-0120") == ParsedCode(DocumentType.SERVICE_ORDER, "01", 120)

    def test_inventory_item(self):
        assert parse_code("10040") == ParsedCode(DocumentType.INVENTORY_ITEM, "", 10040)

    def test_manifest_scope_may_contain_dashes(self):
        parsed = parse_code("ROM-AL-ALM001-X-0003")
        assert parsed is not None
        assert parsed.scope_code == "ALM001-X"
        assert parsed.sequence == 3

    @pytest.mark.parametrize(
        "code",
        [
            "",
            "ROM-AL-ALM001-12",
            "ROM-AL-ALM001-00012",
            "ROM-AL-ALM001-0001\n",
            " ROM-AL-ALM001-0001",
            "ROM-XX-ALM001-0001",
            "rom-al-alm001-0001",
            "1004",
            "100400",
            "XYZ-AL-0001",
            "ODC-AL-00-٠٠٠١",  # Arabic-Indic digits
        ],
    )
    def test_rejects_anything_not_exactly_matching(self, code):
        assert parse_code(code) is None

    def test_unknown_three_letter_prefix_is_not_a_document_type(self):
        assert parse_code("XYZ-AL-00-0001") is None


class TestCodeFormatter:
    def test_round_trip_for_every_template(self):
        formatter = CodeFormatter()
        scopes = {
            DocumentType.PURCHASE_ORDER: "00",
            DocumentType.SERVICE_ORDER: "01",
            DocumentType.DOCUMENT_TRANSMITTAL: "XX",
            DocumentType.PURCHASE_REQUISITION: "1000",
            DocumentType.OUTBOUND_MANIFEST: "ALM001",
            DocumentType.RETURN_MANIFEST: "PROD100",
            DocumentType.INVENTORY_ITEM: "",
        }
        for document_type, scope_code in scopes.items():
            sequence = TEMPLATES[document_type].sequence_floor + 7
            code = formatter.format(document_type, scope_code, sequence)
            assert formatter.parse(code) == ParsedCode(document_type, scope_code, sequence)

    def test_matches_is_per_document_type(self):
        formatter = CodeFormatter()
        assert formatter.matches(DocumentType.OUTBOUND_MANIFEST, "ROM-AL-ALM001-0001")
        assert not formatter.matches(DocumentType.RETURN_MANIFEST, "ROM-AL-ALM001-0001")

    def test_prefix(self):
        assert TEMPLATES[DocumentType.OUTBOUND_MANIFEST].prefix("ALM001") == "ROM-AL-ALM001-"
        assert TEMPLATES[DocumentType.INVENTORY_ITEM].prefix("") == ""

    def test_missing_template(self):
        formatter = CodeFormatter({DocumentType.INVENTORY_ITEM: TEMPLATES[DocumentType.INVENTORY_ITEM]})
        with pytest.raises(FormatError):
            formatter.template(DocumentType.OUTBOUND_MANIFEST)
        assert formatter.parse("ROM-AL-ALM001-0001") is None
