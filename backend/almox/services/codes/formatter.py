"""Code templates: rendering and exact parsing of document codes.

Grammars (ASCII digits only, full-string match):

    generic document      ^[A-Z]{3}-AL-[0-9A-Z]{2,4}-\\d{4}$
    purchase requisition  ^SCO-AL-.{1,6}-\\d{4}$
    romaneio              ^(ROM|RDV)-AL-.+-\\d{4}$
    inventory item        ^\\d{5}$
"""

import re
from dataclasses import dataclass

from almox.models.enums import GENERIC_DOCUMENT_TYPES, DocumentType
from almox.services.codes.exceptions import FormatError

SECTOR = "AL"

GENERIC_DOCUMENT_GRAMMAR = re.compile(r"^(?P<type>[A-Z]{3})-AL-(?P<scope>[0-9A-Z]{2,4})-(?P<seq>\d{4})$", re.ASCII)
REQUISITION_GRAMMAR = re.compile(r"^(?P<type>SCO)-AL-(?P<scope>.{1,6})-(?P<seq>\d{4})$", re.ASCII)
MANIFEST_GRAMMAR = re.compile(r"^(?P<type>ROM|RDV)-AL-(?P<scope>.+)-(?P<seq>\d{4})$", re.ASCII)
INVENTORY_GRAMMAR = re.compile(r"^(?P<seq>\d{5})$", re.ASCII)


@dataclass(frozen=True)
class ScopeKey:
    """Independent numbering lane."""

    document_type: DocumentType
    scope_code: str

    def __str__(self) -> str:
        return f"{self.document_type.value}:{self.scope_code}"


@dataclass(frozen=True)
class ParsedCode:
    document_type: DocumentType
    scope_code: str
    sequence: int

    @property
    def scope_key(self) -> ScopeKey:
        return ScopeKey(self.document_type, self.scope_code)


@dataclass(frozen=True)
class CodeTemplate:
    """Shape of one document type's codes.

    sequence_floor is the value the first allocation increments from;
    repair_base is the first code a repair assigns.
    """

    document_type: DocumentType
    grammar: re.Pattern[str]
    scope_pattern: re.Pattern[str]
    sequence_digits: int = 4
    sequence_floor: int = 0
    repair_base: int = 1
    placeholder_scope: str | None = None

    @property
    def scoped(self) -> bool:
        return self.document_type is not DocumentType.INVENTORY_ITEM

    @property
    def max_sequence(self) -> int:
        return 10**self.sequence_digits - 1

    def prefix(self, scope_code: str) -> str:
        """Leading part shared by every code of the scope ("" when unscoped)."""
        if not self.scoped:
            return ""
        return f"{self.document_type.value}-{SECTOR}-{scope_code}-"

    def check_scope(self, scope_code: str) -> None:
        if not self.scope_pattern.fullmatch(scope_code):
            raise FormatError(f"Scope code {scope_code!r} does not fit the {self.document_type.value} template")

    def check_sequence(self, sequence: int) -> None:
        if sequence < 0:
            raise FormatError(f"Negative sequence {sequence} for {self.document_type.value}")
        if sequence > self.max_sequence:
            raise FormatError(
                f"Sequence {sequence} overflows {self.sequence_digits} digits for {self.document_type.value}"
            )

    def render(self, scope_code: str, sequence: int) -> str:
        self.check_scope(scope_code)
        self.check_sequence(sequence)
        code = f"{self.prefix(scope_code)}{sequence:0{self.sequence_digits}d}"
        if not self.grammar.fullmatch(code):
            raise FormatError(f"Rendered code {code!r} violates the {self.document_type.value} grammar")
        return code

    def parse(self, code: str) -> ParsedCode | None:
        match = self.grammar.fullmatch(code)
        if match is None:
            return None
        groups = match.groupdict()
        if self.scoped and groups["type"] != self.document_type.value:
            return None
        return ParsedCode(self.document_type, groups.get("scope") or "", int(groups["seq"]))


def _generic(document_type: DocumentType) -> CodeTemplate:
    return CodeTemplate(
        document_type=document_type,
        grammar=GENERIC_DOCUMENT_GRAMMAR,
        scope_pattern=re.compile(r"[0-9A-Z]{2,4}", re.ASCII),
        placeholder_scope="XX",
    )


def _manifest(document_type: DocumentType) -> CodeTemplate:
    return CodeTemplate(
        document_type=document_type,
        grammar=MANIFEST_GRAMMAR,
        scope_pattern=re.compile(r".+", re.ASCII),
    )


TEMPLATES: dict[DocumentType, CodeTemplate] = {
    DocumentType.PURCHASE_ORDER: _generic(DocumentType.PURCHASE_ORDER),
    DocumentType.SERVICE_ORDER: _generic(DocumentType.SERVICE_ORDER),
    DocumentType.DOCUMENT_TRANSMITTAL: _generic(DocumentType.DOCUMENT_TRANSMITTAL),
    DocumentType.PURCHASE_REQUISITION: CodeTemplate(
        document_type=DocumentType.PURCHASE_REQUISITION,
        grammar=REQUISITION_GRAMMAR,
        scope_pattern=re.compile(r".{1,6}", re.ASCII),
        placeholder_scope="0000",
    ),
    DocumentType.OUTBOUND_MANIFEST: _manifest(DocumentType.OUTBOUND_MANIFEST),
    DocumentType.RETURN_MANIFEST: _manifest(DocumentType.RETURN_MANIFEST),
    DocumentType.INVENTORY_ITEM: CodeTemplate(
        document_type=DocumentType.INVENTORY_ITEM,
        grammar=INVENTORY_GRAMMAR,
        scope_pattern=re.compile(r"", re.ASCII),
        sequence_digits=5,
        sequence_floor=9999,
        repair_base=10000,
    ),
}

# Specific grammars first: "SCO-AL-00-0001" also satisfies the generic grammar.
_PARSE_ORDER = (
    DocumentType.INVENTORY_ITEM,
    DocumentType.PURCHASE_REQUISITION,
    DocumentType.OUTBOUND_MANIFEST,
    DocumentType.RETURN_MANIFEST,
    *sorted(GENERIC_DOCUMENT_TYPES),
)


class CodeFormatter:
    """Renders and parses codes for every supported document type."""

    def __init__(self, templates: dict[DocumentType, CodeTemplate] | None = None):
        self.templates = templates or TEMPLATES

    def template(self, document_type: DocumentType) -> CodeTemplate:
        try:
            return self.templates[document_type]
        except KeyError:
            raise FormatError(f"No code template for document type {document_type!r}") from None

    def format(self, document_type: DocumentType, scope_code: str, sequence: int) -> str:
        return self.template(document_type).render(scope_code, sequence)

    def parse(self, code: str) -> ParsedCode | None:
        """Parse a code into its components, or None if it matches no grammar exactly."""
        for document_type in _PARSE_ORDER:
            template = self.templates.get(document_type)
            if template is None:
                continue
            parsed = template.parse(code)
            if parsed is not None:
                return parsed
        return None

    def matches(self, document_type: DocumentType, code: str) -> bool:
        parsed = self.template(document_type).parse(code)
        return parsed is not None


default_formatter = CodeFormatter()


def parse_code(code: str) -> ParsedCode | None:
    """Parse a code with the default templates."""
    return default_formatter.parse(code)


def format_code(document_type: DocumentType, scope_code: str, sequence: int) -> str:
    return default_formatter.format(document_type, scope_code, sequence)
