"""
Tradeline Engine - Bureau Text Parser

Reads loosely structured credit-report text (pasted or extracted from a PDF)
and outputs a ParseResult (SSOT #1). All downstream modules MUST use the
ParseResult - never the raw text.

Layout expected:

    Accounts
    Account Name: Chase Freedom
    Account Type: Revolving
    Balance: $2,450
    ...
    Inquiries
    Inquiry: Capital One Bank
    Date: 2024-02

MVP SCOPE: only open/current revolving accounts are kept. A chunk without
"revolving" in its raw lines, or whose status is not open/current, is dropped
silently. This is a product scope limit, not a parse failure.

Parsing never raises. Lines that don't parse contribute nothing.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ...models.ssot import ParseResult, ParsedAccount, ParsedInquiry, ScoredValue
from .grammar import parse_money, parse_month, parse_ownership, parse_status
from .labels import LabelKey, LabelNormalizer, normalize_label

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

SECTION_HEADER_RE = re.compile(r"^(?:accounts|inquiries)", re.IGNORECASE)
ACCOUNT_START_RE = re.compile(r"^account name", re.IGNORECASE)
INQUIRY_START_RE = re.compile(r"^inquiry\s*:", re.IGNORECASE)
REVOLVING_RE = re.compile(r"revolving", re.IGNORECASE)
OPEN_STATUS_RE = re.compile(r"open|current")

DEFAULT_ACCOUNT_NAME = "Unknown account"
DEFAULT_INQUIRY_CREDITOR = "Unknown"

Extractor = Callable[[str], Optional[ScoredValue]]

# Canonical label -> (ParsedAccount field, grammar)
ACCOUNT_FIELD_GRAMMAR: Dict[LabelKey, Tuple[str, Extractor]] = {
    LabelKey.BALANCE: ("balance", parse_money),
    LabelKey.CREDIT_LIMIT: ("credit_limit", parse_money),
    LabelKey.HIGH_CREDIT: ("high_credit", parse_money),
    LabelKey.STATUS: ("status", parse_status),
    LabelKey.OWNERSHIP: ("ownership", parse_ownership),
    LabelKey.OPEN_DATE: ("open_date", parse_month),
    LabelKey.REPORTED_DATE: ("reported_date", parse_month),
}

MONEY_FIELDS = {"balance", "credit_limit", "high_credit"}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def split_lines(text: str) -> List[str]:
    """Split into trimmed, non-empty lines."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def split_label_value(line: str) -> Optional[Tuple[str, str]]:
    """Split "Label: value" on the first colon. None when there is no colon."""
    label, sep, value = line.partition(":")
    if not sep or not label.strip():
        return None
    return label, value.strip()


# =============================================================================
# LINE STATE MACHINE
# =============================================================================

class Section(str, Enum):
    ACCOUNTS = "accounts"
    INQUIRIES = "inquiries"


@dataclass
class LineStateMachine:
    """
    Routes lines into account chunks and inquiry records.

    State = section (accounts | inquiries) x open account chunk (yes | no).
    The two sections are independent streams: a section header switches the
    active stream but never closes the other stream's open chunk or record,
    so an account interrupted by an inquiries block continues when an
    accounts header reappears.
    """
    section: Section = Section.ACCOUNTS
    open_chunk: Optional[List[str]] = None
    chunks: List[List[str]] = field(default_factory=list)
    open_inquiry: Optional[List[str]] = None
    inquiry_records: List[List[str]] = field(default_factory=list)

    @property
    def has_open_chunk(self) -> bool:
        return self.open_chunk is not None

    def feed(self, line: str) -> None:
        if SECTION_HEADER_RE.match(line):
            self.section = Section.INQUIRIES if "inquiries" in line.lower() else Section.ACCOUNTS
            return

        if self.section is Section.INQUIRIES:
            self._feed_inquiry(line)
        else:
            self._feed_account(line)

    def finish(self) -> Tuple[List[List[str]], List[List[str]]]:
        if self.open_chunk is not None:
            self.chunks.append(self.open_chunk)
            self.open_chunk = None
        if self.open_inquiry is not None:
            self.inquiry_records.append(self.open_inquiry)
            self.open_inquiry = None
        return self.chunks, self.inquiry_records

    def _feed_account(self, line: str) -> None:
        if self.open_chunk is None:
            self.open_chunk = [line]
            return
        if ACCOUNT_START_RE.match(line):
            self.chunks.append(self.open_chunk)
            self.open_chunk = [line]
            return
        self.open_chunk.append(line)

    def _feed_inquiry(self, line: str) -> None:
        if INQUIRY_START_RE.match(line):
            if self.open_inquiry is not None:
                self.inquiry_records.append(self.open_inquiry)
            self.open_inquiry = [line]
            return
        # Fields before the first "Inquiry:" line belong to no record
        if self.open_inquiry is not None:
            self.open_inquiry.append(line)


# =============================================================================
# MAIN PARSER CLASS
# =============================================================================

class BureauTextParser:
    """Parse bureau report text into a ParseResult (SSOT #1)."""

    def __init__(self, normalizer: Optional[LabelNormalizer] = None):
        self._normalize = normalizer.normalize if normalizer else normalize_label

    def parse(self, text: str) -> ParseResult:
        lines = split_lines(text)
        machine = LineStateMachine()
        for line in lines:
            machine.feed(line)
        chunks, inquiry_records = machine.finish()

        accounts = []
        for chunk in chunks:
            account = self.parse_account_chunk(chunk)
            if account is not None:
                accounts.append(account)

        inquiries = [self.parse_inquiry_record(record) for record in inquiry_records]

        logger.info(
            f"Parsed {len(accounts)} accounts ({len(chunks)} chunks) and "
            f"{len(inquiries)} inquiries from {len(lines)} lines"
        )
        return ParseResult(accounts=accounts, inquiries=inquiries)

    def parse_account_chunk(self, chunk: List[str]) -> Optional[ParsedAccount]:
        """Parse one account chunk; None when it fails the revolving+open filter."""
        values: Dict[str, object] = {"name": DEFAULT_ACCOUNT_NAME, "raw_lines": tuple(chunk)}

        for line in chunk:
            split = split_label_value(line)
            if split is None:
                continue
            raw_label, value = split
            key = self._normalize(raw_label)
            if key is None or not value:
                continue

            if key is LabelKey.ACCOUNT_NAME:
                values["name"] = value
                continue

            route = ACCOUNT_FIELD_GRAMMAR.get(key)
            if route is None:
                continue
            field_name, extractor = route
            scored = extractor(value)
            if scored is None:
                continue
            if field_name in MONEY_FIELDS and scored.value < 0:
                continue
            values[field_name] = scored.value
            values[f"{field_name}_confidence"] = scored.confidence

        is_revolving = any(REVOLVING_RE.search(line) for line in chunk)
        status = values.get("status")
        is_open = bool(status) and OPEN_STATUS_RE.search(status) is not None
        if not is_revolving or not is_open:
            return None

        return ParsedAccount(**values)

    def parse_inquiry_record(self, record: List[str]) -> ParsedInquiry:
        """Parse an inquiry record; record[0] is always the "Inquiry:" line."""
        creditor = INQUIRY_START_RE.sub("", record[0], count=1).strip() or DEFAULT_INQUIRY_CREDITOR
        inquiry_date = None
        date_confidence = None
        inquiry_type = None

        for line in record[1:]:
            split = split_label_value(line)
            if split is None:
                continue
            raw_label, value = split
            key = self._normalize(raw_label)
            if not value:
                continue

            if key is LabelKey.INQUIRY_DATE:
                scored = parse_month(value)
                if scored:
                    inquiry_date, date_confidence = scored.value, scored.confidence
            elif key is LabelKey.INQUIRY_CREDITOR:
                creditor = value
            elif key is LabelKey.INQUIRY_TYPE:
                inquiry_type = value.lower()

        return ParsedInquiry(
            creditor=creditor,
            date=inquiry_date,
            date_confidence=date_confidence,
            type=inquiry_type,
        )


_default_parser = BureauTextParser()


def parse_bureau_text(text: str) -> ParseResult:
    """Convenience function to parse bureau report text."""
    return _default_parser.parse(text)


# Equifax was the first supported layout; all bureaus share it today.
parse_equifax_text = parse_bureau_text
