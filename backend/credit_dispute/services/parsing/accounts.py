"""
Credit Dispute Engine - Account Extractor

Section headers -> blocks -> per-field rule tables. When no account can be
recovered the extractor degrades to a well-known-creditor scan, then to
generic placeholder accounts keyed off account-type vocabulary.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Optional

from ...models.ssot import Account, AccountSource, BureausPresent, UNKNOWN_ACCOUNT_NAME
from .bureau_detector import attribute_bureau
from .helpers import classify_account_status, is_negative_text, parse_money, split_blocks
from .patterns import (
    ACCOUNT_BLOCK_KEYWORDS, ACCOUNT_BLOCK_MIN_LENGTH, ACCOUNT_FIELD_RULES,
    ACCOUNT_KEYWORD_BLOCK_MIN_LENGTH, ACCOUNT_NAME_REJECTS, ACCOUNT_REMARK_RULES,
    ACCOUNT_SECTION_RULES, COMMON_CREDITORS, CREDITOR_SCAN_RULES, CREDITOR_WINDOW_AFTER,
    CREDITOR_WINDOW_BEFORE, PLACEHOLDER_ACCOUNT_TYPES, UNKNOWN_ACCOUNT_NAME_MIN_LENGTH,
    find_sections, match_all, match_field, match_fields,
)

logger = logging.getLogger(__name__)

_LABEL_PREFIX_RE = re.compile(r"^(?:account|balance|date|status|payment|type|remarks?|credit\s+limit)\b", re.IGNORECASE)


def _valid_account_name(name: Optional[str]) -> bool:
    if not name or len(name) < UNKNOWN_ACCOUNT_NAME_MIN_LENGTH:
        return False
    if name.upper() in ACCOUNT_NAME_REJECTS:
        return False
    return not _LABEL_PREFIX_RE.match(name)


def _account_name(block: str) -> str:
    """First account_name rule whose value is a plausible creditor name."""
    stripped = block.strip()
    for rule in sorted((r for r in ACCOUNT_FIELD_RULES if r.field == "account_name"), key=lambda r: r.priority):
        value = match_field([rule], "account_name", stripped)
        if _valid_account_name(value):
            return value
    return UNKNOWN_ACCOUNT_NAME


class AccountExtractor:
    """Extracts Account records from salvaged report text."""

    def extract(self, text: str, bureaus: BureausPresent) -> List[Account]:
        blocks = self._candidate_blocks(text)

        accounts = []
        for block in blocks:
            account = self._parse_block(block, bureaus)
            if account:
                accounts.append(account)

        if not accounts:
            logger.info("No structured accounts found - scanning for well-known creditors")
            accounts = self._scan_creditors(text, bureaus)

        if not accounts:
            logger.info("No creditor names found - emitting placeholder accounts")
            accounts = self._placeholder_accounts(text)

        logger.info(f"Extracted {len(accounts)} accounts")
        return accounts

    # -------------------------------------------------------------------------
    # Candidate blocks
    # -------------------------------------------------------------------------

    def _candidate_blocks(self, text: str) -> List[str]:
        sections = find_sections(ACCOUNT_SECTION_RULES, text)
        if sections:
            logger.debug(f"Found {len(sections)} account sections")
            blocks = []
            for section in sections:
                blocks.extend(split_blocks(section, ACCOUNT_BLOCK_MIN_LENGTH))
            return blocks

        # No header matched: keep keyword-bearing blocks of the whole text
        keyword_blocks = [
            block for block in split_blocks(text, ACCOUNT_KEYWORD_BLOCK_MIN_LENGTH)
            if any(keyword in block for keyword in ACCOUNT_BLOCK_KEYWORDS)
        ]
        logger.debug(f"No account section header; {len(keyword_blocks)} keyword blocks")
        return keyword_blocks

    # -------------------------------------------------------------------------
    # Block parsing
    # -------------------------------------------------------------------------

    def _parse_block(self, block: str, bureaus: BureausPresent) -> Optional[Account]:
        name = _account_name(block)
        fields: Dict[str, str] = match_fields(
            [r for r in ACCOUNT_FIELD_RULES if r.field != "account_name"], block
        )
        remarks = match_all(ACCOUNT_REMARK_RULES, "remarks", block)

        balance = parse_money(fields.get("balance"))
        has_detail = any([
            fields.get("account_number"), fields.get("account_type"),
            balance is not None, fields.get("payment_status"),
        ])
        if name == UNKNOWN_ACCOUNT_NAME or not has_detail:
            return None

        payment_status = fields.get("payment_status")
        return Account(
            account_name=name,
            account_number=fields.get("account_number"),
            account_type=fields.get("account_type"),
            balance=balance,
            credit_limit=parse_money(fields.get("credit_limit")),
            payment_status=payment_status,
            status=classify_account_status(payment_status, remarks),
            date_opened=fields.get("date_opened"),
            date_reported=fields.get("date_reported"),
            last_activity=fields.get("last_activity"),
            is_negative=is_negative_text(payment_status, remarks),
            bureau=attribute_bureau(block, bureaus),
            remarks=remarks,
            source=AccountSource.STRUCTURED,
        )

    # -------------------------------------------------------------------------
    # Fallbacks
    # -------------------------------------------------------------------------

    def _scan_creditors(self, text: str, bureaus: BureausPresent) -> List[Account]:
        accounts = []
        for creditor in COMMON_CREDITORS:
            match = re.search(r"\b" + re.escape(creditor) + r"\b", text)
            if not match:
                continue
            window = text[
                max(0, match.start() - CREDITOR_WINDOW_BEFORE):
                min(len(text), match.end() + CREDITOR_WINDOW_AFTER)
            ]
            accounts.append(Account(
                account_name=creditor,
                account_number=match_field(CREDITOR_SCAN_RULES, "account_number", window),
                balance=parse_money(match_field(CREDITOR_SCAN_RULES, "balance", window)),
                bureau=attribute_bureau(window, bureaus),
                source=AccountSource.CREDITOR_SCAN,
            ))
        return accounts

    def _placeholder_accounts(self, text: str) -> List[Account]:
        return [
            Account(
                account_name=f"Generic {label}",
                account_type=label,
                source=AccountSource.PLACEHOLDER,
            )
            for label, pattern in PLACEHOLDER_ACCOUNT_TYPES
            if pattern.search(text)
        ]


def extract_accounts(text: str, bureaus: BureausPresent) -> List[Account]:
    """Convenience function to run account extraction."""
    return AccountExtractor().extract(text, bureaus)
