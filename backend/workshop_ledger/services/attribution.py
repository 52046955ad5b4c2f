# Overview: Who received or paid the money: PAID_BY note tags and counterparty buckets.

"""
Counterparty attribution.

Expenses carry the payer inside the free-text note as a prefix:

    "[PAID_BY:Tanmeet] Paid for parts"

add_paid_by / extract_paid_by / strip_paid_by are the only code that knows the
format. For any note without an existing tag:

    strip_paid_by(add_paid_by(name, note)) == note
    extract_paid_by(add_paid_by(name, note)) == name

Sales carry the receiver directly in SaleVersion.received_by.

Cash-flow views sort money into a small configured set of buckets
(COUNTERPARTY_BUCKETS); anything else lands in "untracked".
"""

from __future__ import annotations

import re

PAID_BY_PATTERN = re.compile(r"^\[PAID_BY:([^\]]+)\]")

UNKNOWN_RECEIVER = "Unknown"
UNTRACKED_BUCKET = "untracked"


def add_paid_by(paid_by: str | None, note: str | None) -> str | None:
    """
    Prefix the note with a PAID_BY tag. No-op (note returned as given) when
    there is no payer.

    A None note stores the bare tag; any string note, "" included, follows
    the tag after one space, so strip_paid_by can give back exactly what
    went in.
    """
    if not paid_by:
        return note
    prefix = f"[PAID_BY:{paid_by}]"
    return prefix if note is None else f"{prefix} {note}"


def extract_paid_by(note: str | None) -> str | None:
    if not note:
        return None
    match = PAID_BY_PATTERN.match(note)
    return match.group(1) if match else None


def strip_paid_by(note: str | None) -> str | None:
    """Note as shown to users, without the tag. Untagged notes pass through."""
    if not note:
        return note
    match = PAID_BY_PATTERN.match(note)
    if not match:
        return note
    rest = note[match.end():]
    if not rest:
        return None
    return rest[1:] if rest.startswith(" ") else rest


def receiver_bucket(received_by: str | None) -> str:
    """Grouping key for sale receivers; missing receiver is never guessed."""
    if received_by is None or not received_by.strip():
        return UNKNOWN_RECEIVER
    return received_by.strip()


class CounterpartyBuckets:
    """
    Case-insensitive alias lookup built from config.

    {"Bank Account": ["bank", "bank account"]} sends "BANK" and "Bank Account"
    to the "Bank Account" bucket. The bucket name itself always matches.
    """

    def __init__(self, config: dict[str, list[str]]):
        self.names = list(config.keys())
        self._aliases: dict[str, str] = {}
        for name, aliases in config.items():
            self._aliases[name.strip().lower()] = name
            for alias in aliases:
                self._aliases[alias.strip().lower()] = name

    def bucket_for(self, counterparty: str | None) -> str:
        if not counterparty:
            return UNTRACKED_BUCKET
        return self._aliases.get(counterparty.strip().lower(), UNTRACKED_BUCKET)

    def empty_totals(self) -> dict[str, int]:
        totals = {name: 0 for name in self.names}
        totals[UNTRACKED_BUCKET] = 0
        return totals
