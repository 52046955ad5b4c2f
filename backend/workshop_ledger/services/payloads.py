# Overview: Boundary parsing for versioned money records (rupees and ISO dates in, paise and UTC out).

from __future__ import annotations

from ..enums import PaymentMode
from ..money import to_minor
from ..time_utils import utcnow
from ..validation import ValidationError, coerce_datetime, optional_text


def parse_version_payload(
    payload: dict | None,
    *,
    partial: bool,
    text_fields: tuple[str, ...],
    extra_allowed: tuple[str, ...] = (),
    max_lengths: dict[str, int] | None = None,
) -> dict:
    """
    Turn an API payload into version column values.

    partial=False (create): amount and payment_mode are required, date
    defaults to now.
    partial=True (amend): only keys present are returned, so everything else
    is carried forward by the ledger. A missing or blank date also carries
    forward.
    """
    max_lengths = max_lengths or {}
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"date", "amount", "payment_mode", *text_fields, *extra_allowed}
    for key in payload:
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")

    if not partial and (payload.get("amount") is None or not payload.get("payment_mode")):
        raise ValidationError("amount (rupees) and payment_mode are required.")

    fields: dict = {}

    if "amount" in payload:
        if payload["amount"] is None:
            raise ValidationError("amount cannot be null")
        amount_cents = to_minor(payload["amount"])
        if amount_cents < 0:
            raise ValidationError("amount must be >= 0")
        fields["amount_cents"] = amount_cents

    if "payment_mode" in payload:
        fields["payment_mode"] = PaymentMode.parse(payload["payment_mode"], "payment_mode").value

    when = coerce_datetime(payload.get("date") or None, "date")
    if when is not None:
        fields["date"] = when
    elif not partial:
        fields["date"] = utcnow()

    for name in text_fields:
        if name in payload:
            value = optional_text(payload[name])
            limit = max_lengths.get(name)
            if value is not None and limit and len(value) > limit:
                raise ValidationError(f"{name} exceeds max length {limit}")
            fields[name] = value

    return fields
