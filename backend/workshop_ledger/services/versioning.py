# Overview: Append-only version chains with a movable "current" pointer (used by sales and expenses).

"""
Workshop Ledger Versioning Invariants (authoritative)

Shape:
- A record (Sale, Expense) is an identity plus current_version_id.
- Every money-bearing field lives on immutable version rows.

Numbering:
- Versions of one record are numbered 1..N, contiguous, never reused.
- New version number = max(existing) + 1, allocated under a row lock and
  guarded by UNIQUE(record, version_number).

Current pointer:
- Always addresses the version with the highest number.
- Appending a version and repointing happen in ONE DB transaction. Readers see
  either the old pointer with the old versions, or the new pointer with the
  new version, never a mix.
- A record with no current version is never returned to callers.

Amend semantics:
- Fields absent from the change set are carried forward from the current
  version. An explicit None clears an optional field.

Concurrency:
- Two amends racing for the same number: one commits, the other gets
  ConflictError(retryable=True). The record's row_version optimistic lock
  catches a concurrent repoint the same way.

Delete:
- Hard delete. Pointer cleared, all versions deleted, then the record.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import func

from ..validation import NotFoundError, ValidationError
from .concurrency import atomic, lock_for_update


class VersionedLedger:
    """
    Generic version-chain operations for one (record model, version model) pair.

    Built per request from the request's session; holds no state of its own.
    """

    def __init__(
        self,
        session,
        record_model,
        version_model,
        *,
        parent_key: str,
        fields: Iterable[str],
        required_fields: Iterable[str] = (),
        label: str = "Record",
    ):
        self.session = session
        self.record_model = record_model
        self.version_model = version_model
        self.parent_key = parent_key
        self.fields = tuple(fields)
        self.required_fields = tuple(required_fields)
        self.label = label

    @property
    def _parent_col(self):
        return getattr(self.version_model, self.parent_key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, record_id: int, *, lock: bool = False):
        query = self.session.query(self.record_model).filter(
            self.record_model.id == record_id,
            self.record_model.current_version_id.isnot(None),
        )
        if lock:
            query = lock_for_update(query)
        record = query.first()
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def read_current(self, record_id: int):
        record = self.get(record_id)
        version = record.current_version
        if version is None:
            raise NotFoundError(f"{self.label} {record_id} has no current version")
        return version

    def read_history(self, record_id: int) -> list:
        """All versions of a record, newest first."""
        self.get(record_id)
        return (
            self.session.query(self.version_model)
            .filter(self._parent_col == record_id)
            .order_by(self.version_model.version_number.desc())
            .all()
        )

    def _current_query(self, start: datetime | None, end: datetime | None, criteria: tuple):
        query = self.session.query(self.record_model, self.version_model).join(
            self.version_model,
            self.record_model.current_version_id == self.version_model.id,
        )
        if start is not None:
            query = query.filter(self.version_model.date >= start)
        if end is not None:
            query = query.filter(self.version_model.date <= end)
        if criteria:
            query = query.filter(*criteria)
        return query

    def list_current(self, start: datetime | None = None, end: datetime | None = None, *criteria) -> list[tuple]:
        """
        (record, current version) pairs whose CURRENT version date falls in
        [start, end]. Superseded versions never match, whatever their date.
        """
        query = self._current_query(start, end, criteria)
        return query.order_by(self.version_model.date.desc(), self.record_model.id.desc()).all()

    def current_versions(self, start: datetime | None = None, end: datetime | None = None, *criteria) -> list:
        """Current-version projection only (what reports aggregate)."""
        return [version for _, version in self._current_query(start, end, criteria).all()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check_required(self, values: dict) -> None:
        missing = [f for f in self.required_fields if values.get(f) is None]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    def _next_version_number(self, record_id: int) -> int:
        current_max = (
            self.session.query(func.max(self.version_model.version_number))
            .filter(self._parent_col == record_id)
            .scalar()
        )
        return int(current_max or 0) + 1

    def _new_version(self, record_id: int, number: int, values: dict, actor_id: int | None):
        kwargs: dict[str, Any] = {self.parent_key: record_id, "version_number": number, "created_by_id": actor_id}
        kwargs.update(values)
        version = self.version_model(**kwargs)
        self.session.add(version)
        self.session.flush()
        return version

    def create(self, fields: dict, *, actor_id: int | None = None):
        """Allocate a record, write version 1, point current at it. One transaction."""
        values = {f: fields.get(f) for f in self.fields}
        self._check_required(values)

        with atomic(self.session, conflict_message=f"{self.label} could not be created, please retry"):
            record = self.record_model()
            self.session.add(record)
            self.session.flush()

            version = self._new_version(record.id, 1, values, actor_id)
            record.current_version_id = version.id

        return record

    def amend(self, record_id: int, changes: dict, *, actor_id: int | None = None):
        """
        Append version max+1 built from the current version plus `changes`,
        and repoint current to it. Returns the new version.
        """
        unknown = sorted(set(changes) - set(self.fields))
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

        with atomic(
            self.session,
            conflict_message=f"{self.label} {record_id} was changed concurrently, please retry",
            details={"id": record_id},
        ):
            record = self.get(record_id, lock=True)
            current = record.current_version
            if current is None:
                raise NotFoundError(f"{self.label} {record_id} has no current version")

            values = {f: getattr(current, f) for f in self.fields}
            values.update(changes)
            self._check_required(values)

            number = self._next_version_number(record.id)
            version = self._new_version(record.id, number, values, actor_id)
            record.current_version_id = version.id

        return version

    def remove(self, record_id: int) -> dict:
        """
        Hard delete: all versions, then the record. Returns the last current
        version as a dict for callers that want to describe what was removed.
        """
        with atomic(
            self.session,
            conflict_message=f"{self.label} {record_id} was changed concurrently, please retry",
            details={"id": record_id},
        ):
            record = self.get(record_id, lock=True)
            snapshot = record.current_version.to_dict() if record.current_version else {}

            record.current_version_id = None
            self.session.flush()

            self.session.query(self.version_model).filter(
                self._parent_col == record.id
            ).delete(synchronize_session=False)
            self.session.expire(record, ["versions"])
            self.session.delete(record)

        return snapshot
