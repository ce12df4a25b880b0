"""
employees/store.py -- SQLAlchemy-backed repository for employee records.

Uses SQLAlchemy Core (not ORM) so the dataclass in employees/models.py stays
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. EmployeeStore is the repository;
_row_to_employee is the mapper. Route handlers never touch SQL directly.

Atomicity: every write runs inside engine.begin(), so a record is either fully
written or not at all. Updates are a single UPDATE statement.

Uniqueness: employees.email carries a UNIQUE constraint. Each write pre-checks
the email (excluding the record's own id on update) inside the same
transaction to produce a field-level error. If a concurrent writer wins the
race anyway, the constraint raises IntegrityError, which is translated into
the same ValidationError.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = EmployeeStore()
    emp = store.create_employee({"name": "Bob", "email": "bob@x.com", "birth_date": date(1990, 1, 1)})
    store.patch_employee(emp.id, {"phone": "5551234567"})
    store.close()
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from core.config import get_settings
from core.exceptions import NotFound, ValidationError
from employees.models import Employee

logger = logging.getLogger("staffledger.employees")

EMAIL_TAKEN = "The email has already been taken."
NOT_FOUND = "employee not found"

_REQUIRED_FIELDS = ("name", "email", "birth_date")
_MUTABLE_FIELDS = frozenset({"name", "email", "phone", "birth_date"})

# SQLite INTEGER PRIMARY KEY is a signed 64-bit value.
_MAX_ROW_ID = 2**63 - 1

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_employees = Table(
    "employees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(10)),
    Column("birth_date", String(10), nullable=False),  # YYYY-MM-DD
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode (per connection; PRAGMAs are not pooled)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_columns(fields: dict) -> dict:
    """Validate field names and convert values to their column representation."""
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown employee fields: {sorted(unknown)!r}")
    values = dict(fields)
    if isinstance(values.get("birth_date"), date):
        values["birth_date"] = values["birth_date"].isoformat()
    return values


def _require(fields: dict) -> None:
    missing = [name for name in _REQUIRED_FIELDS if fields.get(name) is None]
    if missing:
        raise ValueError(f"Missing required employee fields: {missing!r}")


def _check_row_id(employee_id: int) -> None:
    # Ints outside that range overflow the driver and cannot match a row.
    if not -_MAX_ROW_ID - 1 <= employee_id <= _MAX_ROW_ID:
        raise NotFound(NOT_FOUND)


def _email_taken() -> ValidationError:
    return ValidationError({"email": [EMAIL_TAKEN]})


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EmployeeStore:
    """Repository for Employee records.

    Reads return dataclasses; writes return the freshly stored record. Missing
    ids raise NotFound, email conflicts raise ValidationError.
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_employees(self) -> list[Employee]:
        """Return every employee ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_employees.select().order_by(_employees.c.id)).fetchall()
        return [_row_to_employee(r) for r in rows]

    def get_employee(self, employee_id: int) -> Employee:
        with self.engine.connect() as conn:
            return self._fetch(conn, employee_id)

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_employees)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_employee(self, fields: dict) -> Employee:
        """Insert a new employee.

        fields must carry name, email and birth_date; phone is optional.
        Raises ValidationError if the email is already taken.
        """
        _require(fields)
        values = _to_columns(fields)
        now = _now_iso()
        try:
            with self.engine.begin() as conn:
                if self._email_in_use(conn, values["email"]):
                    raise _email_taken()
                result = conn.execute(
                    _employees.insert().values(
                        name=values["name"],
                        email=values["email"],
                        phone=values.get("phone"),
                        birth_date=values["birth_date"],
                        created_at=now,
                        updated_at=now,
                    )
                )
                employee_id = result.inserted_primary_key[0]
                employee = self._fetch(conn, employee_id)
        except IntegrityError as exc:
            raise _email_taken() from exc
        logger.info("Created employee %d", employee_id)
        return employee

    def replace_employee(self, employee_id: int, fields: dict) -> Employee:
        """Full update: every field is rewritten; an omitted phone is cleared.

        Raises NotFound for an unknown id, ValidationError if the email belongs
        to a different employee. Keeping one's own email is allowed.
        """
        _require(fields)
        values = _to_columns({"phone": None, **fields})
        return self._update(employee_id, values)

    def patch_employee(self, employee_id: int, fields: dict) -> Employee:
        """Partial update: only the supplied fields change.

        An empty fields dict returns the record unchanged (still NotFound for an
        unknown id).
        """
        values = _to_columns(fields)
        if not values:
            return self.get_employee(employee_id)
        return self._update(employee_id, values)

    def delete_employee(self, employee_id: int) -> None:
        """Delete an employee. Raises NotFound if the id does not exist."""
        _check_row_id(employee_id)
        with self.engine.begin() as conn:
            result = conn.execute(_employees.delete().where(_employees.c.id == employee_id))
        if result.rowcount == 0:
            raise NotFound(NOT_FOUND)
        logger.info("Deleted employee %d", employee_id)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(self, employee_id: int, values: dict) -> Employee:
        try:
            with self.engine.begin() as conn:
                self._fetch(conn, employee_id)
                if "email" in values and self._email_in_use(conn, values["email"], exclude_id=employee_id):
                    raise _email_taken()
                conn.execute(
                    _employees.update()
                    .where(_employees.c.id == employee_id)
                    .values(**values, updated_at=_now_iso())
                )
                employee = self._fetch(conn, employee_id)
        except IntegrityError as exc:
            raise _email_taken() from exc
        logger.info("Updated employee %d (%s)", employee_id, ", ".join(sorted(values)))
        return employee

    @staticmethod
    def _fetch(conn: Connection, employee_id: int) -> Employee:
        _check_row_id(employee_id)
        row = conn.execute(_employees.select().where(_employees.c.id == employee_id)).fetchone()
        if row is None:
            raise NotFound(NOT_FOUND)
        return _row_to_employee(row)

    @staticmethod
    def _email_in_use(conn: Connection, email: str, exclude_id: Optional[int] = None) -> bool:
        query = select(func.count()).select_from(_employees).where(_employees.c.email == email)
        if exclude_id is not None:
            query = query.where(_employees.c.id != exclude_id)
        return (conn.execute(query).scalar() or 0) > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_employee(row) -> Employee:
    return Employee(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        birth_date=date.fromisoformat(row.birth_date),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
