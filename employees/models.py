"""
employees/models.py -- Domain dataclass for employee records.

Pure data container with zero logic. Uniqueness and persistence live in
employees/store.py; field-format rules live in the API request models.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Employee:
    """A single employee record.

    id is None before the record is written to the database.
    created_at / updated_at are ISO 8601 strings set by the store.
    """

    name: str
    email: str
    birth_date: date
    phone: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
