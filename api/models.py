"""
API request and response models for StaffLedger REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
employees/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models carry the field-format rules (lengths, email syntax, phone
digits, ISO dates). Failures surface as RequestValidationError, which
api/main.py reshapes into {"message": "validation error", "errors": {...}}.
Rules that need the database (email uniqueness) are enforced by the stores.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import User
from employees.models import Employee

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PHONE_PATTERN = r"^[0-9]{10}$"

# bcrypt refuses passwords longer than 72 bytes (UTF-8 encoded).
MAX_PASSWORD_LENGTH = 72
MAX_PASSWORD_BYTES = 72


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register.

    The minimum password length is a setting, so it is checked in the route
    together with password_confirmation and email uniqueness.

    Passwords are taken verbatim; only name is whitespace-trimmed.
    """

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)
    password_confirmation: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"The password field must not be longer than {MAX_PASSWORD_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    """Public view of a User. The password hash is never part of it."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    """Response for POST /register and POST /login."""

    model_config = ConfigDict(frozen=True)

    message: str
    user: UserOut
    token: str
    status: int


class UserResponse(BaseModel):
    """Response for GET /user."""

    model_config = ConfigDict(frozen=True)

    message: str
    user: UserOut
    status: int


# ---------------------------------------------------------------------------
# Employees -- request models
# ---------------------------------------------------------------------------


class EmployeeCreate(BaseModel):
    """Request body for POST /employees and PUT /employees/{id}.

    name, email and birth_date are required; phone is optional but must be
    exactly 10 digits when given.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    birth_date: date


class EmployeePatch(BaseModel):
    """Request body for PATCH /employees/{id}.

    Every field may be omitted. A field that is present must satisfy the same
    rule as in EmployeeCreate, and an explicit null is rejected. Routes apply
    only the keys in model_fields_set.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    birth_date: Optional[date] = None

    @field_validator("name", "email", "phone", "birth_date", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Defaults are not validated, so this only fires for an explicit null.
        if value is None:
            raise ValueError("field may not be null")
        return value

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return self.model_dump(include=self.model_fields_set)


# ---------------------------------------------------------------------------
# Employees -- response models
# ---------------------------------------------------------------------------


class EmployeeOut(BaseModel):
    """Serialized employee record."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    phone: Optional[str]
    birth_date: date
    created_at: str
    updated_at: str

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeOut":
        """Factory Method: the mapping lives beside the output model."""
        return cls(
            id=employee.id,
            name=employee.name,
            email=employee.email,
            phone=employee.phone,
            birth_date=employee.birth_date,
            created_at=employee.created_at,
            updated_at=employee.updated_at,
        )


class EmployeeResponse(BaseModel):
    """Envelope for single-employee responses (create, show, update)."""

    model_config = ConfigDict(frozen=True)

    message: str
    employee: EmployeeOut
    status: int


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Body-less success (logout, delete) and the not-found/401/500 shape."""

    model_config = ConfigDict(frozen=True)

    message: str
    status: int


class ValidationErrorResponse(BaseModel):
    """400 body: field name -> list of messages."""

    model_config = ConfigDict(frozen=True)

    message: str = "validation error"
    errors: dict[str, list[str]]
    status: int = 400


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
