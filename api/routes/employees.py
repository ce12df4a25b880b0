"""
api/routes/employees.py -- Employee CRUD routes.

Routes:
  GET    /employees        -- list all employees (404 when empty, see below)
  POST   /employees        -- create an employee
  GET    /employees/{id}   -- show one employee
  PUT    /employees/{id}   -- full update (every field rewritten)
  PATCH  /employees/{id}   -- partial update (only supplied fields change)
  DELETE /employees/{id}   -- delete an employee

Empty list:
  GET /employees answers 404 {"message": "no employees found"} when there are
  no records. Clients that prefer 200 [] can run the server with
  EMPTY_LIST_NOT_FOUND=false.

Status codes:
  Create answers 200 (not 201) with the {message, employee, status} envelope,
  matching every other single-employee response.

  PUT and PATCH look the employee up before the body is validated, so an
  unknown id is 404 even when the body is also invalid.
"""

from fastapi import APIRouter, Depends, Request

from api.models import EmployeeCreate, EmployeeOut, EmployeePatch, EmployeeResponse, MessageResponse
from auth.dependencies import get_current_user
from core.config import get_settings
from core.exceptions import NotFound
from employees.models import Employee
from employees.store import EmployeeStore

# All employee routes require authentication.
# Router-level dependency applies to every route registered on this router,
# so individual handlers don't each need to repeat Depends(get_current_user).
router = APIRouter(dependencies=[Depends(get_current_user)])


def _store(request: Request) -> EmployeeStore:
    return request.app.state.employee_store


def _existing_employee(request: Request, employee_id: int) -> Employee:
    """Raise NotFound for an unknown id ahead of request-body validation."""
    return _store(request).get_employee(employee_id)


@router.get("/employees", response_model=list[EmployeeOut])
def list_employees(request: Request) -> list[EmployeeOut]:
    """Return every employee ordered by id."""
    employees = _store(request).list_employees()
    if not employees and get_settings().empty_list_not_found:
        raise NotFound("no employees found")
    return [EmployeeOut.from_employee(e) for e in employees]


@router.post("/employees", response_model=EmployeeResponse)
def create_employee(request: Request, body: EmployeeCreate) -> EmployeeResponse:
    employee = _store(request).create_employee(body.model_dump())
    return EmployeeResponse(message="employee created", employee=EmployeeOut.from_employee(employee), status=200)


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
def show_employee(request: Request, employee_id: int) -> EmployeeResponse:
    employee = _store(request).get_employee(employee_id)
    return EmployeeResponse(message="employee retrieved", employee=EmployeeOut.from_employee(employee), status=200)


@router.put(
    "/employees/{employee_id}",
    response_model=EmployeeResponse,
    dependencies=[Depends(_existing_employee)],
)
def replace_employee(request: Request, employee_id: int, body: EmployeeCreate) -> EmployeeResponse:
    """Rewrite every field. Omitting phone clears it."""
    employee = _store(request).replace_employee(employee_id, body.model_dump())
    return EmployeeResponse(message="employee updated", employee=EmployeeOut.from_employee(employee), status=200)


@router.patch(
    "/employees/{employee_id}",
    response_model=EmployeeResponse,
    dependencies=[Depends(_existing_employee)],
)
def patch_employee(request: Request, employee_id: int, body: EmployeePatch) -> EmployeeResponse:
    """Apply only the fields present in the request body."""
    employee = _store(request).patch_employee(employee_id, body.changes())
    return EmployeeResponse(message="employee updated", employee=EmployeeOut.from_employee(employee), status=200)


@router.delete("/employees/{employee_id}", response_model=MessageResponse)
def delete_employee(request: Request, employee_id: int) -> MessageResponse:
    _store(request).delete_employee(employee_id)
    return MessageResponse(message="employee deleted", status=200)
