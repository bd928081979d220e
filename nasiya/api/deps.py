"""Request dependencies: service container and acting employee."""

from typing import Any

from fastapi import Depends, Header, Request

from nasiya.exceptions import UnauthorizedError
from nasiya.models import Actor
from nasiya.services import Services
from nasiya.sinks.serialization import serialize_value


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_actor(
    x_employee_id: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> Actor:
    """Resolve the authenticated employee from the ``X-Employee-Id`` header.

    Authentication happens in front of this service; the header carries
    the already-verified employee id.
    """
    if not x_employee_id:
        raise UnauthorizedError("Missing X-Employee-Id header")
    employee = services.store.employees.get(x_employee_id)
    if employee is None:
        raise UnauthorizedError(f"Unknown employee {x_employee_id}")
    return Actor(employee.employee_id, employee.role.value)


def success(data: Any = None, message: str = "OK") -> dict[str, Any]:
    """Success envelope shared by every route."""
    return {"status": "success", "message": message, "data": serialize_value(data)}
