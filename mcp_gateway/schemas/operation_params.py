"""Operation Params — boundary validation for (service, operation, params) triples.

Invariants:
    - An operation the service's descriptor does not list is rejected with
      RequestValidationFailed (400) and never reaches the backend, so a typo in
      the URL cannot flip a service offline
    - A descriptor with no listed operations accepts any operation name
    - Params of a known operation are validated against its schema before dispatch
    - Pairs with no schema pass through unchanged (the backend decides)

Design Decisions:
    - Explicit dict keyed by (descriptor name, operation) (ADR: ExMA no auto-discovery)
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from mcp_gateway.core.domain_types import ServiceDescriptor
from mcp_gateway.core.errors import RequestValidationFailed
from mcp_gateway.schemas.bazi import BaziParams, CompatibilityParams, FortuneParams

OPERATION_SCHEMAS: dict[tuple[str, str], type[BaseModel]] = {
    ("bazi", "getBaziDetail"): BaziParams,
    ("bazi", "getBaziFortune"): FortuneParams,
    ("bazi", "getCompatibility"): CompatibilityParams,
    ("bazi", "getLuckyInfo"): BaziParams,
}


def validate_operation_params(
    descriptor: ServiceDescriptor, operation: str, params: dict[str, Any],
) -> None:
    """Raise RequestValidationFailed for an unlisted operation or ill-shaped params."""
    if descriptor.operations and operation not in descriptor.operations:
        raise RequestValidationFailed([{
            "field": "operation",
            "message": (
                f"Operation '{operation}' is not supported by '{descriptor.name}'. "
                f"Supported: {', '.join(descriptor.operations)}"
            ),
            "type": "unknown_operation",
        }])
    schema = OPERATION_SCHEMAS.get((descriptor.name, operation))
    if schema is None:
        return
    try:
        schema.model_validate(params)
    except ValidationError as e:
        raise RequestValidationFailed([
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ])
