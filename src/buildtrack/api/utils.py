"""
Router helpers shared by every endpoint module.

- ``_dc()``: dataclass (or dict) payload to a plain dict
- ``_handle_error()``: failed OperationResult to a problem response
- ``_envelope()``: successful OperationResult to a SuccessResponse
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from buildtrack.api.middleware.errors import problem_from_result
from buildtrack.api.schemas.common import SuccessResponse


def _dc(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result, instance: str = ""):
    return problem_from_result(result, instance=instance)


def _envelope(result, data: Any) -> SuccessResponse:
    """Wrap *data* with the result's timing and warnings."""
    return SuccessResponse(data=data, elapsed_ms=result.elapsed_ms, warnings=result.warnings)
