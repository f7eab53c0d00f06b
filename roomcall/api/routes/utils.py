# roomcall/api/routes/utils.py

from __future__ import annotations

from fastapi import HTTPException

from roomcall.core.errors import ErrorCategory, Result

STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CONFLICT: 400,
    ErrorCategory.STATE: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.AUTH: 401,
}


def raise_for_result(result: Result) -> Result:
    """
    Turn a failed core result into an HTTPException.

    Status comes from the error category: 400 for validation, conflict and
    state errors, 404 for missing rooms, 401 for authentication.
    """
    if not result.ok:
        raise HTTPException(
            status_code=STATUS_BY_CATEGORY[result.error.category],
            detail=result.message,
        )
    return result
