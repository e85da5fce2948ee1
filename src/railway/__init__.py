"""
Railway-Oriented Programming (ROP) support for cert-bundle.

Explicit, composable error handling: fallible steps return a Result
instead of raising, and failures short-circuit the rest of the chain.

    from railway import Result, ErrorCode

    def require_certificates(count: int) -> Result[int]:
        if count == 0:
            return Result.failure(ErrorCode.INPUT_ERROR, "No certificates in bundle")
        return Result.success(count)

    result = (
        Result.success(blocks)
        .map(len)
        .flat_map(require_certificates)
    )
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]

__version__ = "1.0.0"
