"""Translate use case results into HTTP responses."""

import functools
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import structlog
from fastapi import HTTPException, status
from returns.result import Failure, Success

from application.dtos.errors import AppError
from domain.exceptions import InfrastructureError

if TYPE_CHECKING:
    from typing import Any

logger = structlog.get_logger()

T = TypeVar("T")

# Client-side failures keep their message; everything else becomes a generic 500
_CLIENT_ERROR_STATUS = {
    "missing_field": status.HTTP_400_BAD_REQUEST,
    "validation": status.HTTP_400_BAD_REQUEST,
    "size_exceeded": status.HTTP_403_FORBIDDEN,
    "unsupported_media_type": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
}

_INTERNAL_ERROR_DETAIL = "Internal server error"


def app_error_to_http_exception(error: AppError) -> HTTPException:
    """Map an AppError category to the status the file API answers with.

    Storage, derivation and infrastructure failures are logged with their
    message and answered without it, so paths and driver errors never reach
    the client.
    """
    status_code = _CLIENT_ERROR_STATUS.get(error.category)
    if status_code is not None:
        return HTTPException(status_code=status_code, detail=error.message)

    logger.error("use_case_server_error", category=error.category, error=error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_INTERNAL_ERROR_DETAIL,
    )


def handle_use_case_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Unwrap the Result an endpoint returns.

    ``Success`` yields its value, ``Failure`` is raised through
    :func:`app_error_to_http_exception`. Exceptions that escape the use case
    are logged and answered with a 500 that carries no detail.
    """

    @functools.wraps(func)
    async def wrapper(*args: "Any", **kwargs: "Any") -> T:  # noqa: ANN401
        try:
            result = await func(*args, **kwargs)
        except HTTPException:
            raise
        except InfrastructureError as exc:
            logger.exception("infrastructure_error", error=str(exc), function=func.__name__)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Service temporarily unavailable",
            ) from exc
        except Exception as exc:
            logger.exception(
                "unexpected_error",
                error=str(exc),
                error_type=type(exc).__name__,
                function=func.__name__,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=_INTERNAL_ERROR_DETAIL,
            ) from exc

        if isinstance(result, Success):
            return result.unwrap()
        if isinstance(result, Failure):
            raise app_error_to_http_exception(result.failure()) from None

        logger.error(
            "unexpected_result_type",
            result_type=type(result).__name__,
            function=func.__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_INTERNAL_ERROR_DETAIL,
        )

    return wrapper
