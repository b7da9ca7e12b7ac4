"""Tests for mapping use case results to HTTP responses."""

from __future__ import annotations

import pytest
from fastapi import HTTPException
from returns.result import Failure, Success

from application.dtos.errors import AppError
from domain.exceptions import StorageError
from interfaces.api.middleware.error_handler import (
    app_error_to_http_exception,
    handle_use_case_errors,
)


class TestAppErrorMapping:
    @pytest.mark.parametrize(
        ("category", "status_code"),
        [
            ("missing_field", 400),
            ("validation", 400),
            ("size_exceeded", 403),
            ("unsupported_media_type", 403),
            ("not_found", 404),
        ],
    )
    def test_client_errors_keep_their_message(self, category: str, status_code: int) -> None:
        error = app_error_to_http_exception(AppError(category, "details"))

        assert error.status_code == status_code
        assert error.detail == "details"

    @pytest.mark.parametrize("category", ["storage", "derivation", "infrastructure"])
    def test_server_errors_hide_their_message(self, category: str) -> None:
        error = app_error_to_http_exception(AppError(category, "/srv/files is read-only"))

        assert error.status_code == 500
        assert "/srv/files" not in error.detail


class TestHandleUseCaseErrors:
    @pytest.mark.asyncio
    async def test_success_is_unwrapped(self) -> None:
        @handle_use_case_errors
        async def endpoint() -> Success[str]:
            return Success("ok")

        assert await endpoint() == "ok"

    @pytest.mark.asyncio
    async def test_failure_is_raised_as_http_error(self) -> None:
        @handle_use_case_errors
        async def endpoint() -> Failure[AppError]:
            return Failure(AppError("not_found", "There is no such file document."))

        with pytest.raises(HTTPException) as exc_info:
            await endpoint()

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_escaped_infrastructure_error_is_server_error(self) -> None:
        @handle_use_case_errors
        async def endpoint() -> None:
            msg = "disk unplugged"
            raise StorageError(msg)

        with pytest.raises(HTTPException) as exc_info:
            await endpoint()

        assert exc_info.value.status_code == 500
        assert "disk" not in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_unexpected_result_type_is_server_error(self) -> None:
        @handle_use_case_errors
        async def endpoint() -> str:
            return "not a result"

        with pytest.raises(HTTPException) as exc_info:
            await endpoint()

        assert exc_info.value.status_code == 500
