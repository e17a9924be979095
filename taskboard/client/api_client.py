"""Async HTTP client for the taskboard API."""

import logging
from types import TracebackType
from typing import Any, Self

import httpx

from taskboard.domain.task import Task, TaskPage, TaskStats
from taskboard.domain.user import AuthResult, User


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
HTTP_UNAUTHORIZED = 401


class ApiClientError(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


def _error_from_response(response: httpx.Response) -> ApiClientError:
    """Build an ApiClientError from the ``{success, message, details}`` envelope."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message") or response.reason_phrase
        return ApiClientError(response.status_code, str(message), body.get("details"))
    return ApiClientError(response.status_code, response.reason_phrase or "Request failed")


class TaskboardClient:
    """Talks to the API over httpx and keeps the session token between calls.

    The token is stored after ``register``/``login`` and sent as
    ``Authorization: Bearer <token>``. Any 401 clears it.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._http.request(method, path, json=json, params=params, headers=self._headers())

        if response.status_code == HTTP_UNAUTHORIZED:
            # The server no longer accepts this token
            self.token = None

        if response.is_error:
            error = _error_from_response(response)
            logger.info(
                "API request failed",
                extra={"method": method, "path": path, "status_code": error.status_code, "error": error.message},
            )
            raise error

        return response.json()

    # Auth

    async def register(self, *, name: str, email: str, password: str) -> AuthResult:
        data = await self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        result = AuthResult.model_validate(data)
        self.token = result.token
        return result

    async def login(self, *, email: str, password: str) -> AuthResult:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        result = AuthResult.model_validate(data)
        self.token = result.token
        return result

    async def me(self) -> User:
        return User.model_validate(await self._request("GET", "/auth/me"))

    async def update_me(self, **changes: Any) -> User:
        return User.model_validate(await self._request("PUT", "/auth/me", json=changes))

    async def logout(self) -> None:
        """Tell the server, then forget the token even if the call fails."""
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self.token = None

    # Tasks

    async def list_tasks(self, params: dict[str, Any] | None = None) -> TaskPage:
        return TaskPage.model_validate(await self._request("GET", "/tasks", params=params))

    async def get_task(self, task_id: str) -> Task:
        return Task.model_validate(await self._request("GET", f"/tasks/{task_id}"))

    async def create_task(self, *, title: str, description: str | None = None, status: str | None = None) -> Task:
        payload: dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        if status is not None:
            payload["status"] = status
        return Task.model_validate(await self._request("POST", "/tasks", json=payload))

    async def update_task(self, task_id: str, **changes: Any) -> Task:
        return Task.model_validate(await self._request("PUT", f"/tasks/{task_id}", json=changes))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def get_stats(self) -> TaskStats:
        return TaskStats.model_validate(await self._request("GET", "/tasks/stats"))
