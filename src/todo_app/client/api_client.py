# src/todo_app/client/api_client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import normalize_base_url
from ..errors import ApiError, NetworkError, NotFoundError, TodoError, ValidationError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


def _make_timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


class TodoApiClient:
    """
    Async JSON client for the /todos REST API.

    Errors:
    - 400 -> ValidationError, 404 -> NotFoundError
    - any other non-2xx with a {"message": ...} body -> ApiError
    - transport failures, and non-2xx without a structured body -> NetworkError

    No retries: every failure is reported to the caller as-is.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=_make_timeout(timeout),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TodoApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---- low-level helpers ----

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.info("API %s %s transport error: %s", method, path, e.__class__.__name__)
            raise NetworkError(f"Network error: {e.__class__.__name__}") from e

        data = self._decode(response)

        if response.is_success:
            return data

        status = response.status_code
        message = data.get("message") if isinstance(data, dict) else None
        logger.info("API %s %s -> %s (%s)", method, path, status, message)

        if not isinstance(message, str) or not message:
            raise NetworkError(f"Request failed with status {status}", status=status)
        if status == 400:
            raise ValidationError(message, status=status)
        if status == 404:
            raise NotFoundError(message, status=status)
        raise ApiError(message, status=status)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _to_task(data: Any) -> Task:
        if not isinstance(data, dict):
            raise ApiError("Unexpected response from server")
        try:
            return Task.from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError("Unexpected response from server") from e

    # ---- public API ----

    async def list_tasks(self) -> list[Task]:
        data = await self._request("GET", "/todos")
        if not isinstance(data, list):
            return []
        return [self._to_task(item) for item in data]

    async def create_task(self, title: str, completed: bool = False) -> Task:
        data = await self._request("POST", "/todos", json={"title": title, "completed": completed})
        return self._to_task(data)

    async def update_task(self, task_id: int, body: dict[str, Any]) -> Task:
        data = await self._request("PUT", f"/todos/{int(task_id)}", json=body)
        return self._to_task(data)

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/todos/{int(task_id)}")

    async def health(self, path: str = "/healthz") -> dict[str, Any]:
        data = await self._request("GET", path)
        if not isinstance(data, dict):
            raise TodoError("Unexpected health payload")
        return data
