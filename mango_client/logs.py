"""Log queries. Logs are read-only and always fetched fresh, never cached."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from mango_client.errors import TransportError
from mango_client.schemas import LogFilter, LogResponse
from mango_client.transport import routes
from mango_client.transport.base import Transport


logger = logging.getLogger(__name__)


class LogQueryClient:
    """Paginated access to the backend's LLM call logs."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def _query(self, path: str, body: dict) -> LogResponse:
        data = await self._transport.request(path, "POST", body)
        try:
            response = LogResponse.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Malformed log response from {path}: {e}") from e
        logger.debug(f"Fetched {len(response.logs)} of {response.pagination.total} logs from {path}")
        return response

    async def query_logs(self, log_filter: LogFilter | None = None) -> LogResponse:
        log_filter = log_filter or LogFilter()
        return await self._query(routes.LOGS, log_filter.to_wire())

    async def query_goal_logs(self, goal_uid: str, log_filter: LogFilter | None = None) -> LogResponse:
        """Logs recorded for one goal. Any goal in the filter is ignored."""
        body = (log_filter or LogFilter()).to_wire()
        body.pop("goalUID", None)
        return await self._query(routes.goal_logs(goal_uid), body)

    async def query_prompt_logs(self, prompt_uid: str, log_filter: LogFilter | None = None) -> LogResponse:
        """Logs recorded for one prompt. Any prompt in the filter is ignored."""
        body = (log_filter or LogFilter()).to_wire()
        body.pop("promptUID", None)
        return await self._query(routes.prompt_logs(prompt_uid), body)
