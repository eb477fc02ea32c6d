from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from pydantic import ValidationError

from .config import DEFAULT_API_URL
from .models import SearchRequest, TrainApiResponse

logger = logging.getLogger(__name__)


class TrenitaliaClientError(RuntimeError):
    """Upstream call failed or returned an unusable payload."""

    def __init__(self, status_code: Optional[int], payload: Any) -> None:
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"HTTP {status_code} – {str(payload)[:120]}")


class TrenitaliaClient:
    """Client for the LeFrecce ticket-solutions endpoint."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        *,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def search_solutions(self, request: SearchRequest) -> TrainApiResponse:
        """POST *request* and return the validated response."""
        logger.debug(
            "Searching %s ➔ %s on %s",
            request.departure_location_id,
            request.arrival_location_id,
            request.departure_time,
        )
        try:
            resp = self.session.post(
                self.api_url,
                json=request.to_payload(),
                headers={
                    "Content-Type": "application/json",
                    "Cache-Control": "no-cache",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TrenitaliaClientError(None, str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            raise TrenitaliaClientError(resp.status_code, _body(resp))

        try:
            data = resp.json()
        except ValueError as exc:
            raise TrenitaliaClientError(
                resp.status_code, f"Invalid JSON: {resp.text[:120]}"
            ) from exc

        return parse_response(data)


def parse_response(data: Any) -> TrainApiResponse:
    """Validate a raw payload; raise ``TrenitaliaClientError`` (400) if malformed."""
    try:
        return TrainApiResponse.model_validate(data)
    except ValidationError as exc:
        errors = [
            {
                "property": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        raise TrenitaliaClientError(
            400, {"message": "Validation failed", "errors": errors}
        ) from exc


def _body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


__all__ = ["TrenitaliaClient", "TrenitaliaClientError", "parse_response"]
