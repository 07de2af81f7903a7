"""
Coordinator - HTTP client for the Shadow Drive storage service.

Every call is a JSON POST. Failures are reported in three distinct ways:

- the request never completed: TransportError
- the server answered non-2xx: ShadowDriveServerError with the status and
  the parsed JSON body, unmodified
- the server answered 2xx with an unexpected body: ResponseDecodeError
"""

from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shadow_drive.core.config import FINALIZED, ShadowDriveConfig
from shadow_drive.core.errors import (
    ResponseDecodeError,
    ShadowDriveServerError,
    TransportError,
)
from shadow_drive.core.models import TransactionRequest
from shadow_drive.utils.logger import get_logger


logger = get_logger("coordinator")

ResponseT = TypeVar("ResponseT", bound=BaseModel)

JSON_HEADERS = {"Content-Type": "application/json"}


def error_body(response: httpx.Response) -> Any:
    """Parsed JSON body of an error response, raw text if it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def decode_response(response: httpx.Response, response_model: Type[ResponseT]) -> ResponseT:
    """
    Check the status and decode a 2xx body into response_model.

    Raises:
        ShadowDriveServerError: Non-2xx status
        ResponseDecodeError: Body does not match response_model
    """
    if not response.is_success:
        raise ShadowDriveServerError(response.status_code, error_body(response))
    try:
        return response_model.model_validate_json(response.content)
    except ValidationError as e:
        raise ResponseDecodeError(
            f"Unexpected {response_model.__name__} body: {e}"
        ) from e


class CoordinatorClient:
    """Posts requests and signed transactions to the storage coordinator."""

    def __init__(self, http: httpx.AsyncClient, config: ShadowDriveConfig):
        self.http = http
        self.endpoint = config.storage_endpoint.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.endpoint}/{path.lstrip('/')}"

    async def post(self, path: str, body: BaseModel, response_model: Type[ResponseT]) -> ResponseT:
        url = self.url(path)
        try:
            response = await self.http.post(
                url,
                content=body.model_dump_json(by_alias=True),
                headers=JSON_HEADERS,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"POST {url} failed: {e}") from e

        if not response.is_success:
            logger.warning(f"POST {url} returned {response.status_code}")
        return decode_response(response, response_model)

    async def submit(
        self,
        path: str,
        encoded_transaction: str,
        response_model: Type[ResponseT],
    ) -> ResponseT:
        """Submit a signed transaction; the coordinator co-signs and lands it."""
        logger.info(f"Submitting transaction to {path}")
        body = TransactionRequest(transaction=encoded_transaction, commitment=FINALIZED)
        return await self.post(path, body, response_model)
