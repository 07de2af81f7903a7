"""
GenesysGo portal authentication.

Sign-in is two strictly ordered requests:

1. Portal login: sign the fixed challenge with the wallet and post the
   base58 signature to /api/signin, receiving a portal JWT.
2. RPC token exchange: post to /api/premium/token/{account_id} bearing the
   portal JWT, receiving a bearer token for premium RPC access.

A failure in either step ends the handshake; callers retry from step 1.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from solders.keypair import Keypair

from shadow_drive.core.config import ShadowDriveConfig, config as default_config
from shadow_drive.core.errors import InvalidProviderUrl, TransportError
from shadow_drive.network.coordinator import JSON_HEADERS, decode_response
from shadow_drive.utils.logger import get_logger


logger = get_logger("auth")


class PortalSignIn(BaseModel):
    """Step 1 request body."""
    message: str  # base58 signature of the challenge
    signer: str


class PortalUser(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    public_key: str
    created_at: str
    updated_at: str


class PortalAuthResponse(BaseModel):
    """Step 1 response."""
    token: str
    user: PortalUser


class TokenResponse(BaseModel):
    """Step 2 response, the RPC bearer token."""
    token: str


def build_signin_request(signer: Keypair, message: str) -> PortalSignIn:
    signature = signer.sign_message(message.encode())
    # str() of a solders signature/pubkey is its base58 encoding
    return PortalSignIn(message=str(signature), signer=str(signer.pubkey()))


def parse_account_id_from_url(provider_url: str, host_fragment: str = "genesysgo") -> str:
    """
    Extract the account id from a GenesysGo RPC URL (its last path segment).

    Raises:
        InvalidProviderUrl: Not a GenesysGo URL, or no path segment
    """
    if host_fragment not in provider_url:
        raise InvalidProviderUrl(f"Not a {host_fragment} URL, cannot infer account id: {provider_url}")

    try:
        path = httpx.URL(provider_url).path
    except httpx.InvalidURL as e:
        raise InvalidProviderUrl(f"Could not parse {host_fragment} URL: {provider_url}") from e

    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        raise InvalidProviderUrl(f"No account id in {host_fragment} URL: {provider_url}")
    return segments[-1]


class GenesysGoAuth:
    """Runs the two-step portal sign-in over a shared HTTP client."""

    def __init__(self, http: httpx.AsyncClient, config: Optional[ShadowDriveConfig] = None):
        self.http = http
        self.config = config or default_config

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.http.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {url} failed: {e}") from e

    async def portal_auth(self, signer: Keypair) -> PortalAuthResponse:
        """Step 1: acquire the portal JWT."""
        body = build_signin_request(signer, self.config.signin_message)
        response = await self._post(
            self.config.portal_signin_url,
            content=body.model_dump_json(),
            headers=JSON_HEADERS,
        )
        auth = decode_response(response, PortalAuthResponse)
        logger.info(f"Portal sign-in succeeded for user {auth.user.id}")
        return auth

    async def rpc_auth(self, account_id: str, portal_token: str) -> TokenResponse:
        """Step 2: exchange the portal JWT for an RPC bearer token."""
        if not account_id:
            raise InvalidProviderUrl("account id must not be empty")
        response = await self._post(
            f"{self.config.portal_token_url}/{account_id}",
            headers={**JSON_HEADERS, "Authorization": f"Bearer {portal_token}"},
        )
        return decode_response(response, TokenResponse)

    async def authenticate(self, signer: Keypair, account_id: str) -> str:
        """Both steps; returns only the RPC bearer token."""
        portal = await self.portal_auth(signer)
        token = await self.rpc_auth(account_id, portal.token)
        return token.token

    async def authenticate_with_url(self, signer: Keypair, provider_url: str) -> str:
        account_id = parse_account_id_from_url(provider_url, self.config.provider_host_fragment)
        return await self.authenticate(signer, account_id)


async def authenticate(
    signer: Keypair,
    account_id: str,
    config: Optional[ShadowDriveConfig] = None,
) -> str:
    """
    Obtain an RPC bearer token without keeping the portal token.

    Uses a short-lived HTTP client bounded by the configured timeout.
    """
    cfg = config or default_config
    async with httpx.AsyncClient(timeout=cfg.http_timeout) as http:
        return await GenesysGoAuth(http, cfg).authenticate(signer, account_id)
