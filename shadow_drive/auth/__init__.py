"""GenesysGo portal sign-in"""
from shadow_drive.auth.genesysgo import (
    GenesysGoAuth,
    PortalAuthResponse,
    PortalSignIn,
    PortalUser,
    TokenResponse,
    authenticate,
    build_signin_request,
    parse_account_id_from_url,
)

__all__ = [
    "GenesysGoAuth",
    "PortalAuthResponse",
    "PortalSignIn",
    "PortalUser",
    "TokenResponse",
    "authenticate",
    "build_signin_request",
    "parse_account_id_from_url",
]
