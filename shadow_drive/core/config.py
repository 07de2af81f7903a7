"""
Deployment configuration for the Shadow Drive SDK.

Defines the on-chain addresses, service endpoints and transport limits
every client component is built against.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import load_dotenv
from solders.pubkey import Pubkey


# Finality requested from the coordinator for every submitted transaction
FINALIZED = "finalized"

ENV_PREFIX = "SHDW_DRIVE_"


@dataclass(frozen=True)
class ShadowDriveConfig:
    """Addresses and endpoints of one Shadow Drive deployment"""

    # On-chain addresses
    program_id: Pubkey = Pubkey.from_string("2e1wdyNhUvE76y6yUCvah2KaviavMJYKoRun8acMRBZZ")
    token_mint: Pubkey = Pubkey.from_string("SHDWyBxihqiCj6YekG2GUr7wqKLeLAMK1gHZck9pL6y")
    emissions_wallet: Pubkey = Pubkey.from_string("SHDWRWMZ6kmRG9CvKFSD7kVcnUqXMtd3SaMrLvWscbj")
    uploader: Pubkey = Pubkey.from_string("972oJTFyjmVNsWM4GHEKPWUbEmFBjBNMCYiBZnogpsvA")
    token_program: Pubkey = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
    associated_token_program: Pubkey = Pubkey.from_string(
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
    )

    # Off-chain services
    storage_endpoint: str = "https://shadow-storage.genesysgo.net"
    portal_url: str = "https://portal.genesysgo.net"
    signin_message: str = "Sign in to GenesysGo Shadow Platform."
    provider_host_fragment: str = "genesysgo"

    # Transport limits (seconds)
    rpc_timeout: float = 120.0
    http_timeout: float = 120.0

    @property
    def portal_signin_url(self) -> str:
        return f"{self.portal_url}/api/signin"

    @property
    def portal_token_url(self) -> str:
        return f"{self.portal_url}/api/premium/token"


# Global config instance (can be overridden)
config = ShadowDriveConfig()


def _coerce(value: str, current):
    if isinstance(current, Pubkey):
        return Pubkey.from_string(value)
    if isinstance(current, float):
        return float(value)
    return value


def load_config(env_file: Optional[str] = None) -> ShadowDriveConfig:
    """
    Load configuration from the environment.

    Values are read from ``SHDW_DRIVE_<FIELD>`` variables, e.g.
    ``SHDW_DRIVE_STORAGE_ENDPOINT``. A ``.env`` file is loaded first
    without overriding variables already set in the process.

    Args:
        env_file: Optional path to a .env file

    Returns:
        ShadowDriveConfig instance
    """
    load_dotenv(env_file)

    overrides = {}
    for f in fields(ShadowDriveConfig):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is not None:
            overrides[f.name] = _coerce(raw, getattr(config, f.name))

    return replace(ShadowDriveConfig(), **overrides)
