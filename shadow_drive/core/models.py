"""
Request and response bodies exchanged with the storage coordinator.

Response models ignore unknown fields so additive server changes do not
break decoding; missing required fields do.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shadow_drive.core.config import FINALIZED


class TransactionRequest(BaseModel):
    """Body of every transaction submission."""
    transaction: str
    commitment: str = FINALIZED


class ShdwDriveResponse(BaseModel):
    txid: str


class StorageResponse(BaseModel):
    """Answer to add-storage, reduce-storage and make-immutable."""
    message: str
    transaction_signature: str
    error: Optional[str] = None


class CreateStorageAccountResponse(BaseModel):
    shdw_bucket: Optional[str] = None
    transaction_signature: str


class DeleteFileResponse(BaseModel):
    message: str
    error: Optional[str] = None


class ListObjectsResponse(BaseModel):
    keys: List[str]


class FileData(BaseModel):
    """Metadata of a stored object. Extra server fields are kept."""
    model_config = ConfigDict(extra="allow")

    file_account_pubkey: Optional[str] = None
    storage_account_pubkey: Optional[str] = None
    owner_pubkey: Optional[str] = None
    file_name: Optional[str] = None
    size: Optional[int] = None


class FileDataResponse(BaseModel):
    file_data: FileData


class DeleteFileRequest(BaseModel):
    """Off-chain delete of a V2 file, authorized by a signed message."""
    signer: str
    message: str
    location: str


class ListObjectsRequest(BaseModel):
    storage_account: str = Field(serialization_alias="storageAccount")


class LocationRequest(BaseModel):
    location: str
