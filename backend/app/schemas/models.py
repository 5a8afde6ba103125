from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Transaction(BaseModel):
    id: str = Field(..., description="Unique within the owning account's list.")
    title: str
    description: str = ""
    type: str
    amount: float = Field(..., description="Positive for inflow, negative for outflow.")
    date: str = Field(..., description="ISO-8601 timestamp, used for ordering.")


class Account(BaseModel):
    """Persisted account record.

    Field aliases are the on-disk keys, so records are written and read with
    ``by_alias=True``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    credential_hash: str = Field(..., alias="passwordHash")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    transactions: list[Transaction] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: Any) -> "Account":
        return cls.model_validate(record)


# Request bodies accept any JSON value per field; the services validate them
# so that malformed input maps to a 400 rather than a schema error.


class CredentialsRequest(BaseModel):
    email: Any = None
    password: Any = None


class SyncRequest(BaseModel):
    transactions: Any = None


class DeleteAccountRequest(BaseModel):
    confirm: Any = None


class HealthResponse(BaseModel):
    ok: bool = True
    now: str


class SuccessResponse(BaseModel):
    success: bool = True


class TokenResponse(BaseModel):
    token: str


class TransactionsResponse(BaseModel):
    transactions: list[Transaction]


class MergeResponse(BaseModel):
    success: bool = True
    transactions: list[Transaction]
