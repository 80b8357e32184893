"""
Pydantic schemas for payee requests and responses.
Only presence and types are checked here; business rules live in app.payees.policy.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from app.payees.models import PayeeStatus


class PayeeCreateRequest(BaseModel):
    """Payee registration payload."""
    cpf_cnpj: str = Field(..., min_length=1, description="Payee CPF or CNPJ, with or without punctuation")
    name: str = Field(..., min_length=1, max_length=200, description="Payee name")
    key_type: str = Field(..., min_length=1, description="CPF, CNPJ, EMAIL, TELEFONE or CHAVE_ALEATORIA")
    pix_key: str = Field(..., min_length=1, max_length=200, description="Pix key matching key_type")
    email: Optional[str] = Field(None, max_length=200, description="Contact email")


class PayeeUpdateRequest(BaseModel):
    """Full edit payload. Omitted fields keep their stored values."""
    cpf_cnpj: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    key_type: Optional[str] = None
    pix_key: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=200)


class PayeeEmailUpdateRequest(BaseModel):
    """Email-only edit payload, accepted in every status."""
    email: str = Field(..., min_length=1, max_length=200)


class PayeeResponse(BaseModel):
    """Payee details response payload."""
    id: int
    cpf_cnpj: str
    name: str
    key_type: str
    pix_key: str
    status: PayeeStatus
    email: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class PayeePageResponse(BaseModel):
    """One page of a payee search."""
    total: int
    per_page: int
    current_page: int
    total_pages: int
    items: List[PayeeResponse]


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1, description="Ids of the payees to delete")


class BulkDeleteResponse(BaseModel):
    deleted_ids: List[int]
