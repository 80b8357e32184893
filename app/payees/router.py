"""
FastAPI Router for payee (recebedor) endpoints.
Parses requests, delegates to PayeeService and maps domain errors to HTTP responses.
"""
from typing import Any, Dict, List, Type
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logger import get_logger_with_correlation
from app.payees.exceptions import (
    PartialDeleteError,
    PayeeEditNotAllowedError,
    PayeeError,
    PayeeNotFoundError,
    PayeeValidationError,
    PixKeyAlreadyRegisteredError,
)
from app.payees.repository import SqlAlchemyPayeeRepository
from app.payees.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    PayeeCreateRequest,
    PayeeEmailUpdateRequest,
    PayeePageResponse,
    PayeeResponse,
    PayeeUpdateRequest,
)
from app.payees.service import PayeeService

router = APIRouter(tags=["Recebedores"])

# Most specific classes first; PartialDeleteError has its own handler body
ERROR_STATUS_CODES: List[tuple] = [
    (PayeeValidationError, 400),
    (PayeeNotFoundError, 404),
    (PayeeEditNotAllowedError, 409),
    (PixKeyAlreadyRegisteredError, 409),
    (PartialDeleteError, 207),
]


def status_code_for(exc: PayeeError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return 500


def get_correlation_id(request: Request) -> str:
    """Correlation id assigned by the tracing middleware (or a fresh one outside it)."""
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def get_payee_service(db: Session = Depends(get_db)) -> PayeeService:
    return PayeeService(SqlAlchemyPayeeRepository(db))


async def payee_error_handler(request: Request, exc: PayeeError) -> JSONResponse:
    """Translates domain errors into JSON responses with the matching HTTP status."""
    correlation_id = getattr(request.state, "correlation_id", "N/A")
    status_code = status_code_for(exc)
    logger = get_logger_with_correlation(correlation_id)
    logger.info(f"{type(exc).__name__}: {status_code} | {exc.message}")

    content: Dict[str, Any] = {"detail": exc.message, "correlation_id": correlation_id}
    if isinstance(exc, PartialDeleteError):
        content["succeeded_ids"] = exc.succeeded_ids
        content["failed_ids"] = exc.failed_ids

    return JSONResponse(status_code=status_code, content=content)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or ill-typed request fields are reported as a 400 listing each field."""
    correlation_id = getattr(request.state, "correlation_id", "N/A")
    fields = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "error": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"detail": "campos obrigatórios", "fields": fields, "correlation_id": correlation_id})
    )


EXCEPTION_HANDLERS: Dict[Type[Exception], Any] = {
    PayeeError: payee_error_handler,
    RequestValidationError: request_validation_error_handler,
}


@router.post("/recebedores", response_model=PayeeResponse, status_code=201)
def create_payee(
    data: PayeeCreateRequest,
    service: PayeeService = Depends(get_payee_service),
    correlation_id: str = Depends(get_correlation_id)
) -> PayeeResponse:
    """
    Registers a payee. The payee always starts as **Rascunho** (draft).

    - **cpf_cnpj**: valid CPF or CNPJ
    - **name**: at least 3 characters
    - **key_type**: CPF, CNPJ, EMAIL, TELEFONE or CHAVE_ALEATORIA
    - **pix_key**: key in the format of key_type
    - **email**: optional contact email
    """
    logger = get_logger_with_correlation(correlation_id)
    logger.info(f"Starting payee creation: key_type={data.key_type}")

    payee = service.create(data, correlation_id=correlation_id)
    return PayeeResponse.model_validate(payee)


@router.get("/recebedores/chave", response_model=PayeePageResponse)
def search_payees_by_pix_key(
    chave: str,
    pagina: int = Query(1),
    service: PayeeService = Depends(get_payee_service)
) -> PayeePageResponse:
    """Lists payees holding the given Pix key."""
    return PayeePageResponse.model_validate(service.search_by_pix_key(chave, pagina), from_attributes=True)


@router.get("/recebedores/nome/{name}", response_model=PayeePageResponse)
def search_payees_by_name(
    name: str,
    pagina: int = Query(1),
    service: PayeeService = Depends(get_payee_service)
) -> PayeePageResponse:
    """Lists payees with the given name (case-insensitive)."""
    return PayeePageResponse.model_validate(service.search_by_name(name, pagina), from_attributes=True)


@router.get("/recebedores/status/{status}", response_model=PayeePageResponse)
def search_payees_by_status(
    status: str,
    pagina: int = Query(1),
    service: PayeeService = Depends(get_payee_service)
) -> PayeePageResponse:
    """Lists payees in the given status: Rascunho, Validando or Validado."""
    return PayeePageResponse.model_validate(service.search_by_status(status, pagina), from_attributes=True)


@router.get("/recebedores/tipo-chave/{key_type}", response_model=PayeePageResponse)
def search_payees_by_key_type(
    key_type: str,
    pagina: int = Query(1),
    service: PayeeService = Depends(get_payee_service)
) -> PayeePageResponse:
    """Lists payees with the given Pix key type."""
    return PayeePageResponse.model_validate(service.search_by_key_type(key_type, pagina), from_attributes=True)


@router.get("/recebedores/{payee_id}", response_model=PayeeResponse)
def get_payee(
    payee_id: int,
    service: PayeeService = Depends(get_payee_service)
) -> PayeeResponse:
    """Retrieves payee details by ID."""
    return PayeeResponse.model_validate(service.get_by_id(payee_id))


@router.patch("/recebedores/{payee_id}", response_model=PayeeResponse)
def edit_payee(
    payee_id: int,
    data: PayeeUpdateRequest,
    service: PayeeService = Depends(get_payee_service),
    correlation_id: str = Depends(get_correlation_id)
) -> PayeeResponse:
    """
    Edits a payee. Rejected with 409 once the payee is **Validado**;
    use the email endpoint for validated payees.
    """
    payee = service.edit(payee_id, data, correlation_id=correlation_id)
    return PayeeResponse.model_validate(payee)


@router.patch("/recebedores/{payee_id}/email", response_model=PayeeResponse)
def edit_payee_email(
    payee_id: int,
    data: PayeeEmailUpdateRequest,
    service: PayeeService = Depends(get_payee_service),
    correlation_id: str = Depends(get_correlation_id)
) -> PayeeResponse:
    """Changes only the email. Allowed in every status."""
    payee = service.edit_email(payee_id, data.email, correlation_id=correlation_id)
    return PayeeResponse.model_validate(payee)


@router.delete("/recebedores/{payee_id}", status_code=204)
def delete_payee(
    payee_id: int,
    service: PayeeService = Depends(get_payee_service),
    correlation_id: str = Depends(get_correlation_id)
):
    service.delete(payee_id, correlation_id=correlation_id)
    return


@router.delete("/recebedores", response_model=BulkDeleteResponse)
def delete_payees(
    data: BulkDeleteRequest,
    service: PayeeService = Depends(get_payee_service),
    correlation_id: str = Depends(get_correlation_id)
) -> BulkDeleteResponse:
    """
    Deletes several payees. When some ids fail the others are still deleted
    and the response is **207** listing succeeded_ids and failed_ids.
    """
    deleted = service.delete_many(data.ids, correlation_id=correlation_id)
    return BulkDeleteResponse(deleted_ids=deleted)
