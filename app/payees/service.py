"""
Business logic for payees (recebedores).
Sequences validation, normalization and persistence; owns error classification
and the aggregation of partial bulk deletes.
"""
import math
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.logger import audit_log, logger
from app.core.utils import mask_cpf_cnpj, mask_pix_key
from app.payees.exceptions import (
    InvalidEmailError,
    InvalidKeyTypeError,
    InvalidPageError,
    InvalidPixKeyError,
    InvalidStatusError,
    PartialDeleteError,
    PayeeNotFoundError,
    PixKeyAlreadyRegisteredError,
)
from app.payees.models import Payee, PayeeStatus, PixKeyType
from app.payees.normalizer import normalize_payee, pix_key_variants
from app.payees.policy import ensure_email_editable, validate_for_create, validate_for_edit
from app.payees.repository import PAGE_SIZE, PayeeRepository, SearchField
from app.payees.schemas import PayeeCreateRequest, PayeeUpdateRequest
from app.payees.validators import is_any_valid_key, is_valid_key_type

EDITABLE_FIELDS = ("cpf_cnpj", "name", "key_type", "pix_key", "email")


class PayeeService:
    """
    Entry point for every payee operation exposed to the presentation layer.

    enforce_unique_pix_key toggles the "one payee per Pix key" rule; it defaults
    to the ENFORCE_UNIQUE_PIX_KEY setting.
    """

    def __init__(self, repository: PayeeRepository, enforce_unique_pix_key: Optional[bool] = None):
        self.repository = repository
        if enforce_unique_pix_key is None:
            enforce_unique_pix_key = settings.ENFORCE_UNIQUE_PIX_KEY
        self.enforce_unique_pix_key = enforce_unique_pix_key

    def _ensure_pix_key_available(self, pix_key: str, payee_id: Optional[int] = None) -> None:
        """The key is compared by value: every stored form of it counts as taken."""
        if not self.enforce_unique_pix_key:
            return
        holder = self.repository.find_pix_key_holder(pix_key_variants(pix_key), exclude_id=payee_id)
        if holder is not None:
            logger.info(f"Pix key already registered: payee_id={holder.id}, key={mask_pix_key(pix_key)}")
            raise PixKeyAlreadyRegisteredError()

    def create(self, data: PayeeCreateRequest, correlation_id: Optional[str] = None) -> Payee:
        """
        Registers a new payee.
        The status is always Draft regardless of the input; the id comes from storage.
        """
        payee = Payee(
            cpf_cnpj=data.cpf_cnpj,
            name=data.name,
            key_type=data.key_type,
            pix_key=data.pix_key,
            email=data.email or None,
        )

        try:
            validate_for_create(payee)
        except ValueError as e:
            logger.warning(f"Payee rejected on create: {str(e)}")
            raise

        normalize_payee(payee)
        self._ensure_pix_key_available(payee.pix_key)
        payee.status = PayeeStatus.DRAFT

        try:
            payee = self.repository.create_payee(payee)
        except Exception as e:
            logger.error(f"Error saving payee: {str(e)}")
            raise

        audit_log(
            action="payee_created",
            user="api",
            resource=f"payee_id={payee.id}",
            details={
                "correlation_id": correlation_id,
                "cpf_cnpj": mask_cpf_cnpj(payee.cpf_cnpj),
                "key_type": payee.key_type,
                "masked_key": mask_pix_key(payee.pix_key),
            }
        )
        logger.info(f"Payee created: id={payee.id}")
        return payee

    def get_by_id(self, payee_id: int) -> Payee:
        payee = self.repository.get_payee_by_id(payee_id)
        if payee is None:
            logger.warning(f"Payee not found: id={payee_id}")
            raise PayeeNotFoundError()
        return payee

    def edit(self, payee_id: int, data: PayeeUpdateRequest, correlation_id: Optional[str] = None) -> Payee:
        """
        Replaces the editable fields of a payee that is not yet Validated.
        Fields left out of the request keep their stored values; the merged
        result must pass the same rules as a new payee.
        """
        current = self.get_by_id(payee_id)

        changes = data.model_dump(exclude_none=True)
        proposal = Payee(
            id=current.id,
            status=current.status,
            **{field: changes.get(field, getattr(current, field)) for field in EDITABLE_FIELDS}
        )

        try:
            validate_for_edit(proposal, current.status)
        except ValueError as e:
            logger.warning(f"Payee rejected on edit: id={payee_id}, reason={str(e)}")
            raise

        normalize_payee(proposal)
        proposal.email = proposal.email or None
        self._ensure_pix_key_available(proposal.pix_key, payee_id=current.id)

        try:
            payee = self.repository.update_payee(proposal)
        except Exception as e:
            logger.error(f"Error editing payee {payee_id}: {str(e)}")
            raise

        audit_log(
            action="payee_edited",
            user="api",
            resource=f"payee_id={payee_id}",
            details={"correlation_id": correlation_id, "fields": sorted(changes)}
        )
        logger.info(f"Payee edited: id={payee_id}")
        return payee

    def edit_email(self, payee_id: int, email: str, correlation_id: Optional[str] = None) -> Payee:
        """Changes only the email. Allowed in every status, including Validated."""
        try:
            ensure_email_editable(email)
        except InvalidEmailError:
            logger.info(f"Invalid email for payee {payee_id}")
            raise

        self.get_by_id(payee_id)

        try:
            payee = self.repository.update_payee_email(payee_id, email.lower())
        except Exception as e:
            logger.error(f"Error updating email of payee {payee_id}: {str(e)}")
            raise

        audit_log(
            action="payee_email_edited",
            user="api",
            resource=f"payee_id={payee_id}",
            details={"correlation_id": correlation_id}
        )
        logger.info(f"Payee email edited: id={payee_id}")
        return payee

    def delete(self, payee_id: int, correlation_id: Optional[str] = None) -> None:
        self.get_by_id(payee_id)

        try:
            self.repository.delete_payee(payee_id)
        except Exception as e:
            logger.error(f"Error deleting payee {payee_id}: {str(e)}")
            raise

        audit_log(
            action="payee_deleted",
            user="api",
            resource=f"payee_id={payee_id}",
            details={"correlation_id": correlation_id}
        )
        logger.info(f"Payee deleted: id={payee_id}")

    def delete_many(self, payee_ids: List[int], correlation_id: Optional[str] = None) -> List[int]:
        """
        Deletes each id independently. This is not atomic: ids already removed
        stay removed when others fail, and the failures are reported together
        in a PartialDeleteError.
        """
        succeeded: List[int] = []
        failed: List[int] = []

        for payee_id in payee_ids:
            try:
                self.delete(payee_id, correlation_id=correlation_id)
            except Exception as e:
                logger.warning(f"Payee {payee_id} not deleted in bulk operation: {str(e)}")
                failed.append(payee_id)
            else:
                succeeded.append(payee_id)

        if failed:
            raise PartialDeleteError(succeeded_ids=succeeded, failed_ids=failed)
        return succeeded

    def search(self, field: SearchField, value: Any, page: int) -> Dict[str, Any]:
        """
        Returns one page (PAGE_SIZE items) of payees whose field equals value,
        together with the totals needed to paginate.
        """
        if page < 1:
            raise InvalidPageError()

        total = self.repository.count_by_field(value, field)
        items = self.repository.list_by_field(value, field, (page - 1) * PAGE_SIZE)

        return {
            "total": total,
            "per_page": PAGE_SIZE,
            "current_page": page,
            "total_pages": math.ceil(total / PAGE_SIZE),
            "items": items,
        }

    def search_by_name(self, name: str, page: int) -> Dict[str, Any]:
        # Names are stored lower-cased
        return self.search(SearchField.NAME, name.strip().lower(), page)

    def search_by_status(self, status: str, page: int) -> Dict[str, Any]:
        try:
            status = PayeeStatus(status)
        except ValueError:
            raise InvalidStatusError()
        return self.search(SearchField.STATUS, status, page)

    def search_by_pix_key(self, pix_key: str, page: int) -> Dict[str, Any]:
        if not is_any_valid_key(pix_key):
            raise InvalidPixKeyError()
        return self.search(SearchField.PIX_KEY, pix_key_variants(pix_key), page)

    def search_by_key_type(self, key_type: str, page: int) -> Dict[str, Any]:
        if not is_valid_key_type(key_type):
            raise InvalidKeyTypeError()
        return self.search(SearchField.KEY_TYPE, PixKeyType(key_type).value, page)
