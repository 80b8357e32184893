"""
Storage collaborator for payees.
The service depends only on PayeeRepository; SqlAlchemyPayeeRepository is the relational adapter.
"""
import abc
import enum
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.payees.exceptions import PayeeNotFoundError
from app.payees.models import Payee

PAGE_SIZE = 10


class SearchField(str, enum.Enum):
    """Closed set of fields payees can be searched by."""
    NAME = "name"
    STATUS = "status"
    PIX_KEY = "pix_key"
    KEY_TYPE = "key_type"


class PayeeRepository(abc.ABC):
    """Persistence contract consumed by PayeeService."""

    @abc.abstractmethod
    def create_payee(self, payee: Payee) -> Payee:
        """Persists a new payee and assigns its id."""

    @abc.abstractmethod
    def get_payee_by_id(self, payee_id: int) -> Optional[Payee]:
        """Returns the payee or None when it does not exist."""

    @abc.abstractmethod
    def find_pix_key_holder(self, pix_keys: List[str], exclude_id: Optional[int] = None) -> Optional[Payee]:
        """Returns a payee, other than exclude_id, whose key is any of pix_keys."""

    @abc.abstractmethod
    def update_payee(self, payee: Payee) -> Payee:
        """Writes every editable field. Raises PayeeNotFoundError for unknown ids."""

    @abc.abstractmethod
    def update_payee_email(self, payee_id: int, email: str) -> Payee:
        """Writes only the email. Raises PayeeNotFoundError for unknown ids."""

    @abc.abstractmethod
    def delete_payee(self, payee_id: int) -> None:
        """Removes one payee. Raises PayeeNotFoundError for unknown ids."""

    @abc.abstractmethod
    def delete_payees(self, payee_ids: List[int]) -> int:
        """Removes every listed payee in one statement and returns the number of rows removed."""

    @abc.abstractmethod
    def count_by_field(self, value: Any, field: SearchField) -> int:
        """Counts payees whose field equals value (or any item of value, when it is a list)."""

    @abc.abstractmethod
    def list_by_field(self, value: Any, field: SearchField, offset: int, limit: int = PAGE_SIZE) -> List[Payee]:
        """Returns one page of payees whose field equals value, ordered by id."""


class SqlAlchemyPayeeRepository(PayeeRepository):
    """PayeeRepository backed by a request-scoped SQLAlchemy session."""

    # Explicit field -> column mapping; no caller-provided string reaches the SQL
    SEARCH_COLUMNS: Dict[SearchField, Any] = {
        SearchField.NAME: Payee.name,
        SearchField.STATUS: Payee.status,
        SearchField.PIX_KEY: Payee.pix_key,
        SearchField.KEY_TYPE: Payee.key_type,
    }

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transaction failed, rolled back: {str(e)}")
            raise

    def _get_or_raise(self, payee_id: int) -> Payee:
        payee = self.get_payee_by_id(payee_id)
        if payee is None:
            raise PayeeNotFoundError()
        return payee

    def create_payee(self, payee: Payee) -> Payee:
        self.db.add(payee)
        self._commit()
        self.db.refresh(payee)
        return payee

    def get_payee_by_id(self, payee_id: int) -> Optional[Payee]:
        return self.db.get(Payee, payee_id)

    def find_pix_key_holder(self, pix_keys: List[str], exclude_id: Optional[int] = None) -> Optional[Payee]:
        query = select(Payee).where(Payee.pix_key.in_(pix_keys))
        if exclude_id is not None:
            query = query.where(Payee.id != exclude_id)
        return self.db.scalars(query.order_by(Payee.id).limit(1)).first()

    def update_payee(self, payee: Payee) -> Payee:
        stored = self._get_or_raise(payee.id)
        if stored is not payee:
            stored.cpf_cnpj = payee.cpf_cnpj
            stored.name = payee.name
            stored.key_type = payee.key_type
            stored.pix_key = payee.pix_key
            stored.email = payee.email
        self._commit()
        self.db.refresh(stored)
        return stored

    def update_payee_email(self, payee_id: int, email: str) -> Payee:
        stored = self._get_or_raise(payee_id)
        stored.email = email
        self._commit()
        self.db.refresh(stored)
        return stored

    def delete_payee(self, payee_id: int) -> None:
        stored = self._get_or_raise(payee_id)
        self.db.delete(stored)
        self._commit()

    def delete_payees(self, payee_ids: List[int]) -> int:
        if not payee_ids:
            return 0
        result = self.db.execute(delete(Payee).where(Payee.id.in_(payee_ids)))
        self._commit()
        return result.rowcount

    def _field_filter(self, value: Any, field: SearchField) -> Any:
        column = self.SEARCH_COLUMNS[SearchField(field)]
        # A list holds alternative forms of the same value
        if isinstance(value, (list, tuple, set, frozenset)):
            return column.in_(value)
        return column == value

    def count_by_field(self, value: Any, field: SearchField) -> int:
        return self.db.scalar(select(func.count(Payee.id)).where(self._field_filter(value, field))) or 0

    def list_by_field(self, value: Any, field: SearchField, offset: int, limit: int = PAGE_SIZE) -> List[Payee]:
        query = (
            select(Payee)
            .where(self._field_filter(value, field))
            .order_by(Payee.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.scalars(query).all())
