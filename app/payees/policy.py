"""
Business rules gating every payee write.
Rules run in a fixed order and the first failure wins.
"""
from typing import Any

from app.payees.exceptions import (
    InvalidCnpjError,
    InvalidCpfError,
    InvalidEmailError,
    InvalidKeyTypeError,
    InvalidNameError,
    InvalidPixKeyError,
    KeyTypeMismatchError,
    PayeeEditNotAllowedError,
)
from app.payees.models import PayeeStatus
from app.payees.normalizer import CPF_LENGTH, only_digits
from app.payees.validators import (
    is_any_valid_key,
    is_valid_key_type,
    validate_cnpj,
    validate_cpf,
    validate_email,
    validate_key_of_type,
)

MIN_NAME_LENGTH = 3

# States that still accept changes to every field
FULLY_EDITABLE_STATUSES = frozenset({PayeeStatus.DRAFT, PayeeStatus.VALIDATING})


def validate_name(name: Any) -> None:
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        raise InvalidNameError()


def validate_optional_email(email: Any) -> None:
    if email and not validate_email(email):
        raise InvalidEmailError()


def validate_tax_id(cpf_cnpj: Any) -> None:
    """More than 11 digits is judged as a CNPJ, anything else as a CPF."""
    if len(only_digits(cpf_cnpj if isinstance(cpf_cnpj, str) else "")) > CPF_LENGTH:
        if not validate_cnpj(cpf_cnpj):
            raise InvalidCnpjError()
    elif not validate_cpf(cpf_cnpj):
        raise InvalidCpfError()


def validate_pix_key(pix_key: Any, key_type: Any) -> None:
    if not is_valid_key_type(key_type):
        raise InvalidKeyTypeError()
    if not is_any_valid_key(pix_key):
        raise InvalidPixKeyError()
    if not validate_key_of_type(pix_key, key_type):
        raise KeyTypeMismatchError()


def validate_for_create(payee: Any) -> None:
    """
    Checks name, email, CPF/CNPJ, key type, key shape and key/type
    agreement, in this order.

    Raises:
        PayeeValidationError: the subclass naming the first rule broken.
    """
    validate_name(payee.name)
    validate_optional_email(payee.email)
    validate_tax_id(payee.cpf_cnpj)
    validate_pix_key(payee.pix_key, payee.key_type)


def can_edit(status: PayeeStatus) -> bool:
    """Draft and Validating payees accept full edits; Validated ones only email changes."""
    return PayeeStatus(status) in FULLY_EDITABLE_STATUSES


def ensure_editable(status: PayeeStatus) -> None:
    if not can_edit(status):
        raise PayeeEditNotAllowedError()


def validate_for_edit(payee: Any, current_status: PayeeStatus) -> None:
    """
    Same rules as creation, applied to the proposed values of a payee that may still change.

    A Validated payee is refused here even when only the email differs;
    its email is changed through ensure_email_editable and the email-only route.
    """
    ensure_editable(current_status)
    validate_for_create(payee)


def ensure_email_editable(email: Any) -> None:
    """The email-only path skips every other rule and ignores the status."""
    if not validate_email(email):
        raise InvalidEmailError()
