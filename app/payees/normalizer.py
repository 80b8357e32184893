"""
Canonical formatting of payee fields.
Runs only on data that already passed validation, so it never rejects input.
"""
from typing import Any, List

from app.payees.models import PixKeyType
from app.payees.validators import NON_DIGIT_PATTERN, validate_cnpj, validate_cpf, validate_phone

CPF_LENGTH = 11
# Area code + 9-digit subscriber number, without the country code
PHONE_LENGTH = 11


def only_digits(value: str) -> str:
    return NON_DIGIT_PATTERN.sub('', value or '')


def format_cpf(value: str) -> str:
    """'61554645530' -> '615.546.455-30'"""
    digits = only_digits(value)
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:11]}"


def format_cnpj(value: str) -> str:
    """'41916896000130' -> '41.916.896/0001-30'"""
    digits = only_digits(value)
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:14]}"


def format_cpf_cnpj(value: str) -> str:
    """Masks as CNPJ when there are more than 11 digits, as CPF otherwise."""
    if len(only_digits(value)) > CPF_LENGTH:
        return format_cnpj(value)
    return format_cpf(value)


def _key_type_value(key_type: Any) -> Any:
    return key_type.value if isinstance(key_type, PixKeyType) else key_type


def normalize_payee(payee: Any) -> Any:
    """
    Rewrites the payee in place with canonical values:
    punctuated cpf_cnpj, lower-cased name and email, and punctuated
    Pix key when the key is a CPF or CNPJ.
    """
    payee.cpf_cnpj = format_cpf_cnpj(payee.cpf_cnpj)
    payee.name = payee.name.strip().lower()
    if payee.email:
        payee.email = payee.email.lower()

    key_type = _key_type_value(payee.key_type)
    payee.key_type = key_type
    if key_type == PixKeyType.CPF.value:
        payee.pix_key = format_cpf(payee.pix_key)
    elif key_type == PixKeyType.CNPJ.value:
        payee.pix_key = format_cnpj(payee.pix_key)

    return payee


def pix_key_variants(key: str) -> List[str]:
    """
    Every form under which the same key value may be stored.

    CPF and CNPJ keys are stored punctuated, phone keys as typed (with or
    without the +55 / 55 prefix). An 11-digit phone that also passes the
    CPF checksum yields both its phone and its CPF forms.
    """
    variants = {key}
    digits = only_digits(key)
    if validate_cpf(key):
        variants.update({digits, format_cpf(digits)})
    if validate_cnpj(key):
        variants.update({digits, format_cnpj(digits)})
    if validate_phone(key):
        national = digits[-PHONE_LENGTH:]
        variants.update({national, f"55{national}", f"+55{national}"})
    return sorted(variants)
