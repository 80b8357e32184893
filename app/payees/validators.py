"""
Validators for Brazilian tax identifiers and Pix key formats.
Every function is total: malformed input returns False, never raises.
"""
import re
from typing import Any, Callable, Dict

from app.payees.models import PixKeyType

# Compiled once at import time; reused across every request.
CPF_PATTERN = re.compile(r'^[0-9]{3}\.?[0-9]{3}\.?[0-9]{3}-?[0-9]{2}$')
CNPJ_PATTERN = re.compile(r'^[0-9]{2}\.?[0-9]{3}\.?[0-9]{3}/?[0-9]{4}-?[0-9]{2}$')
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9+_.-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^(?:\+?55)?[1-9][0-9]9[0-9]{8}$')
RANDOM_KEY_PATTERN = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$')
NON_DIGIT_PATTERN = re.compile(r'[^0-9]')

VALID_KEY_TYPES = frozenset(key_type.value for key_type in PixKeyType)


def _matches(pattern: re.Pattern, value: Any) -> bool:
    # fullmatch, so a trailing newline never slips past the "$" anchor
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _all_same_digit(digits: str) -> bool:
    return digits == digits[0] * len(digits)


def _check_digit(weighted_sum: int) -> int:
    remainder = weighted_sum % 11
    return 0 if remainder < 2 else 11 - remainder


def calculate_cpf_digit(digits: str, first_weight: int) -> int:
    """
    CPF check digit: weights decrease by one from first_weight down to 2
    (10..2 for the first digit, 11..2 for the second), then modulo 11.
    """
    total = sum(int(digit) * (first_weight - i) for i, digit in enumerate(digits))
    return _check_digit(total)


def calculate_cnpj_digit(digits: str, first_weight: int) -> int:
    """
    CNPJ check digit: weights cycle first_weight..2 then 9..2
    (5,4,3,2,9,...,2 for the first digit, 6,5,...,2 for the second), then modulo 11.
    """
    total = 0
    weight = first_weight
    for digit in digits:
        total += int(digit) * weight
        weight -= 1
        if weight < 2:
            weight = 9
    return _check_digit(total)


def validate_cpf(cpf: Any) -> bool:
    """Accepts ###.###.###-## or 11 raw digits with valid check digits."""
    if not _matches(CPF_PATTERN, cpf):
        return False

    digits = NON_DIGIT_PATTERN.sub('', cpf)
    # Repeated sequences (111.111.111-11, ...) pass the arithmetic but are not issued
    if _all_same_digit(digits):
        return False

    first = calculate_cpf_digit(digits[:9], 10)
    second = calculate_cpf_digit(digits[:10], 11)
    return first == int(digits[9]) and second == int(digits[10])


def validate_cnpj(cnpj: Any) -> bool:
    """Accepts ##.###.###/####-## or 14 raw digits with valid check digits."""
    if not _matches(CNPJ_PATTERN, cnpj):
        return False

    digits = NON_DIGIT_PATTERN.sub('', cnpj)
    if _all_same_digit(digits):
        return False

    first = calculate_cnpj_digit(digits[:12], 5)
    second = calculate_cnpj_digit(digits[:13], 6)
    return first == int(digits[12]) and second == int(digits[13])


def validate_email(email: Any) -> bool:
    """e.g. user@example.com or flavio.rodolfo+transfeera@example.co.uk"""
    return _matches(EMAIL_PATTERN, email)


def validate_phone(phone: Any) -> bool:
    """
    Brazilian mobile number: optional +55 / 55 country code, area code
    without a leading zero, 9-digit subscriber number starting with 9.
    """
    return _matches(PHONE_PATTERN, phone)


def validate_random_key(key: Any) -> bool:
    """Lowercase canonical UUID (8-4-4-4-12)."""
    return _matches(RANDOM_KEY_PATTERN, key)


KEY_VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    PixKeyType.CPF.value: validate_cpf,
    PixKeyType.CNPJ.value: validate_cnpj,
    PixKeyType.EMAIL.value: validate_email,
    PixKeyType.PHONE.value: validate_phone,
    PixKeyType.RANDOM.value: validate_random_key,
}


def is_valid_key_type(key_type: Any) -> bool:
    if isinstance(key_type, PixKeyType):
        return True
    return isinstance(key_type, str) and key_type in VALID_KEY_TYPES


def validate_key_of_type(key: Any, key_type: Any) -> bool:
    """Validates the key against the format of its declared type. Unknown types are invalid."""
    if not is_valid_key_type(key_type):
        return False
    return KEY_VALIDATORS[PixKeyType(key_type).value](key)


def is_any_valid_key(key: Any) -> bool:
    """True when the key has the shape of at least one Pix key type."""
    return any(validator(key) for validator in KEY_VALIDATORS.values())
