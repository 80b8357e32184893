"""
Error taxonomy for the payee domain.
Validation errors subclass ValueError so callers can treat them as client faults.
"""
from typing import List, Optional


class PayeeError(Exception):
    """Base class for every error raised by the payee domain."""

    message = "erro no recebedor"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class PayeeValidationError(PayeeError, ValueError):
    """A field value was rejected by the validation policy."""

    message = "recebedor inválido"


class InvalidEmailError(PayeeValidationError):
    message = "email inválido"


class InvalidNameError(PayeeValidationError):
    message = "nome inválido, o nome deve possuir ao menos 3 caracteres"


class InvalidCpfError(PayeeValidationError):
    message = "cpf inválido"


class InvalidCnpjError(PayeeValidationError):
    message = "cnpj inválido"


class InvalidPixKeyError(PayeeValidationError):
    """The key does not look like any kind of Pix key."""

    message = "chave inválida"


class InvalidKeyTypeError(PayeeValidationError):
    message = "tipo de chave pix inválido"


class KeyTypeMismatchError(PayeeValidationError):
    """The key is well formed, but for a different type than the declared one."""

    message = "chave pix não corresponde ao tipo de chave informado"


class InvalidStatusError(PayeeValidationError):
    message = "status do recebedor inválido"


class InvalidPageError(PayeeValidationError):
    message = "página inválida, a paginação começa em 1"


class PayeeNotFoundError(PayeeError, LookupError):
    message = "recebedor não existe"


class PayeeEditNotAllowedError(PayeeError):
    message = "recebedor com status Validado apenas permite edição de email"


class PixKeyAlreadyRegisteredError(PayeeError):
    message = "chave pix já cadastrada"


class PartialDeleteError(PayeeError):
    """
    Raised by bulk deletion when at least one id could not be removed.
    The ids in succeeded_ids were deleted and stay deleted.
    """

    message = "nem todos os recebedores foram deletados"

    def __init__(self, succeeded_ids: List[int], failed_ids: List[int]):
        super().__init__()
        self.succeeded_ids = list(succeeded_ids)
        self.failed_ids = list(failed_ids)

    def __str__(self):
        return f"{self.message}: deletados={self.succeeded_ids}, não deletados={self.failed_ids}"
