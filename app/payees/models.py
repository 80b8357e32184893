"""
Data models for payees (recebedores).
A payee owns exactly one Pix key and moves through a small validation lifecycle.
"""
from sqlalchemy import Integer, String, Enum
from sqlalchemy.orm import Mapped, mapped_column
import enum
from typing import Any, List, Optional
from app.core.database import Base


def get_enum_values(enum_cls: Any) -> List[str]:
    """Helper to get values from an Enum class for SQLAlchemy."""
    return [e.value for e in enum_cls]


class PayeeStatus(str, enum.Enum):
    """Lifecycle states. Only DRAFT is ever assigned by this service."""
    DRAFT = "Rascunho"
    VALIDATING = "Validando"
    VALIDATED = "Validado"


class PixKeyType(str, enum.Enum):
    """Valid Pix key types."""
    CPF = "CPF"
    CNPJ = "CNPJ"
    EMAIL = "EMAIL"
    PHONE = "TELEFONE"
    RANDOM = "CHAVE_ALEATORIA"


class Payee(Base):
    """Entity representing a payee and its Pix key."""

    __tablename__ = "recebedores"

    id: Mapped[int] = mapped_column("recebedor_id", Integer, primary_key=True, autoincrement=True)
    cpf_cnpj: Mapped[str] = mapped_column("cpf_cnpj", String(18), nullable=False, index=True)
    name: Mapped[str] = mapped_column("nome", String(200), nullable=False, index=True)
    key_type: Mapped[str] = mapped_column("tipo_chave_pix", String(20), nullable=False, index=True)
    pix_key: Mapped[str] = mapped_column("chave_pix", String(200), nullable=False, index=True)
    status: Mapped[PayeeStatus] = mapped_column(
        "status_recebedor",
        Enum(PayeeStatus, values_callable=get_enum_values),
        nullable=False,
        default=PayeeStatus.DRAFT,
        index=True
    )
    email: Mapped[Optional[str]] = mapped_column("email", String(200), nullable=True)

    def __repr__(self):
        return f"<Payee(id={self.id}, key_type={self.key_type}, status={self.status})>"
