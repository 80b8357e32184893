"""
End-to-end tests of the payee API through FastAPI's TestClient.
Uses an in-memory SQLite database in place of the configured one.
"""
import pytest
from typing import Any, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import Base, get_db
from app.payees.models import Payee, PayeeStatus

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_URL = "/api/v1/recebedores"


def override_get_db() -> Generator[Any, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


client = TestClient(app)


@pytest.fixture(autouse=True)
def test_db() -> Generator[None, None, None]:
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db, None)


def payee_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "cpf_cnpj": "61554645530",
        "name": "Flavio Rodolfo",
        "key_type": "CNPJ",
        "pix_key": "41916896000130",
        "email": "flavio@example.com",
    }
    payload.update(overrides)
    return payload


def create_payee(**overrides) -> Dict[str, Any]:
    response = client.post(BASE_URL, json=payee_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


def set_status(payee_id: int, status: PayeeStatus) -> None:
    """Status transitions belong to an external process; tests write them directly."""
    db = TestingSessionLocal()
    payee = db.get(Payee, payee_id)
    payee.status = status
    db.commit()
    db.close()


def test_create_payee():
    data = create_payee()

    assert data["id"] > 0
    assert data["status"] == "Rascunho"
    assert data["cpf_cnpj"] == "615.546.455-30"
    assert data["pix_key"] == "41.916.896/0001-30"
    assert data["name"] == "flavio rodolfo"


def test_create_payee_missing_fields():
    response = client.post(BASE_URL, json={"name": "Flavio"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "campos obrigatórios"
    assert {field["field"] for field in body["fields"]} == {"cpf_cnpj", "key_type", "pix_key"}


@pytest.mark.parametrize("overrides, message", [
    ({"name": "jj"}, "nome inválido, o nome deve possuir ao menos 3 caracteres"),
    ({"email": "user@example"}, "email inválido"),
    ({"cpf_cnpj": "189.307.395-56"}, "cpf inválido"),
    ({"cpf_cnpj": "13.198.283/0001-07"}, "cnpj inválido"),
    ({"key_type": "PIX"}, "tipo de chave pix inválido"),
    ({"pix_key": "0000020203"}, "chave inválida"),
    ({"key_type": "CPF"}, "chave pix não corresponde ao tipo de chave informado"),
])
def test_create_payee_validation_errors(overrides: Dict[str, Any], message: str):
    response = client.post(BASE_URL, json=payee_payload(**overrides))

    assert response.status_code == 400
    assert response.json()["detail"] == message


def test_create_payee_with_registered_key():
    create_payee()
    response = client.post(BASE_URL, json=payee_payload(cpf_cnpj="081.312.395-00"))

    assert response.status_code == 409
    assert response.json()["detail"] == "chave pix já cadastrada"


def test_get_payee():
    created = create_payee()

    response = client.get(f"{BASE_URL}/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created

    response = client.get(f"{BASE_URL}/22")
    assert response.status_code == 404
    assert response.json()["detail"] == "recebedor não existe"


def test_correlation_id_is_echoed():
    response = client.get(f"{BASE_URL}/22", headers={"X-Correlation-ID": "corr-abc"})

    assert response.headers["X-Correlation-ID"] == "corr-abc"
    assert response.json()["correlation_id"] == "corr-abc"


def test_edit_payee():
    created = create_payee()

    response = client.patch(
        f"{BASE_URL}/{created['id']}",
        json={"key_type": "TELEFONE", "pix_key": "+5511987654321"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["key_type"] == "TELEFONE"
    assert data["pix_key"] == "+5511987654321"
    assert data["name"] == "flavio rodolfo"


def test_edit_validated_payee_only_allows_email():
    """The full edit refuses a Validated payee; the email route still changes its email."""
    created = create_payee()
    set_status(created["id"], PayeeStatus.VALIDATED)

    response = client.patch(f"{BASE_URL}/{created['id']}", json={"name": "Outro Nome"})
    assert response.status_code == 409

    response = client.patch(f"{BASE_URL}/{created['id']}/email", json={"email": "Novo@Example.com"})
    assert response.status_code == 200
    assert response.json()["email"] == "novo@example.com"
    assert response.json()["status"] == "Validado"


def test_edit_email_errors():
    created = create_payee()

    response = client.patch(f"{BASE_URL}/{created['id']}/email", json={"email": "novo@example"})
    assert response.status_code == 400

    response = client.patch(f"{BASE_URL}/99/email", json={"email": "novo@example.com"})
    assert response.status_code == 404


def test_edit_missing_payee():
    response = client.patch(f"{BASE_URL}/99", json={"name": "Outro Nome"})
    assert response.status_code == 404


def test_delete_payee():
    created = create_payee()

    response = client.delete(f"{BASE_URL}/{created['id']}")
    assert response.status_code == 204

    response = client.delete(f"{BASE_URL}/{created['id']}")
    assert response.status_code == 404


def test_delete_payees_in_bulk():
    first = create_payee()
    second = create_payee(key_type="EMAIL", pix_key="segundo@example.com")

    response = client.request("DELETE", BASE_URL, json={"ids": [first["id"], second["id"]]})

    assert response.status_code == 200
    assert response.json() == {"deleted_ids": [first["id"], second["id"]]}


def test_delete_payees_partially():
    first = create_payee()
    second = create_payee(key_type="EMAIL", pix_key="segundo@example.com")

    response = client.request("DELETE", BASE_URL, json={"ids": [first["id"], second["id"], 998, 999]})

    assert response.status_code == 207
    body = response.json()
    assert body["succeeded_ids"] == [first["id"], second["id"]]
    assert body["failed_ids"] == [998, 999]
    # No rollback
    assert client.get(f"{BASE_URL}/{first['id']}").status_code == 404


def test_search_by_name_paginates():
    for i in range(25):
        create_payee(key_type="EMAIL", pix_key=f"p{i}@example.com")

    response = client.get(f"{BASE_URL}/nome/Flavio Rodolfo", params={"pagina": 1})
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 25
    assert page["per_page"] == 10
    assert page["total_pages"] == 3
    assert len(page["items"]) == 10

    last = client.get(f"{BASE_URL}/nome/flavio rodolfo", params={"pagina": 3}).json()
    assert len(last["items"]) == 5
    assert last["current_page"] == 3


def test_search_by_pix_key():
    created = create_payee()

    response = client.get(f"{BASE_URL}/chave", params={"chave": "41916896000130", "pagina": 1})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [created["id"]]

    response = client.get(f"{BASE_URL}/chave", params={"chave": "0000020203", "pagina": 1})
    assert response.status_code == 400


def test_search_by_phone_key_that_is_also_a_valid_cpf():
    """11987654374 passes both the phone format and the CPF checksum."""
    created = create_payee(key_type="TELEFONE", pix_key="11987654374")
    assert created["pix_key"] == "11987654374"

    response = client.get(f"{BASE_URL}/chave", params={"chave": "11987654374", "pagina": 1})

    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert [item["id"] for item in response.json()["items"]] == [created["id"]]


def test_search_by_phone_key_with_country_code():
    created = create_payee(key_type="TELEFONE", pix_key="11987654321")

    response = client.get(f"{BASE_URL}/chave", params={"chave": "+5511987654321", "pagina": 1})

    assert [item["id"] for item in response.json()["items"]] == [created["id"]]


@pytest.mark.parametrize("first, second", [
    ({"key_type": "TELEFONE", "pix_key": "11987654374"}, {"key_type": "CPF", "pix_key": "11987654374"}),
    ({"key_type": "TELEFONE", "pix_key": "+5511987654321"}, {"key_type": "TELEFONE", "pix_key": "11987654321"}),
    ({"key_type": "CNPJ", "pix_key": "41916896000130"}, {"key_type": "CNPJ", "pix_key": "41.916.896/0001-30"}),
])
def test_same_key_in_another_form_is_already_registered(first: Dict[str, str], second: Dict[str, str]):
    create_payee(**first)

    response = client.post(BASE_URL, json=payee_payload(**second))

    assert response.status_code == 409
    assert response.json()["detail"] == "chave pix já cadastrada"


def test_search_by_status():
    create_payee()

    response = client.get(f"{BASE_URL}/status/Rascunho", params={"pagina": 1})
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = client.get(f"{BASE_URL}/status/Aprovado", params={"pagina": 1})
    assert response.status_code == 400


def test_search_by_key_type():
    create_payee()

    response = client.get(f"{BASE_URL}/tipo-chave/CNPJ", params={"pagina": 1})
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = client.get(f"{BASE_URL}/tipo-chave/CPFSO", params={"pagina": 1})
    assert response.status_code == 400


def test_search_invalid_page():
    response = client.get(f"{BASE_URL}/tipo-chave/CNPJ", params={"pagina": 0})
    assert response.status_code == 400


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
