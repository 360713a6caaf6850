"""HTTP surface; the app runs on its own event loop, so the database is seeded synchronously."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel
from ulid import ULID

from almox.db import build_engine, build_session_maker, get_session
from almox.main import app
from almox.models import CentroCusto, Romaneio


@pytest.fixture
def sync_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite:///{tmp_path / 'api.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(tmp_path: Path, sync_engine: Engine) -> Iterator[TestClient]:
    api_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    session_maker = build_session_maker(api_engine)

    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _add(engine: Engine, *records) -> None:
    with Session(engine) as session:
        session.add_all(records)
        session.commit()


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}


def test_allocate(client):
    first = client.post("/api/v1/codes/allocate", json={"document_type": "ROM", "scope_ref": "ALM001"})
    second = client.post("/api/v1/codes/allocate", json={"document_type": "ROM", "scope_ref": "ALM001"})

    assert first.status_code == 200
    assert first.json() == {
        "code": "ROM-AL-ALM001-0001",
        "document_type": "ROM",
        "scope_code": "ALM001",
        "sequence": 1,
        "outcome": "succeeded",
        "degraded_scope": False,
        "reason": None,
    }
    assert second.json()["code"] == "ROM-AL-ALM001-0002"


def test_allocate_requisition_by_cost_center(client, sync_engine):
    centro = CentroCusto(codigo="1000")
    centro_id = centro.id
    _add(sync_engine, centro)

    response = client.post("/api/v1/codes/allocate", json={"document_type": "SCO", "scope_ref": centro_id})

    assert response.status_code == 200
    assert response.json()["code"] == "SCO-AL-1000-0001"


def test_allocate_unknown_scope(client):
    response = client.post("/api/v1/codes/allocate", json={"document_type": "SCO", "scope_ref": str(ULID())})

    assert response.status_code == 404
    detail = response.json()["detail"]
    assert detail["outcome"] == "failed"
    assert detail["error"] == "ScopeNotFound"


def test_allocate_with_placeholder_scope(client):
    response = client.post(
        "/api/v1/codes/allocate",
        json={"document_type": "SCO", "scope_ref": str(ULID()), "allow_placeholder_scope": True},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "SCO-AL-0000-0001"
    assert body["outcome"] == "fallback_applied"
    assert body["degraded_scope"] is True


def test_allocate_scope_that_does_not_fit(client):
    response = client.post("/api/v1/codes/allocate", json={"document_type": "ODC", "scope_ref": "ALMOX1"})

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "FormatError"


def test_allocate_unknown_document_type(client):
    response = client.post("/api/v1/codes/allocate", json={"document_type": "XYZ", "scope_ref": "00"})

    assert response.status_code == 422


def test_allocate_bulk(client):
    response = client.post("/api/v1/codes/allocate-bulk", json={"document_type": "MAT", "count": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["codes"] == ["10000", "10001", "10002"]
    assert body["first_sequence"] == 10000
    assert body["last_sequence"] == 10002


def test_allocate_bulk_rejects_zero(client):
    response = client.post("/api/v1/codes/allocate-bulk", json={"document_type": "MAT", "count": 0})

    assert response.status_code == 422


def test_allocate_manifest(client, sync_engine):
    origem = CentroCusto(codigo="PROD100")
    destino = CentroCusto(codigo="ALM001")
    origem_id, destino_id = origem.id, destino.id
    _add(sync_engine, origem, destino)

    response = client.post(
        "/api/v1/codes/manifests/allocate",
        json={"kind": "devolucao", "centro_custo_origem_id": origem_id, "centro_custo_destino_id": destino_id},
    )

    assert response.status_code == 200
    assert response.json()["code"] == "RDV-AL-PROD100-0001"


def test_allocate_manifest_missing_destination(client):
    response = client.post("/api/v1/codes/manifests/allocate", json={"kind": "retirada"})

    assert response.status_code == 422
    assert response.json()["detail"]["outcome"] == "failed"


def test_parse(client):
    response = client.get("/api/v1/codes/parse/RDV-AL-PROD100-0025")

    assert response.status_code == 200
    assert response.json() == {
        "code": "RDV-AL-PROD100-0025",
        "document_type": "RDV",
        "scope_code": "PROD100",
        "sequence": 25,
    }


def test_parse_invalid(client):
    response = client.get("/api/v1/codes/parse/ROM-AL-ALM001-12")

    assert response.status_code == 404


def test_availability(client, sync_engine):
    _add(sync_engine, Romaneio(numero="ROM-AL-ALM001-0001", tipo="retirada"))

    taken = client.get("/api/v1/codes/ROM/ROM-AL-ALM001-0001/available")
    free = client.get("/api/v1/codes/ROM/ROM-AL-ALM001-0002/available")

    assert taken.json() == {"code": "ROM-AL-ALM001-0001", "available": False}
    assert free.json() == {"code": "ROM-AL-ALM001-0002", "available": True}


def test_repair(client, sync_engine):
    _add(
        sync_engine,
        Romaneio(numero="ROM-AL-ALM001-0003", tipo="retirada"),
    )

    response = client.post("/api/v1/codes/repair", json={"document_type": "ROM", "scope_ref": "ALM001"})

    assert response.status_code == 200
    assert response.json() == {
        "document_type": "ROM",
        "scope_code": "ALM001",
        "total": 1,
        "fixed_count": 1,
        "errors": [],
    }
