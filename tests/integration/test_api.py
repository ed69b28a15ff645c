"""Integration tests for API endpoints"""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from meinha_score.infrastructure.database.models import DebtRecord


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, seeded_db: Session):
    """Test Prometheus metrics endpoint"""
    client.get("/v1/score/alice")

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "meinha_score_computations_total" in response.text


def test_request_id_header_is_returned(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_get_user_score(client: TestClient, seeded_db: Session):
    """bob paid alice on time (+7) but owes carol 73 days past due (-300)"""
    response = client.get("/v1/score/bob")

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "bob"
    assert data["score"] == 207
    assert data["classification"] == "Instável"
    assert data["breakdown"] == {"base": 500, "earned": 7, "lost": -300}
    assert [event["debt_id"] for event in data["history"]] == ["d2", "d1"]
    assert data["history"][0]["type"] == "lost"
    assert data["history"][1]["type"] == "earned"
    assert data["skipped"] == []


def test_get_user_score_unknown_user(client: TestClient, seeded_db: Session):
    response = client.get("/v1/score/nobody")

    assert response.status_code == 404


def test_score_report_sorted_by_score(client: TestClient, seeded_db: Session):
    response = client.get("/v1/score/report")

    assert response.status_code == 200
    data = response.json()
    assert [(u["username"], u["details"]["score"]) for u in data["users"]] == [
        ("alice", 505),
        ("carol", 502),
        ("bob", 207),
    ]
    assert data["users"][0]["details"]["classification"] == "Ok"


def test_score_report_search(client: TestClient, seeded_db: Session):
    response = client.get("/v1/score/report", params={"search": "DIAS"})

    assert response.status_code == 200
    assert [u["username"] for u in response.json()["users"]] == ["carol"]


def test_get_rules_defaults(client: TestClient, db: Session):
    response = client.get("/v1/rules")

    assert response.status_code == 200
    data = response.json()
    assert data["initial_score"] == 500
    assert data["debtor_bonus"]["on_time"] == 7
    assert data["penalties"]["default"] == -300


def test_update_rules_changes_scores(client: TestClient, seeded_db: Session):
    response = client.put("/v1/rules", json={"debtor_bonus": {"on_time": 9}})

    assert response.status_code == 200
    assert response.json()["debtor_bonus"]["on_time"] == 9
    assert response.json()["debtor_bonus"]["early"] == 10

    assert client.get("/v1/rules").json()["debtor_bonus"]["on_time"] == 9
    assert client.get("/v1/score/bob").json()["score"] == 209


def test_update_rules_rejects_invalid_documents(client: TestClient, db: Session):
    assert client.put("/v1/rules", json={"bogus": 1}).status_code == 422
    assert client.put("/v1/rules", json={"min_score": 600}).status_code == 422
    assert client.put("/v1/rules", json={"penalties": {"default": 10}}).status_code == 422
    for raw in ('{"penalties": {"default": NaN}}', '{"max_score": Infinity}'):
        response = client.put("/v1/rules", content=raw, headers={"Content-Type": "application/json"})
        assert response.status_code == 422

    # Nothing was stored
    assert client.get("/v1/rules").json()["min_score"] == 0


def test_set_override_changes_both_parties_scores(client: TestClient, seeded_db: Session):
    response = client.put(
        "/v1/debts/d1/override",
        json={"was_on_time": False, "overridden_by": "admin", "reason": " atrasou de verdade "},
    )

    assert response.status_code == 200
    override = response.json()["payment_override"]
    assert override["was_on_time"] is False
    assert override["reason"] == "atrasou de verdade"
    assert override["overridden_at"].startswith("2026-03-15T12:00")

    # bob takes the fixed late penalty, alice loses her payment bonus
    assert client.get("/v1/score/bob").json()["score"] == 60
    assert client.get("/v1/score/alice").json()["score"] == 502


def test_set_override_on_open_debt_conflicts(client: TestClient, seeded_db: Session):
    response = client.put("/v1/debts/d2/override", json={"was_on_time": True, "overridden_by": "admin"})

    assert response.status_code == 409


def test_set_override_unknown_debt(client: TestClient, seeded_db: Session):
    response = client.put("/v1/debts/missing/override", json={"was_on_time": True, "overridden_by": "admin"})

    assert response.status_code == 404


def test_clear_override(client: TestClient, seeded_db: Session):
    client.put("/v1/debts/d1/override", json={"was_on_time": False, "overridden_by": "admin"})

    response = client.delete("/v1/debts/d1/override")

    assert response.status_code == 200
    assert response.json()["payment_override"] is None
    assert client.get("/v1/score/bob").json()["score"] == 207


def test_clear_all_overrides(client: TestClient, seeded_db: Session):
    seeded_db.add(
        DebtRecord(
            id="d3",
            creditor_id="bob",
            debtor_id="alice",
            amount=40.0,
            status="PAID",
            due_date=seeded_db.get(DebtRecord, "d1").due_date,
            created_at=seeded_db.get(DebtRecord, "d1").created_at,
            updated_at=seeded_db.get(DebtRecord, "d1").updated_at,
        )
    )
    seeded_db.commit()
    client.put("/v1/debts/d1/override", json={"was_on_time": False, "overridden_by": "admin"})
    client.put("/v1/debts/d3/override", json={"was_on_time": True, "overridden_by": "admin"})

    response = client.delete("/v1/overrides")

    assert response.status_code == 200
    assert response.json() == {"cleared": 2}
    assert seeded_db.get(DebtRecord, "d1").payment_override is None
