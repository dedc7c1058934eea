from fastapi.testclient import TestClient

from geopulse.api.v1.endpoints.hazards import get_hazard_service
from geopulse.main import app

from conftest import add_observation, add_threshold, auth_headers, make_token


THRESHOLD = {
    "region_name": "Accra, Ghana",
    "lat": 5.6037,
    "lng": -0.1870,
    "hazard_type": "Flood",
    "metric": "rainfall_mm",
    "operator": ">",
    "threshold_value": 20.0,
}


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "healthy"
    assert j["ai_enabled"] is True


def test_cors_preflight(client):
    r = client.options(
        "/api/v1/hazards/evaluate",
        headers={
            "Origin": "https://app.example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


def test_cors_header_on_response(client):
    r = client.get("/health", headers={"Origin": "https://app.example.org"})
    assert r.headers["access-control-allow-origin"] == "*"


def test_request_id_header(client):
    r = client.get("/")
    assert "x-request-id" in r.headers


def test_unknown_route_uses_error_body(client):
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert "error" in r.json()


# --- Hazard evaluation ---

def test_evaluate_without_thresholds(client, ai_client):
    r = client.post("/api/v1/hazards/evaluate")

    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "No active thresholds to evaluate",
        "thresholds_evaluated": 0,
        "alerts_created": 0,
        "alerts": [],
        "skipped": [],
    }


def test_evaluate_creates_alert(client, ai_client, db):
    add_threshold(db)
    add_observation(db, temperature_c=42.0)

    r = client.post("/api/v1/hazards/evaluate")

    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["thresholds_evaluated"] == 1
    assert j["alerts_created"] == 1
    assert "message" not in j
    alert = j["alerts"][0]
    assert alert["severity"] == "low"
    assert alert["title"] == "Heatwave Warning: Accra, Ghana"
    assert alert["ai_analysis"]["assessment"] == ai_client.reply

    again = client.post("/api/v1/hazards/evaluate").json()
    assert again["alerts_created"] == 0


# --- Weather ingestion ---

def test_ingest_defaults(client, weather_client):
    r = client.post("/api/v1/weather/ingest")

    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["ingested"] == 8
    assert j["failed"] == 0


def test_ingest_custom_locations(client, weather_client):
    body = {"locations": [{"name": "Kisumu, Kenya", "lat": -0.0917, "lng": 34.768}]}

    r = client.post("/api/v1/weather/ingest", json=body)

    assert r.status_code == 200
    assert r.json()["ingested"] == 1
    assert weather_client.calls == [(-0.0917, 34.768)]

    observations = client.get("/api/v1/weather/observations", params={"region": "Kisumu, Kenya"}).json()
    assert len(observations) == 1
    assert observations[0]["rainfall_mm"] == 12.4


def test_ingest_unreadable_body_uses_defaults(client, weather_client):
    r = client.post("/api/v1/weather/ingest", content=b"not json",
                    headers={"Content-Type": "application/json"})

    assert r.status_code == 200
    assert r.json()["ingested"] == 8


def test_ingest_invalid_location(client, weather_client):
    body = {"locations": [{"name": "Bad", "lat": 123.0, "lng": 0.0}]}

    r = client.post("/api/v1/weather/ingest", json=body)

    assert r.status_code == 400
    assert weather_client.calls == []


def test_ingest_then_evaluate(client, weather_client, ai_client, db):
    add_threshold(db, metric="rainfall_mm", hazard_type="flood", threshold_value=10.0)
    client.post("/api/v1/weather/ingest")

    j = client.post("/api/v1/hazards/evaluate").json()

    assert j["alerts_created"] == 1
    assert j["alerts"][0]["metric_value"] == 12.4
    assert j["alerts"][0]["severity"] == "low"


# --- Thresholds ---

def test_thresholds_require_auth(client):
    r = client.get("/api/v1/thresholds/")
    assert r.status_code == 401
    assert r.json() == {"error": "Authentication required"}


def test_thresholds_reject_invalid_token(client):
    r = client.get("/api/v1/thresholds/", headers={"Authorization": f"Bearer {make_token(secret='other')}"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid or expired authentication token"}


def test_thresholds_reject_expired_token(client):
    r = client.get("/api/v1/thresholds/", headers={"Authorization": f"Bearer {make_token(expires_in=-60)}"})
    assert r.status_code == 401


def test_thresholds_reject_wrong_audience(client):
    r = client.get("/api/v1/thresholds/", headers={"Authorization": f"Bearer {make_token(audience='anon')}"})
    assert r.status_code == 401


def test_create_and_list_thresholds(client):
    r = client.post("/api/v1/thresholds/", json=THRESHOLD, headers=auth_headers())

    assert r.status_code == 201
    created = r.json()
    assert created["user_id"] == "user-1"
    assert created["hazard_type"] == "flood"
    assert created["is_active"] is True

    mine = client.get("/api/v1/thresholds/", headers=auth_headers()).json()
    theirs = client.get("/api/v1/thresholds/", headers=auth_headers("user-2")).json()
    assert [t["id"] for t in mine] == [created["id"]]
    assert theirs == []


def test_create_threshold_rejects_unknown_metric(client):
    r = client.post("/api/v1/thresholds/", json={**THRESHOLD, "metric": "pollen_count"}, headers=auth_headers())
    assert r.status_code == 400
    assert "metric" in r.json()["error"]


def test_create_threshold_rejects_unknown_operator(client):
    r = client.post("/api/v1/thresholds/", json={**THRESHOLD, "operator": "=="}, headers=auth_headers())
    assert r.status_code == 400


def test_deactivate_threshold(client, ai_client, db):
    threshold_id = client.post("/api/v1/thresholds/", json=THRESHOLD, headers=auth_headers()).json()["id"]
    add_observation(db, rainfall_mm=80.0)

    r = client.post(f"/api/v1/thresholds/{threshold_id}/deactivate", headers=auth_headers())

    assert r.status_code == 200
    assert r.json()["is_active"] is False
    assert client.get("/api/v1/thresholds/?active_only=true", headers=auth_headers()).json() == []
    assert client.post("/api/v1/hazards/evaluate").json()["alerts_created"] == 0


def test_deactivate_other_users_threshold(client):
    threshold_id = client.post("/api/v1/thresholds/", json=THRESHOLD, headers=auth_headers()).json()["id"]

    r = client.post(f"/api/v1/thresholds/{threshold_id}/deactivate", headers=auth_headers("user-2"))

    assert r.status_code == 404
    assert "error" in r.json()


# --- Alerts ---

def _raise_alert(client, db):
    add_threshold(db)
    add_observation(db, temperature_c=90.0)
    return client.post("/api/v1/hazards/evaluate").json()["alerts"][0]


def test_alert_inbox(client, ai_client, db):
    alert = _raise_alert(client, db)

    inbox = client.get("/api/v1/alerts/", headers=auth_headers()).json()
    other = client.get("/api/v1/alerts/", headers=auth_headers("user-2")).json()

    assert [a["id"] for a in inbox] == [alert["id"]]
    assert other == []
    assert client.get("/api/v1/alerts/?severity=critical", headers=auth_headers()).json()[0]["id"] == alert["id"]
    assert client.get("/api/v1/alerts/?severity=low", headers=auth_headers()).json() == []


def test_mark_alert_read(client, ai_client, db):
    alert = _raise_alert(client, db)

    r = client.post(f"/api/v1/alerts/{alert['id']}/read", headers=auth_headers())

    assert r.status_code == 200
    assert r.json()["is_read"] is True


def test_resolve_alert_allows_next_alert(client, ai_client, db):
    alert = _raise_alert(client, db)

    r = client.post(f"/api/v1/alerts/{alert['id']}/resolve", headers=auth_headers())

    assert r.status_code == 200
    assert r.json()["is_resolved"] is True
    assert r.json()["resolved_at"] is not None
    assert client.get("/api/v1/alerts/?resolved=false", headers=auth_headers()).json() == []

    j = client.post("/api/v1/hazards/evaluate").json()
    assert j["alerts_created"] == 1


def test_get_missing_alert(client):
    r = client.get("/api/v1/alerts/does-not-exist", headers=auth_headers())
    assert r.status_code == 404
    assert r.json() == {"error": "Alert with ID does-not-exist not found"}


def test_ingest_empty_location_list(client, weather_client):
    r = client.post("/api/v1/weather/ingest", json={"locations": []})

    assert r.status_code == 200
    assert r.json()["ingested"] == 0
    assert weather_client.calls == []


# --- Unhandled failures ---

class BrokenHazardService:
    def evaluate(self):
        raise RuntimeError("database unavailable")


def test_unhandled_failure_returns_error_with_cors():
    app.dependency_overrides[get_hazard_service] = lambda: BrokenHazardService()
    client = TestClient(app, raise_server_exceptions=False)

    r = client.post("/api/v1/hazards/evaluate", headers={"Origin": "https://app.example.org"})

    assert r.status_code == 500
    assert r.json() == {"error": "database unavailable"}
    assert r.headers["access-control-allow-origin"] == "*"
