from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.web.debug_routes import router as debug_router


def test_debug_routes_not_mounted_by_default(client):
    assert client.get("/debug/diagnostics/db").status_code == 404


def test_db_diagnostics_hide_password_and_report_backend():
    debug_app = FastAPI()
    debug_app.include_router(debug_router)

    data = TestClient(debug_app).get("/debug/diagnostics/db").json()
    assert data["backend"] == "sqlite"
    assert data["user_count"] == 0
    assert "password" not in data["url"]
