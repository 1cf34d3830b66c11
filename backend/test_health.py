"""Tests for the FastAPI health endpoints in app/main.py"""
from fastapi.testclient import TestClient

from app.main import app

# No context manager: lifespan (DB init, bot polling) is not started
client = TestClient(app)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "Pharmacy Bot is running"
