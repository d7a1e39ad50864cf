import asyncio

import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.session import PresentationManager, get_manager


@pytest.fixture
def client(site_dir):
    manager = PresentationManager(str(site_dir))
    app.dependency_overrides[get_manager] = lambda: manager
    with TestClient(app) as test_client:
        yield test_client
        # let background layer loads settle before the loop stops
        test_client.get("/api/presentation", params={"wait": True})
    app.dependency_overrides.clear()
    asyncio.run(manager.close())


def test_health(client):
    assert client.get("/").json() == {"status": "ok", "service": "GeoVision API"}


def test_initial_state(client):
    state = client.get("/api/presentation", params={"wait": True}).json()
    assert state["step"] == "satellite"
    assert state["step_index"] == 0
    assert state["status"] == "loaded"
    assert state["visible_layers"] == ["satellite"]
    assert state["color_mode"] == "lithology"
    assert state["color_mode_active"] is False
    assert len(state["steps"]) == 7


def test_navigation(client):
    client.get("/api/presentation", params={"wait": True})
    assert client.post("/api/presentation/prev").json()["step_index"] == 0
    state = client.post("/api/presentation/next").json()
    assert state["step"] == "topography"
    assert state["visible_layers"] == ["topography"]

    state = client.post("/api/presentation/step/6").json()
    assert state["step"] == "oreBody"
    assert client.post("/api/presentation/next").json()["step_index"] == 6


def test_unknown_step_index(client):
    assert client.post("/api/presentation/step/42").status_code == 404


def test_colour_mode_and_legend(client):
    client.get("/api/presentation", params={"wait": True})
    state = client.post("/api/presentation/step/4").json()
    assert state["step"] == "lithologyData"
    assert state["node_count"] == 3
    assert [e["label"] for e in state["legend"]] == ["Basalt", "Granite", "Unknown"]

    state = client.post("/api/presentation/color-mode", json={"mode": "assay"}).json()
    assert state["color_mode"] == "assay"
    assert state["node_count"] == 3
    legend = client.get("/api/presentation/legend").json()
    assert legend[-1]["label"] == "No grade"


def test_invalid_colour_mode(client):
    response = client.post("/api/presentation/color-mode", json={"mode": "rainbow"})
    assert response.status_code == 422


def test_scene_export(client):
    client.get("/api/presentation", params={"wait": True})
    response = client.get("/api/presentation/scene.glb")
    assert response.status_code == 200
    assert response.headers["content-type"] == "model/gltf-binary"
    assert response.content[:4] == b"glTF"


def test_viewer_settings(client):
    settings = client.get("/api/presentation/viewer").json()
    assert settings["camera"]["position"] == [0.0, 400.0, 500.0]
    assert settings["fog"]["near"] == 1000.0
