"""Tests for the observation API."""

import threading

from fastapi.testclient import TestClient

from world.generation import ScenarioGenerator, ScenarioParams
from world.io.api import create_app


def create_client() -> TestClient:
    params = ScenarioParams(num_nodes=20, initial_parcels=2, dt_s=10.0, seed=3)
    return TestClient(create_app(ScenarioGenerator(params).generate()))


def test_state_snapshot() -> None:
    """Test the snapshot lists the generated entities."""
    client = create_client()
    response = client.get("/state")

    assert response.status_code == 200
    state = response.json()
    assert state["tick"] == 0
    assert len(state["vehicles"]) == 2
    assert len(state["depots"]) == 1
    assert len(state["parcels"]) == 2


def test_step_advances_ticks() -> None:
    """Test stepping returns the events and statistics of the last tick."""
    client = create_client()
    response = client.post("/step", params={"ticks": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["tick"] == 5
    assert body["statistics"]["tick"] == 5
    assert isinstance(body["events"], list)
    assert client.get("/statistics").json()["tick"] == 5


def test_step_rejects_bad_tick_count() -> None:
    """Test the tick count is validated."""
    client = create_client()
    assert client.post("/step", params={"ticks": 0}).status_code == 422
    assert client.get("/statistics").json()["tick"] == 0


def test_shared_lock_guards_world() -> None:
    """Test the app steps the world under a lock shared with the caller."""
    params = ScenarioParams(num_nodes=20, initial_parcels=2, dt_s=10.0, seed=3)
    world = ScenarioGenerator(params).generate()
    lock = threading.Lock()
    client = TestClient(create_app(world, lock=lock))

    with lock:
        world.step()
    response = client.post("/step", params={"ticks": 2})

    assert response.status_code == 200
    assert response.json()["tick"] == 3
    assert not lock.locked()
