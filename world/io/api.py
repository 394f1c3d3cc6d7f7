"""FastAPI observation API over a running world."""

from __future__ import annotations

import logging
import threading
from typing import Any

import orjson
from fastapi import FastAPI, Query, Response

from world.world import World

logger = logging.getLogger(__name__)

MAX_TICKS_PER_REQUEST = 10_000


def _json(payload: Any) -> Response:
    return Response(content=orjson.dumps(payload), media_type="application/json")


def create_app(world: World, lock: threading.Lock | None = None) -> FastAPI:
    """Create the observation API for a world.

    Handlers run in the server's thread pool, so every access to the world goes
    through one lock. Pass the lock shared with any other thread stepping the
    same world.

    Args:
        world: World to observe and step
        lock: Lock guarding the world

    Returns:
        FastAPI application
    """
    app = FastAPI(title="Courier Sim")
    world_lock = lock if lock is not None else threading.Lock()

    @app.get("/state")
    def get_state() -> Response:
        """Full snapshot of vehicles, depots and parcels."""
        with world_lock:
            return _json(world.get_state())

    @app.get("/statistics")
    def get_statistics() -> Response:
        """Fleet statistics of the current tick."""
        with world_lock:
            statistics = world.statistics()
        return _json(statistics.model_dump())

    @app.post("/step")
    def step(ticks: int = Query(default=1, ge=1, le=MAX_TICKS_PER_REQUEST)) -> Response:
        """Advance the simulation and return the events and final statistics."""
        with world_lock:
            results = [world.step() for _ in range(ticks)]
        last = results[-1]
        logger.debug(f"Stepped {ticks} tick(s) to tick {last.tick}")
        return _json(
            {
                "tick": last.tick,
                "events": [event for result in results for event in result.events],
                "statistics": last.statistics.model_dump(),
            }
        )

    return app
