"""Main entry point: run a courier scenario headless or serve the observation API."""

import argparse
import logging
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import orjson
import uvicorn
from pydantic import ValidationError

from world.generation.generator import ScenarioGenerator
from world.generation.params import ScenarioParams
from world.io.api import create_app
from world.io.map_manager import export_map, import_map, load_graph
from world.sim.dto.step_result_dto import FleetStatisticsDTO
from world.world import World

logger = logging.getLogger(__name__)


def configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def load_params(scenario_path: str | None, seed: int | None, dt_s: float | None) -> ScenarioParams:
    """Read scenario parameters from a JSON file and apply command line overrides.

    Raises:
        ValidationError: If the resulting parameters are invalid
    """
    data = orjson.loads(Path(scenario_path).read_bytes()) if scenario_path else {}
    if seed is not None:
        data["seed"] = seed
    if dt_s is not None:
        data["dt_s"] = dt_s
    return ScenarioParams.model_validate(data)


def build_world(
    params: ScenarioParams, map_path: str | None = None, map_name: str | None = None
) -> World:
    """Create a populated world, on a loaded map if one is given.

    Args:
        params: Scenario parameters
        map_path: GraphML file to load
        map_name: Map saved in the maps directory, used instead of ``map_path``

    Raises:
        OSError: If the map file cannot be read
        ET.ParseError: If the map file is not valid XML
        ValueError: If the map content is invalid
    """
    graph = None
    if map_name:
        graph = import_map(map_name)
    elif map_path:
        graph = load_graph(map_path)
    return ScenarioGenerator(params).generate(graph)


def run_headless(world: World, ticks: int) -> FleetStatisticsDTO:
    """Advance the world a number of ticks and return the final statistics."""
    for _ in range(ticks):
        world.step()
    statistics = world.statistics()
    logger.info(
        f"Finished after {statistics.tick} ticks: profit {statistics.fleet_profit:.2f}, "
        f"{statistics.parcels_delivered} delivered, {statistics.distance_km:.1f} km driven"
    )
    return statistics


def export_scenario_map(params: ScenarioParams, map_name: str) -> int:
    """Generate the scenario road network and save it under a name."""
    try:
        path = export_map(ScenarioGenerator(params).generate_graph(), map_name)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot export map: {e}")
        return 2
    logger.info(f"Saved road network to {path}")
    return 0


def serve(world: World, host: str, port: int) -> None:
    """Serve the observation API until interrupted."""
    logger.info(f"Serving observation API on {host}:{port}")
    uvicorn.run(create_app(world), host=host, port=port, log_level="info", access_log=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Courier Simulation Runner")
    parser.add_argument("--scenario", default=None, help="Scenario parameters JSON file")
    map_group = parser.add_mutually_exclusive_group()
    map_group.add_argument("--map", default=None, help="GraphML road network to use")
    map_group.add_argument("--map-name", default=None, help="Saved map in the maps directory")
    parser.add_argument("--seed", type=int, default=None, help="Random seed override")
    parser.add_argument("--dt", type=float, default=None, help="Simulated seconds per tick")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run headless for a number of ticks")
    run_parser.add_argument("--ticks", type=int, default=3600, help="Ticks to simulate")

    serve_parser = subparsers.add_parser("serve", help="Serve the observation API")
    serve_parser.add_argument("--host", default="localhost", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")

    export_parser = subparsers.add_parser(
        "export-map", help="Save the scenario road network in the maps directory"
    )
    export_parser.add_argument("name", help="Map name")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        params = load_params(args.scenario, args.seed, args.dt)
    except (OSError, orjson.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid scenario: {e}")
        return 2

    if args.command == "export-map":
        return export_scenario_map(params, args.name)

    try:
        world = build_world(params, args.map, args.map_name)
    except (OSError, ET.ParseError, ValueError) as e:
        logger.error(f"Invalid map: {e}")
        return 2

    if args.command == "run":
        run_headless(world, args.ticks)
    else:
        serve(world, args.host, args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
