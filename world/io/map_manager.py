"""Map file management: named road networks in the maps directory and cached loading."""

import copy
import logging
import os
import re
from pathlib import Path

from world.graph.graph import Graph

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

# Parsed (and possibly pruned) graphs keyed by file path and prune flag
_GRAPH_CACHE: dict[tuple[str, bool], Graph] = {}


def sanitize_map_name(name: str) -> str:
    """Reduce a map name to letters, digits, ``_`` and ``-``.

    Separators and dots become underscores, so a name never leaves the maps
    directory.
    """
    return _UNSAFE_CHARS.sub("_", name) or "unnamed_map"


def get_maps_directory() -> Path:
    return Path(__file__).parent.parent.parent / "maps"


def map_filepath(map_name: str) -> Path:
    """GraphML file of a named map; the maps directory is created on demand."""
    maps_dir = Path(get_maps_directory())
    maps_dir.mkdir(parents=True, exist_ok=True)
    return maps_dir / f"{sanitize_map_name(map_name)}.graphml"


def export_map(graph: Graph, map_name: str) -> Path:
    """Save a road network under a name.

    Args:
        graph: Road network to save
        map_name: Map name, sanitized before use

    Returns:
        Path of the written file

    Raises:
        ValueError: If a map of that name already exists
    """
    path = map_filepath(map_name)
    if path.exists():
        raise ValueError(f"Map {path.stem} already exists")
    graph.to_graphml(str(path))
    logger.info(f"Exported map {path.stem}: {graph}")
    return path


def import_map(map_name: str, prune: bool = True) -> Graph:
    """Load a named road network through the cache.

    Raises:
        FileNotFoundError: If no map of that name exists
    """
    path = map_filepath(map_name)
    if not path.exists():
        raise FileNotFoundError(f"Map {path.stem} not found in {path.parent}")
    return load_graph(str(path), prune=prune)


def load_graph(filepath: str, prune: bool = True, use_cache: bool = True) -> Graph:
    """Load a GraphML road network, reusing earlier parses of the same file.

    Every call returns an independent copy, so placing depots on one world's
    graph never leaks into another.

    Args:
        filepath: Path to a GraphML file
        prune: Keep only the largest strongly connected component, so every
            node can reach every other one
        use_cache: Look the file up in the cache before parsing it

    Returns:
        Loaded Graph instance
    """
    key = (os.path.abspath(filepath), prune)
    if use_cache and key in _GRAPH_CACHE:
        return copy.deepcopy(_GRAPH_CACHE[key])

    graph = Graph.from_graphml(filepath)
    if prune:
        removed = graph.prune_to_largest_component()
        if removed:
            logger.warning(f"Removed {removed} unreachable nodes from {filepath}")
    logger.info(f"Loaded map {filepath}: {graph}")

    _GRAPH_CACHE[key] = graph
    return copy.deepcopy(graph)


def clear_cache() -> None:
    _GRAPH_CACHE.clear()
