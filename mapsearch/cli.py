"""
Command line entry point.

    mapsearch init <out.yaml>
    mapsearch search <config.(yaml|toml)> <query> [--json]
    mapsearch states <config.(yaml|toml)>
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import TEMPLATE_YAML, load_config
from .entities import DistrictResolved, PointResolved, StateResolved
from .session import MapSession, SearchResult
from .state_store import StateBoundaryStore, color_for
from .styles import marker_payload, selected_feature_style


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _describe(result: SearchResult, *, dashboard_base: Optional[str] = None) -> dict:
    entity = result.entity
    out: dict = {
        "outcome": result.outcome.value,
        "message": result.message,
        "command": result.command.to_dict(),
    }
    if isinstance(entity, PointResolved):
        out["entity"] = {"kind": "point", **entity.facility.to_dict()}
        out["marker"] = marker_payload(entity.facility, dashboard_base=dashboard_base)
    elif isinstance(entity, (DistrictResolved, StateResolved)):
        kind = "district" if isinstance(entity, DistrictResolved) else "state"
        out["entity"] = {"kind": kind, "name": entity.name}
        out["style"] = selected_feature_style()
    return out


def _cmd_init(out_path: str) -> int:
    p = Path(out_path)
    if p.exists():
        print(f"Refusing to overwrite existing file: {p}", file=sys.stderr)
        return 2
    p.write_text(TEMPLATE_YAML, encoding="utf-8")
    print(f"Wrote starter config: {p}")
    return 0


def _cmd_search(cfg_path: str, query: str, *, as_json: bool) -> int:
    cfg = load_config(cfg_path)
    _configure_logging(cfg.log_level)
    if not cfg.endpoints.boundaries:
        print("config has no 'endpoints.boundaries' entry", file=sys.stderr)
        return 2
    session = MapSession.from_config(cfg)
    result = asyncio.run(session.submit_search(query))
    described = _describe(result, dashboard_base=cfg.endpoints.dashboard)
    if as_json:
        print(json.dumps(described, indent=2))
    else:
        print(f"{described['outcome']}: {described.get('entity', {}).get('name', query)}")
        if described["message"]:
            print(f"  {described['message']}")
        print(f"  command: {json.dumps(described['command'])}")
        href = described.get("marker", {}).get("href")
        if href:
            print(f"  dashboard: {href}")
    return 0 if described["outcome"] == "found" else 1


def _cmd_states(cfg_path: str) -> int:
    cfg = load_config(cfg_path)
    _configure_logging(cfg.log_level)
    if not cfg.endpoints.states:
        print("config has no 'endpoints.states' entry", file=sys.stderr)
        return 2
    store = StateBoundaryStore.from_source(
        cfg.endpoints.states, timeout=cfg.request_timeout
    )
    for name in sorted(store.names):
        print(f"{name}\t{color_for(name)}")
    return 0


def _usage() -> int:
    print("Usage:", file=sys.stderr)
    print("  mapsearch init <output.yaml>", file=sys.stderr)
    print("  mapsearch search <config.(yaml|toml)> <query> [--json]", file=sys.stderr)
    print("  mapsearch states <config.(yaml|toml)>", file=sys.stderr)
    return 2


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)

    if len(argv) >= 2 and argv[1] == "init":
        if len(argv) != 3:
            print("Usage: mapsearch init <output.yaml>", file=sys.stderr)
            return 2
        return _cmd_init(argv[2])

    if len(argv) >= 2 and argv[1] == "search":
        args = [a for a in argv[2:] if a != "--json"]
        if len(args) != 2:
            print(
                "Usage: mapsearch search <config.(yaml|toml)> <query> [--json]",
                file=sys.stderr,
            )
            return 2
        return _cmd_search(args[0], args[1], as_json="--json" in argv)

    if len(argv) >= 2 and argv[1] == "states":
        if len(argv) != 3:
            print("Usage: mapsearch states <config.(yaml|toml)>", file=sys.stderr)
            return 2
        return _cmd_states(argv[2])

    return _usage()


def run() -> None:
    sys.exit(main(sys.argv))
