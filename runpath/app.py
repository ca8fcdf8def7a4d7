"""Flask backend running constrained-run searches.

Exposes a synchronous endpoint returning the minimal cost and a streaming one
that runs the search in a background task and pushes its snapshots through
Flask-SocketIO (which falls back to polling if WebSocket is unavailable).

Defaults live in ``app.config`` and can be overridden from the environment,
e.g. ``FLASK_RUNPATH_MIN_RUN=4 FLASK_RUNPATH_MAX_RUN=10``.
"""
from __future__ import annotations

from threading import Lock
from typing import Any, Dict

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO

from runpath.algorithms.grid import Coordinate, GridModel, MalformedGrid, RunpathError
from runpath.algorithms.search import SearchEngine, heuristic_for

app = Flask(__name__)
app.config.from_mapping(
    SECRET_KEY="change-me",  # in production override via env
    RUNPATH_MIN_RUN=1,
    RUNPATH_MAX_RUN=3,
    RUNPATH_STRATEGY="dijkstra",
    RUNPATH_INCLUDE_START_COST=False,
)
app.config.from_prefixed_env()
socketio = SocketIO(app, cors_allowed_origins="*")

# Enable CORS for /api/* endpoints so that frontend localhost:5173 can POST
CORS(app, resources={r"/api/*": {"origins": "*"}})

# run id -> engine, for runs started through /api/run/search
_runs: Dict[str, Any] = {}
_runs_lock = Lock()


def _make_grid(raw) -> GridModel:
    """Grid is either digit text (one row per line) or a list of integer rows."""
    if isinstance(raw, str):
        return GridModel.from_text(raw)
    if isinstance(raw, list):
        return GridModel.from_rows(raw)
    raise MalformedGrid(f"grid must be text or a list of rows, got {type(raw).__name__}")


def _make_coord(raw, name: str) -> Coordinate:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError(f"{name} must be an [x, y] pair, got {raw!r}")
    return Coordinate(int(raw[0]), int(raw[1]))


def _make_flag(raw, name: str) -> bool:
    # JSON true/false only; "false" as a string is truthy
    if not isinstance(raw, bool):
        raise ValueError(f"{name} must be true or false, got {raw!r}")
    return raw


def _make_engine(data: dict) -> SearchEngine:
    if "grid" not in data:
        raise MalformedGrid("request has no 'grid'")
    grid = _make_grid(data["grid"])
    cfg = app.config
    strategy = data.get("strategy", cfg["RUNPATH_STRATEGY"])
    return SearchEngine(
        grid=grid,
        start=_make_coord(data.get("start", [0, 0]), "start"),
        end=_make_coord(data.get("end", [grid.width - 1, grid.height - 1]), "end"),
        min_run=int(data.get("min_run", cfg["RUNPATH_MIN_RUN"])),
        max_run=int(data.get("max_run", cfg["RUNPATH_MAX_RUN"])),
        heuristic=heuristic_for(strategy, grid),
        include_start_cost=_make_flag(data.get("include_start_cost", cfg["RUNPATH_INCLUDE_START_COST"]),
                                      "include_start_cost"),
    )


@app.errorhandler(RunpathError)
@app.errorhandler(ValueError)
def _bad_input(exc):
    app.logger.info("rejected search request: %s", exc)
    return jsonify({"error": str(exc)}), 400


@app.route("/api/solve", methods=["POST"])
def solve():
    data = request.get_json(force=True)
    engine = _make_engine(data)
    cost = engine.run()
    app.logger.info("solve %s -> %s: cost=%s after %d pops",
                    tuple(engine.start), tuple(engine.end), cost, engine.popped_count)
    return jsonify({"reachable": cost is not None, "cost": cost})


@app.route("/api/run/search", methods=["POST"])
def run_search():
    data = request.get_json(force=True)
    engine = _make_engine(data)
    run_id = data.get("run_id", f"search_{id(engine)}")

    def _background_task():
        history = list(engine.run_iter())

        # Emit entire history at once
        socketio.emit("search_history", {"run_id": run_id, "history": history})
        socketio.emit("search_done", {
            "run_id": run_id,
            "cost": engine.result,
            "reachable": engine.result is not None,
            "iterations": engine.popped_count,
        })
        app.logger.info("run %s finished: cost=%s", run_id, engine.result)

    socketio.start_background_task(_background_task)

    with _runs_lock:
        _runs[run_id] = engine

    return jsonify({"status": "started", "run_id": run_id})


@app.route("/api/runs", methods=["GET"])
def list_runs():
    with _runs_lock:
        return jsonify(list(_runs.keys()))


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=5000, debug=True)
