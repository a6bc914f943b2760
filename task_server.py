#!/usr/bin/env python3
"""
Taskboard Server
----------------
JSON API over one task board session (tasks + categories), backed by the
in-memory store or a remote record API.

Usage:
    python task_server.py --config taskboard.yaml
    taskboard-server --port 3000

API:
    GET    /api/board?filter=&q=           → { tasks, stats, categories, breakdown }
    GET    /api/tasks?filter=&q=&category=&tag=
    GET    /api/tasks/<id>
    POST   /api/tasks                      → create (form fields in JSON body)
    PUT    /api/tasks/<id>                 → edit via the form path
    POST   /api/tasks/<id>/toggle          → flip completed
    DELETE /api/tasks/<id>
    GET    /api/stats
    GET    /api/categories   POST /api/categories
    PUT    /api/categories/<id>   DELETE /api/categories/<id>
    POST   /api/reload                     → re-fetch everything from the backend
    GET    /health

Dependencies:
    pip install "flask[async]" requests pyyaml
"""

import argparse
import asyncio
import logging
import sys

from flask import Flask, current_app, jsonify, request

from taskboard.board import TaskBoard, task_view
from taskboard.config import Config, ConfigError
from taskboard.filters import filter_by_category, filter_by_tag, filter_tasks
from taskboard.dates import today_utc
from taskboard.services import build_services
from taskboard.stats import compute_breakdown, compute_stats
from taskboard.validator import ValidationError

logger = logging.getLogger("taskboard")


def _board() -> TaskBoard:
    return current_app.config["BOARD"]


def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _respond(outcome, key: str, created: bool = False):
    """Turn a board Outcome into a JSON response."""
    note = outcome.notification.to_dict() if outcome.notification else None
    if not outcome.ok:
        return jsonify({"error": note["message"] if note else "Request failed",
                        "notification": note}), 502
    value = outcome.value
    if hasattr(value, "to_dict"):
        if key == "task":
            value = task_view(value, today_utc())
        else:
            value = value.to_dict()
    return jsonify({key: value, "notification": note}), (201 if created else 200)


def _not_found(what: str):
    return jsonify({"error": f"{what} not found"}), 404


# ── Routes ───────────────────────────────────────────────────────────────────

def register_routes(app: Flask) -> None:

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return jsonify({"error": str(e)}), 400

    @app.route("/api/board")
    def api_board():
        board = _board()
        return jsonify(board.view(request.args.get("filter"), request.args.get("q", "")))

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        tasks = filter_tasks(
            _board().snapshot(),
            request.args.get("filter"),
            request.args.get("q", ""),
        )
        category = request.args.get("category")
        tag = request.args.get("tag")
        if category:
            tasks = filter_by_category(tasks, category)
        if tag:
            tasks = filter_by_tag(tasks, tag)
        today = today_utc()
        return jsonify({"tasks": [task_view(t, today) for t in tasks], "count": len(tasks)})

    @app.route("/api/tasks/<task_id>", methods=["GET"])
    def api_task(task_id):
        task = _board().find_task(task_id)
        if not task:
            return _not_found("Task")
        return jsonify({"task": task_view(task, today_utc())})

    @app.route("/api/tasks", methods=["POST"])
    async def api_create_task():
        outcome = await _board().create_task(_body())
        return _respond(outcome, "task", created=True)

    @app.route("/api/tasks/<task_id>", methods=["PUT"])
    async def api_update_task(task_id):
        board = _board()
        task = board.find_task(task_id)
        if not task:
            return _not_found("Task")
        outcome = await board.update_task(task.id, _body())
        return _respond(outcome, "task")

    @app.route("/api/tasks/<task_id>/toggle", methods=["POST"])
    async def api_toggle_task(task_id):
        board = _board()
        task = board.find_task(task_id)
        if not task:
            return _not_found("Task")
        outcome = await board.toggle_complete(task.id)
        return _respond(outcome, "task")

    @app.route("/api/tasks/<task_id>", methods=["DELETE"])
    async def api_delete_task(task_id):
        board = _board()
        task = board.find_task(task_id)
        if not task:
            return _not_found("Task")
        outcome = await board.delete_task(task.id)
        return _respond(outcome, "id")

    @app.route("/api/stats")
    def api_stats():
        snapshot = _board().snapshot()
        stats = compute_stats(snapshot).to_dict()
        stats.update(compute_breakdown(snapshot))
        return jsonify(stats)

    @app.route("/api/categories", methods=["GET"])
    def api_categories():
        return jsonify({"categories": [c.to_dict() for c in _board().categories]})

    @app.route("/api/categories", methods=["POST"])
    async def api_create_category():
        outcome = await _board().create_category(_body())
        return _respond(outcome, "category", created=True)

    @app.route("/api/categories/<category_id>", methods=["PUT"])
    async def api_update_category(category_id):
        board = _board()
        category = board.find_category(category_id)
        if not category:
            return _not_found("Category")
        outcome = await board.update_category(category.id, _body())
        return _respond(outcome, "category")

    @app.route("/api/categories/<category_id>", methods=["DELETE"])
    async def api_delete_category(category_id):
        board = _board()
        category = board.find_category(category_id)
        if not category:
            return _not_found("Category")
        outcome = await board.delete_category(category.id)
        return _respond(outcome, "id")

    @app.route("/api/reload", methods=["POST"])
    async def api_reload():
        board = _board()
        outcome = await board.load()
        if not outcome.ok:
            return jsonify({"error": outcome.notification.message}), 502
        return jsonify({"count": len(board.snapshot())})

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "backend": current_app.config["TASKBOARD"].backend})


def create_app(config: Config = None, board: TaskBoard = None) -> Flask:
    """Build the Flask app around one loaded board session."""
    if config is None:
        config = Config.load()
    if board is None:
        board = TaskBoard(*build_services(config))
        outcome = asyncio.run(board.load())
        if not outcome.ok:
            logger.warning("Initial load failed, starting with an empty board")

    app = Flask(__name__)
    app.config["TASKBOARD"] = config
    app.config["BOARD"] = board
    register_routes(app)
    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Taskboard Server")
    parser.add_argument("--host", help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, help="Port (overrides config)")
    parser.add_argument("--config", help="Path to taskboard.yaml (overrides TASKBOARD_CONFIG)")
    args = parser.parse_args()

    try:
        config = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    host = args.host or config.host
    port = args.port or config.port
    app = create_app(config)

    print(f"""
╔═══════════════════════════════════════╗
║  Taskboard Server                     ║
╠═══════════════════════════════════════╣
║  URL:     http://{host}:{port:<17}║
║  Backend: {config.backend:<28}║
╚═══════════════════════════════════════╝
""")

    # One request at a time: the board session has a single writer
    app.run(host=host, port=port, debug=False, threaded=False)


if __name__ == "__main__":
    main()
