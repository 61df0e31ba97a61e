#!/usr/bin/env python3
"""
Taskboard Server
----------------
Liveness endpoint plus a read-only JSON view of the stored board.

Usage:
    python board_server.py
    python board_server.py --port 3000 --db ./board.db

API:
    GET /api/ping   → JSON: { message: "pong" }
    GET /api/board  → JSON: { board, columns: [ {..., tasks: [...]}, ... ] }
    GET /health     → JSON: { status, db }

Board changes go through the taskboard CLI; the server never mutates state.
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from taskboard.config import Config, ConfigError, setup_logging
from taskboard.state import BoardStateManager
from taskboard.storage import SQLiteStorage

app = Flask(__name__)
CORS(app)

logger = logging.getLogger(__name__)


# ── Config ───────────────────────────────────────────────────────────────────

def get_db_path() -> str:
    return Config.load().db_path


def load_board() -> BoardStateManager:
    """Fresh read of the stored board, viewer rights only."""
    return BoardStateManager(SQLiteStorage(get_db_path()))


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/ping")
def api_ping():
    return jsonify({"message": "pong"})


@app.route("/api/board")
def api_board():
    try:
        return jsonify(load_board().snapshot())
    except Exception as e:
        logger.warning(f"api_board error: {e}")
        return jsonify({"error": str(e)}), 500


@app.route("/health")
def health():
    try:
        return jsonify({"status": "ok", "db": get_db_path()})
    except ConfigError as e:
        logger.warning(f"health config error: {e}")
        return jsonify({"status": "error", "error": str(e)}), 500


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    import argparse

    cfg = Config.load()
    parser = argparse.ArgumentParser(description="Taskboard Server")
    parser.add_argument("--host", default=cfg.host,
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=cfg.port)
    parser.add_argument("--db", help="Path to board.db (overrides TASKBOARD_DB env var)")
    args = parser.parse_args(argv)

    if args.db:
        os.environ["TASKBOARD_DB"] = args.db

    setup_logging(cfg.log_level)
    logger.info(f"Serving on http://{args.host}:{args.port} (db={get_db_path()})")
    app.run(host=args.host, port=args.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
