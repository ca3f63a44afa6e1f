from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from game import (
    ConfigurationError,
    LoadFailed,
    MatchEngine,
    SqliteStore,
    ThreadingScheduler,
    config_from_env,
    event_to_json,
    record_to_json,
)

logger = logging.getLogger(__name__)

DEFAULT_DB = os.getenv("PAIRS_DB", "data/pairs.db")

app = Flask(__name__)

# Every engine call, and every flip-back timer, runs under this lock.
ENGINE_LOCK = threading.RLock()
ENGINE: Optional[MatchEngine] = None


def make_engine() -> MatchEngine:
    return MatchEngine(
        config=config_from_env(),
        store=SqliteStore(DEFAULT_DB),
        scheduler=ThreadingScheduler(ENGINE_LOCK),
    )


def _engine() -> MatchEngine:
    global ENGINE
    if ENGINE is None:
        ENGINE = make_engine()
    return ENGINE


def _run(engine: MatchEngine, fn: Callable[[], Any]) -> Tuple[Any, List[Dict[str, Any]]]:
    """Calls `fn` and returns its result along with the events it emitted."""
    collected: List[Any] = []
    sink = collected.append
    engine.events.subscribe_all(sink)
    try:
        result = fn()
    finally:
        engine.events.unsubscribe_all(sink)
    return result, [event_to_json(e) for e in collected]


def _error(message: str, status: int = 400, **extra: Any) -> Any:
    body: Dict[str, Any] = {"ok": False, "error": message}
    body.update(extra)
    return jsonify(body), status


def _json_body() -> Optional[Dict[str, Any]]:
    """The request body as a JSON object; None when it is anything else."""
    body = request.get_json(force=True, silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        return None
    return body


# ---------- Core Game API ----------

@app.post("/api/new")
def api_new() -> Any:
    body = _json_body()
    if body is None:
        return _error("request body must be a JSON object")
    try:
        rows = int(body["rows"]) if body.get("rows") is not None else None
        columns = int(body["columns"]) if body.get("columns") is not None else None
        seed = int(body["seed"]) if body.get("seed") is not None else None
    except (TypeError, ValueError) as e:
        return _error(f"bad parameters: {e}")
    with ENGINE_LOCK:
        engine = _engine()
        try:
            _, events = _run(engine, lambda: engine.retry(rows, columns, seed))
        except ConfigurationError as e:
            return _error(str(e))
        return jsonify({"ok": True, "state": engine.view(), "events": events})


@app.post("/api/start")
def api_start() -> Any:
    with ENGINE_LOCK:
        engine = _engine()
        outcome, events = _run(engine, engine.start_new_or_load)
        resumed = outcome is not None and not isinstance(outcome, LoadFailed)
        return jsonify({"ok": True, "resumed": resumed, "state": engine.view(), "events": events})


@app.get("/api/state")
def api_state() -> Any:
    with ENGINE_LOCK:
        engine = _engine()
        if engine.board is None:
            engine.start_new_or_load()
        return jsonify({"ok": True, "state": engine.view()})


@app.post("/api/reveal")
def api_reveal() -> Any:
    body = _json_body()
    if body is None:
        return _error("request body must be a JSON object")
    try:
        index = int(body["index"])
    except (KeyError, TypeError, ValueError):
        return _error("index required")
    with ENGINE_LOCK:
        engine = _engine()
        if engine.board is None:
            return _error("no game in progress", status=409)
        try:
            _, events = _run(engine, lambda: engine.reveal(index))
        except IndexError as e:
            return _error(str(e))
        return jsonify({"ok": True, "state": engine.view(), "events": events})


@app.post("/api/restore")
def api_restore() -> Any:
    body = _json_body()
    if body is None:
        return _error("request body must be a JSON object")
    record = body.get("record")
    with ENGINE_LOCK:
        engine = _engine()
        outcome, events = _run(engine, lambda: engine.restore_or_build(record))
        if isinstance(outcome, LoadFailed):
            return _error(f"bad record: {outcome.reason}", state=engine.view(), events=events)
        return jsonify({"ok": True, "state": engine.view(), "events": events})


@app.get("/api/save")
def api_save() -> Any:
    with ENGINE_LOCK:
        engine = _engine()
        if engine.board is None:
            return _error("no game in progress", status=409)
        return jsonify({"ok": True, "record": record_to_json(engine.snapshot())})


# Entrypoint for "python app.py"
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    try:
        app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5000")), debug=debug)
    finally:
        if ENGINE is not None:
            ENGINE.close()
