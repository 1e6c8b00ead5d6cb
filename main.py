"""
main.py — Traversal Tutor Flask App
=====================================
The JSON API that powers the tutor's front end.

Routes:
  GET  /api/algorithms              – registered traversals + pseudocode
  GET  /api/presets                 – built-in graphs (?weighted=true|false)
  GET  /api/state                   – full snapshot of the learner's session
  GET  /api/history                 – recorded steps + run metrics
  POST /api/algorithm               – switch traversal on the current graph
  POST /api/graph/select            – load a graph spec
  POST /api/graph/preset            – load a built-in graph
  POST /api/graph/import            – load an adjacency-list text
  POST /api/start                   – choose the start node
  POST /api/step                    – manual Step
  POST /api/reset                   – back to READY
  POST /api/autoplay/start          – Play
  POST /api/autoplay/pause          – Pause
  POST /api/autoplay/tick           – advance autoplay if due (polled by the client)
  POST /api/practice/toggle         – practice mode on/off
  POST /api/practice/auto_apply     – apply correct predictions immediately
  POST /api/practice/select         – "which node is next?"
  POST /api/practice/expand/toggle  – toggle a neighbour in the expansion guess
  POST /api/practice/expand/submit  – "which neighbours are affected?"
  POST /api/practice/apply          – apply the step a correct answer earned
  POST /api/practice/hint           – queue / distance hint
  POST /api/edit/node               – add a node
  POST /api/edit/edge               – add an edge
  POST /api/edit/remove             – remove a node or edge

State management:
  Each browser gets a random session id in the signed Flask session cookie.
  The id keys a TraversalSession held in process memory; nothing is
  persisted.  Every mutating route answers with the new snapshot so the
  client never has to poll after its own actions.

Errors:
  InvalidGraphError      → 400 {"error": message}
  IllegalOperationError  → 409 {"error": message}
"""

import logging
import math
import secrets
import threading
from collections import OrderedDict

from flask import Flask, abort, jsonify, make_response, request, session

import config
from engine import TraversalSession
from graph import InvalidGraphError, list_presets
from traversal import IllegalOperationError, list_algorithms

logger = logging.getLogger(__name__)


app = Flask(__name__)
app.secret_key = config.SECRET_KEY


# ---------------------------------------------------------------------------
# Session registry (least recently used first)
# ---------------------------------------------------------------------------
SESSIONS: "OrderedDict[str, TraversalSession]" = OrderedDict()
_SESSIONS_LOCK = threading.Lock()


def get_session() -> TraversalSession:
    """The caller's TraversalSession, created on first use."""
    sid = session.get("sid")
    if sid is None:
        sid = secrets.token_urlsafe(16)
        session["sid"] = sid
    with _SESSIONS_LOCK:
        tutor = SESSIONS.get(sid)
        if tutor is not None:
            SESSIONS.move_to_end(sid)
            return tutor
        tutor = TraversalSession()
        SESSIONS[sid] = tutor
        logger.info("new session %s", sid[:6])
        while len(SESSIONS) > max(1, config.MAX_SESSIONS):
            evicted, _ = SESSIONS.popitem(last=False)
            logger.info("evicted session %s", evicted[:6])
        return tutor


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _bad_request(message: str):
    abort(make_response(jsonify({"error": message}), 400))


def _field(data: dict, name: str):
    if name not in data or data[name] is None:
        _bad_request(f"Missing field: {name}")
    return data[name]


def _flag(data: dict, name: str, default=None) -> bool:
    """A JSON boolean field; strings like "false" are rejected."""
    value = data.get(name, default) if default is not None else _field(data, name)
    if not isinstance(value, bool):
        _bad_request(f"Field {name} must be true or false")
    return value


def _number(data: dict, name: str):
    value = data.get(name)
    if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value)):
        _bad_request(f"Field {name} must be a number")
    return value


def _state(tutor: TraversalSession, **extra):
    body = {"state": tutor.snapshot()}
    body.update(extra)
    return jsonify(body)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.errorhandler(InvalidGraphError)
def handle_invalid_graph(exc):
    logger.warning("invalid graph: %s", exc)
    return jsonify({"error": str(exc)}), 400


@app.errorhandler(IllegalOperationError)
def handle_illegal_operation(exc):
    logger.warning("illegal operation: %s", exc)
    return jsonify({"error": str(exc)}), 409


# ---------------------------------------------------------------------------
# API: Catalogue
# ---------------------------------------------------------------------------
@app.route("/api/algorithms")
def api_algorithms():
    return jsonify([info.to_dict() for info in list_algorithms()])


@app.route("/api/presets")
def api_presets():
    weighted = request.args.get("weighted")
    flag = None if weighted is None else weighted.lower() in ("1", "true", "yes")
    return jsonify([p.to_dict() for p in list_presets(flag)])


@app.route("/api/state")
def api_state():
    return jsonify(get_session().snapshot())


@app.route("/api/history")
def api_history():
    return jsonify(get_session().history())


# ---------------------------------------------------------------------------
# API: Graph & algorithm selection
# ---------------------------------------------------------------------------
@app.route("/api/algorithm", methods=["POST"])
def api_algorithm():
    tutor = get_session()
    tutor.select_algorithm(_field(_payload(), "algorithm"))
    return _state(tutor)


@app.route("/api/graph/select", methods=["POST"])
def api_graph_select():
    data  = _payload()
    tutor = get_session()
    tutor.select_graph(_field(data, "graph"), algorithm=data.get("algorithm"), start=data.get("start"))
    return _state(tutor)


@app.route("/api/graph/preset", methods=["POST"])
def api_graph_preset():
    data  = _payload()
    tutor = get_session()
    tutor.select_preset(_field(data, "preset"), algorithm=data.get("algorithm"), start=data.get("start"))
    return _state(tutor)


@app.route("/api/graph/import", methods=["POST"])
def api_graph_import():
    data  = _payload()
    tutor = get_session()
    tutor.import_graph(_field(data, "text"), directed=_flag(data, "directed", True), start=data.get("start"))
    return _state(tutor)


# ---------------------------------------------------------------------------
# API: Run control
# ---------------------------------------------------------------------------
@app.route("/api/start", methods=["POST"])
def api_start():
    tutor = get_session()
    tutor.set_start_node(_field(_payload(), "node"))
    return _state(tutor)


@app.route("/api/step", methods=["POST"])
def api_step():
    tutor = get_session()
    performed = tutor.step_once()
    return _state(tutor, performed=performed)


@app.route("/api/reset", methods=["POST"])
def api_reset():
    tutor = get_session()
    tutor.reset()
    return _state(tutor)


# ---------------------------------------------------------------------------
# API: Autoplay
# ---------------------------------------------------------------------------
@app.route("/api/autoplay/start", methods=["POST"])
def api_autoplay_start():
    data  = _payload()
    tutor = get_session()
    if "speed" in data:
        tutor.set_speed(data["speed"])
    started = tutor.start_autoplay(_number(data, "interval_ms"))
    return _state(tutor, started=started)


@app.route("/api/autoplay/pause", methods=["POST"])
def api_autoplay_pause():
    tutor = get_session()
    paused = tutor.pause_autoplay()
    return _state(tutor, paused=paused)


@app.route("/api/autoplay/tick", methods=["POST"])
def api_autoplay_tick():
    tutor = get_session()
    stepped = tutor.tick(_payload().get("generation"))
    return _state(tutor, stepped=stepped)


# ---------------------------------------------------------------------------
# API: Practice mode
# ---------------------------------------------------------------------------
@app.route("/api/practice/toggle", methods=["POST"])
def api_practice_toggle():
    tutor = get_session()
    tutor.toggle_practice(_flag(_payload(), "on"))
    return _state(tutor)


@app.route("/api/practice/auto_apply", methods=["POST"])
def api_practice_auto_apply():
    tutor = get_session()
    tutor.set_auto_apply(_flag(_payload(), "on"))
    return _state(tutor)


@app.route("/api/practice/select", methods=["POST"])
def api_practice_select():
    tutor = get_session()
    feedback = tutor.submit_selection_guess(_field(_payload(), "node"))
    return _state(tutor, feedback=feedback.to_dict())


@app.route("/api/practice/expand/toggle", methods=["POST"])
def api_practice_expand_toggle():
    tutor = get_session()
    guess = tutor.toggle_expansion_guess(_field(_payload(), "node"))
    return _state(tutor, guess=list(guess))


@app.route("/api/practice/expand/submit", methods=["POST"])
def api_practice_expand_submit():
    tutor = get_session()
    feedback = tutor.submit_expansion_guess()
    return _state(tutor, feedback=feedback.to_dict())


@app.route("/api/practice/apply", methods=["POST"])
def api_practice_apply():
    tutor = get_session()
    performed = tutor.apply_step_if_allowed()
    return _state(tutor, performed=performed)


@app.route("/api/practice/hint", methods=["POST"])
def api_practice_hint():
    tutor = get_session()
    hint = tutor.request_hint()
    return _state(tutor, hint=hint)


# ---------------------------------------------------------------------------
# API: Edit mode
# ---------------------------------------------------------------------------
@app.route("/api/edit/node", methods=["POST"])
def api_edit_node():
    data  = _payload()
    tutor = get_session()
    tutor.add_node(_field(data, "id"), label=data.get("label"))
    return _state(tutor)


@app.route("/api/edit/edge", methods=["POST"])
def api_edit_edge():
    data  = _payload()
    tutor = get_session()
    tutor.add_edge(
        _field(data, "source"),
        _field(data, "target"),
        weight=data.get("weight"),
        edge_id=data.get("id"),
    )
    return _state(tutor)


@app.route("/api/edit/remove", methods=["POST"])
def api_edit_remove():
    tutor = get_session()
    tutor.remove_element(_field(_payload(), "id"))
    return _state(tutor)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
