#!/usr/bin/env python3
"""
Flask web server with API endpoints

POST /quick lets editors and scripts trigger a lookup; the response is shown
by the desktop app, not returned over HTTP.
"""

from flask import Flask, abort, jsonify, request

from .editor_state import BufferEditorState
from .errors import ConfigurationError
from .gui.core import get_gui_status
from .query import make_anchor

# Global state - will be initialized by main.py
QUICKLENS = None

app = Flask(__name__)


def _optional_int(data, key):
    value = data.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f"'{key}' must be an integer")


@app.route('/quick', methods=['POST'])
def quick():
    """
    Trigger a lookup.

    JSON body (all optional):
        text: Text to look up
        word_count: Response length in words
        buffer, point, mark: Editor buffer used when text is absent
        x, y: Popup anchor in screen coordinates
    """
    if QUICKLENS is None:
        abort(503, description='QuickLens is not running')

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        abort(400, description='Expected a JSON object')
    text = data.get('text')
    if text is not None and not isinstance(text, str):
        abort(400, description='text must be a string')
    word_count = _optional_int(data, 'word_count')
    x = _optional_int(data, 'x')
    y = _optional_int(data, 'y')
    coords = (x, y) if x is not None and y is not None else None

    editor_state = None
    if text is None and data.get('buffer') is not None:
        point = _optional_int(data, 'point')
        editor_state = BufferEditorState(
            text=str(data['buffer']),
            point=point if point is not None else 0,
            mark=_optional_int(data, 'mark'),
            coords=coords,
        )

    try:
        query = QUICKLENS.quick(
            source_text=text,
            word_count=word_count,
            anchor=make_anchor(coords),
            editor_state=editor_state,
        )
    except ConfigurationError as e:
        abort(400, description=str(e))

    if query is None:
        abort(400, description='Nothing to look up')

    return jsonify({
        "status": "dispatched",
        "word_budget": query.word_budget,
        "token_budget": query.token_budget,
    })


@app.route('/health')
def health():
    """Health check endpoint"""
    gui_status = get_gui_status()
    return jsonify({
        "status": "healthy",
        "gui_running": gui_status["running"],
        "app": QUICKLENS.status() if QUICKLENS else None,
    })


@app.route('/conversations')
def conversations_list():
    """List conversations opened by escalation"""
    if QUICKLENS is None:
        return jsonify([])
    return jsonify(QUICKLENS.conversations.list_sessions())


@app.errorhandler(400)
def bad_request(e):
    return jsonify({"error": str(e.description)}), 400


@app.errorhandler(503)
def unavailable(e):
    return jsonify({"error": str(e.description)}), 503


def init_web_server(quicklens_app):
    """Initialize web server with the running app"""
    global QUICKLENS
    QUICKLENS = quicklens_app
    return app
