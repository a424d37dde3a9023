"""
Test fixtures and configuration for pytest
"""

import pytest
from flask import Flask, jsonify

from paramlogger.middleware import ParamLogger
from paramlogger.observability.logging import clear_log_context


@pytest.fixture(autouse=True)
def _isolate_logging(tmp_path, monkeypatch):
    """Auto-use guard: send log files to a temp dir and start every test
    with an empty log context.
    """
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    clear_log_context()
    yield
    clear_log_context()


def build_app() -> Flask:
    """Small Flask app exercising query, route, form and multipart input."""
    app = Flask("paramlogger_test")

    @app.route("/users/<int:user_id>", methods=["GET", "POST", "PUT"])
    def user(user_id):
        return jsonify({"id": user_id})

    @app.route("/login", methods=["POST"])
    def login():
        return "welcome"

    @app.route("/upload", methods=["POST"])
    def upload():
        return jsonify({"stored": True}), 201

    @app.route("/boom", methods=["GET", "POST"])
    def boom():
        raise RuntimeError("handler exploded")

    @app.route("/reject", methods=["POST"])
    def reject():
        return jsonify({"error": "invalid"}), 422

    return app


@pytest.fixture
def make_app():
    """Factory: build the test app and install ``ParamLogger`` with *kwargs*."""

    def _make(**kwargs):
        app = build_app()
        param_logger = ParamLogger(app, **kwargs)
        return app, param_logger

    return _make


@pytest.fixture
def client(make_app):
    app, _ = make_app()
    return app.test_client()


@pytest.fixture
def bare_app():
    """The test app without any middleware installed."""
    return build_app()
