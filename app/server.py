"""Flask app factory exposing an FWorld instance over HTTP."""

import os
from pathlib import Path
from typing import Any, Dict

from flask import Flask

from app.routes import bp
from app.routes.api import init_state

DEFAULT_DATA_DIR = "runs"


def create_app(config: Dict[str, Any] | None = None) -> Flask:
    """Create the Flask application and initialize the world.

    config keys: ``seed``, ``world`` (FWorldConfig overrides) and
    ``data_dir`` (defaults to $FWORLD_DATA_DIR, then ``runs/``).
    """
    cfg = config or {}
    data_dir = Path(cfg.get("data_dir") or os.environ.get("FWORLD_DATA_DIR", DEFAULT_DATA_DIR))
    init_state(seed=int(cfg.get("seed", 1337)), world=cfg.get("world"))
    flask_app = Flask(__name__)
    flask_app.config["FWORLD_DATA_DIR"] = data_dir
    flask_app.config["FWORLD_WORLD"] = cfg.get("world")
    flask_app.register_blueprint(bp)
    return flask_app


if __name__ == "__main__":
    from fworld.logging_config import setup_logging

    setup_logging()
    app = create_app()
    app.run(host="0.0.0.0", port=5000)
