"""Web UI for neb-repo."""

from ..config import WebConfig
from ..store import Store


def create_and_run(store: Store, config: WebConfig) -> None:
    """Create and run the Flask app."""
    from .app import create_app

    app = create_app(store)
    app.run(host=config.bind, port=config.port, debug=False, threaded=True)
