"""Flask application - read-only JSON routes over the mod store."""

from dataclasses import asdict

from flask import Flask, jsonify, redirect, request

from ..extractor import DocumentExtractionError
from ..service import ModInfo, QueryService
from ..store import Store, StoreError


def _summary(m) -> dict:
    return {
        "mid": m.mid,
        "title": m.title,
        "poster_url": m.tile,
        "version": m.version,
        "last_update": m.last_update,
    }


def _info_payload(info: ModInfo, url_path: str) -> dict:
    record = info.record
    return {
        **record.to_dict(),
        "url_path": url_path,
        "versions": [
            {"text": v, "selected": v == record.version} for v in record.versions
        ],
        "is_total_conversion": info.is_total_conversion,
        "packages": [asdict(p) for p in info.packages],
        "total_size": info.total_size,
        "sha256sum": info.sha256sum,
        "dependencies": [
            {"package": name, "dependencies": deps} for name, deps in info.dependencies
        ],
        "modline": info.modline,
        "cmdline": info.cmdline,
    }


def create_app(store: Store) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False

    service = QueryService(store)

    def not_found():
        return jsonify({"error": "Not found"}), 404

    def info_page(mid: str, version: str | None):
        info = service.info(mid, version)
        if info is None:
            return not_found()
        url_path = f"/mods/{mid}/{version}" if version else f"/mods/{mid}"
        return jsonify(_info_payload(info, url_path))

    def info_page_as_json(mid: str, version: str | None):
        record = service.get(mid, version)
        if record is None:
            return jsonify({}), 404
        return jsonify(record.document)

    # -- Page routes --

    @app.route("/")
    def index():
        return redirect("/mods")

    @app.route("/mods")
    def mod_list():
        query = request.args.get("q", "")
        mods = service.search(query) if query else service.list()
        return jsonify({"mods": [_summary(m) for m in mods]})

    @app.route("/mods/<mid>")
    def mod_info(mid: str):
        return info_page(mid, None)

    @app.route("/mods/<mid>/mod.json")
    def mod_info_as_json(mid: str):
        return info_page_as_json(mid, None)

    @app.route("/mods/<mid>/<version>")
    def mod_info_with_version(mid: str, version: str):
        return info_page(mid, version)

    @app.route("/mods/<mid>/<version>/mod.json")
    def mod_info_with_version_as_json(mid: str, version: str):
        return info_page_as_json(mid, version)

    # -- Errors --

    @app.errorhandler(404)
    def page_not_found(e):
        return not_found()

    @app.errorhandler(DocumentExtractionError)
    def extraction_error(e):
        app.logger.error("Mod document error: %s", e)
        return jsonify({"error": str(e)}), 500

    @app.errorhandler(StoreError)
    def store_error(e):
        app.logger.error("Store error: %s", e)
        return jsonify({"error": str(e)}), 500

    return app
