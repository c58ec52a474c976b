import os
import time
import uuid
import logging

from flask import Flask, jsonify, request, g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

import config
from media import build_media_stores, default_asset_classes
from routes import register_blueprints

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def _scrub_event(event, hint):
    # Inline images are large and may be personal photos.
    data = (event.get("request") or {}).get("data")
    if isinstance(data, dict):
        data.pop("image", None)
    return event


def _init_sentry(app):
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=app.config["SENTRY_DSN"],
        integrations=[FlaskIntegration(transaction_style="url")],
        traces_sample_rate=app.config["SENTRY_TRACES_SAMPLE_RATE"],
        environment=app.config["SENTRY_ENVIRONMENT"],
        send_default_pii=False,
        before_send=_scrub_event,
    )


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)

    if app.config.get("SENTRY_DSN"):
        _init_sentry(app)

    # ── Media stores: configuration is read once and never again ─────────────
    asset_classes = default_asset_classes(
        app.config["UPLOAD_FOLDER"],
        avatar_prefix=app.config.get("AVATAR_PUBLIC_PREFIX"),
        avatar_max_bytes=app.config.get("AVATAR_MAX_BYTES"),
        gallery_prefix=app.config.get("GALLERY_PUBLIC_PREFIX"),
        gallery_max_bytes=app.config.get("GALLERY_MAX_BYTES"),
    )
    app.extensions["media_stores"] = build_media_stores(asset_classes)

    register_blueprints(app)

    # ── Rate limiter ─────────────────────────────────────────────────────────
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=["200 per minute"],
        storage_uri=app.config["RATELIMIT_STORAGE_URI"],
    )
    view = app.view_functions.get("media.upload_asset")
    if view:
        limiter.limit(app.config["UPLOAD_RATE_LIMIT"])(view)

    _register_hooks(app)
    _register_error_handlers(app)
    return app


def _register_hooks(app):
    @app.before_request
    def before_request():
        g.request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex[:12])
        g.request_start = time.monotonic()

        if request.method in ("POST", "PUT", "DELETE") and request.path.startswith("/api/"):
            if request.content_length:
                ct = request.content_type or ""
                if "application/json" not in ct:
                    return jsonify({"error": "unsupported_media_type"}), 415

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "SAMEORIGIN"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        rid = g.get("request_id")
        if rid:
            resp.headers["X-Request-ID"] = rid

        if request.path.startswith("/api/"):
            elapsed = round((time.monotonic() - g.get("request_start", 0)) * 1000, 1)
            log_level = logging.WARNING if resp.status_code >= 400 else logging.DEBUG
            logger.log(log_level, "%s %s %s %sms rid=%s",
                       request.method, request.path, resp.status_code, elapsed, rid or "-")
        return resp

    @app.route("/health")
    def health_check():
        problems = []
        for name, store in app.extensions["media_stores"].items():
            try:
                os.makedirs(store.directory, exist_ok=True)
            except OSError as e:
                problems.append(f"{name}: {e}")
                continue
            if not os.access(store.directory, os.W_OK):
                problems.append(f"{name}: storage root is not writable")
        if problems:
            logger.error("Health check failed: %s", "; ".join(problems))
            return jsonify({"status": "error", "problems": problems}), 503
        return jsonify({"status": "ok", "stores": sorted(app.extensions["media_stores"])})


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not_found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "method_not_allowed"}), 405

    @app.errorhandler(413)
    def request_entity_too_large(e):
        limit = app.config["MAX_CONTENT_LENGTH"]
        return jsonify({"error": "request_too_large", "limit": limit}), 413

    @app.errorhandler(429)
    def rate_limit_exceeded(e):
        return jsonify({"error": "rate_limited"}), 429

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Internal server error")
        return jsonify({"error": "internal_error"}), 500


# ── Entry point ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    debug = os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1")
    port = int(os.environ.get("PORT", 5555))
    host = os.environ.get("HOST", "127.0.0.1")
    application = create_app()

    if debug:
        application.run(debug=True, host=host, port=port)
    else:
        from waitress import serve

        logger.info("Serving with waitress on http://%s:%s", host, port)
        serve(application, host=host, port=port, threads=8)
