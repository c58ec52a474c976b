import os

from flask import abort, send_from_directory

# Browsers may cache stored media; every update produces a new filename.
CACHE_MAX_AGE = 7 * 24 * 3600


def _make_view(store, prefix):
    def serve_upload(filename):
        absolute = store.resolve(f"{prefix}/{filename}")
        if absolute is None or not os.path.isfile(absolute):
            abort(404)
        return send_from_directory(
            os.path.dirname(absolute), os.path.basename(absolute), max_age=CACHE_MAX_AGE
        )

    return serve_upload


def register_upload_routes(app, stores):
    """Serve stored files under every prefix each asset class accepts."""
    for store in stores.values():
        for index, prefix in enumerate(store.config.accepted_prefixes):
            app.add_url_rule(
                f"{prefix}/<filename>",
                endpoint=f"uploads.{store.name}_{index}",
                view_func=_make_view(store, prefix),
                methods=["GET"],
            )
