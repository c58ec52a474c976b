from routes.media import media_bp
from routes.uploads import register_upload_routes


def register_blueprints(app):
    app.register_blueprint(media_bp)
    register_upload_routes(app, app.extensions["media_stores"])
