import logging

from flask import Blueprint, request, jsonify, current_app, abort

from media import InvalidPayload, PayloadTooLarge, StorageUnavailable

logger = logging.getLogger(__name__)

media_bp = Blueprint("media", __name__)


def _get_store(asset_class):
    store = current_app.extensions["media_stores"].get(asset_class)
    if store is None:
        abort(404)
    return store


@media_bp.route("/api/media/<asset_class>", methods=["POST"])
def upload_asset(asset_class):
    store = _get_store(asset_class)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    owner_id = data.get("owner_id")
    if owner_id is None or not str(owner_id).strip():
        return jsonify({"error": "owner_required", "message": "owner_id is required"}), 400

    previous = data.get("previous_path")
    if not isinstance(previous, str) or not previous:
        previous = None

    path = store.store(data.get("image"), owner_id, previous)
    return jsonify({"path": path}), 201


@media_bp.route("/api/media/<asset_class>", methods=["DELETE"])
def delete_asset(asset_class):
    store = _get_store(asset_class)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    path = data.get("path")
    if not isinstance(path, str) or not path:
        return jsonify({"error": "path_required", "message": "path is required"}), 400

    deleted = store.remove(path)
    return jsonify({"success": True, "deleted": deleted})


@media_bp.errorhandler(InvalidPayload)
def invalid_payload(e):
    return jsonify({
        "error": "invalid_image",
        "reason": e.reason,
        "message": "Send a PNG, JPG or WEBP image as a base64 data URL.",
    }), 400


@media_bp.errorhandler(PayloadTooLarge)
def payload_too_large(e):
    return jsonify({
        "error": "image_too_large",
        "limit": e.limit,
        "message": f"The image must be at most {e.limit // 1024} KB.",
    }), 413


@media_bp.errorhandler(StorageUnavailable)
def storage_unavailable(e):
    logger.error("Media storage failure: %s (path=%s)", e, e.path)
    return jsonify({"error": "storage_unavailable", "message": "Could not save the image."}), 500
