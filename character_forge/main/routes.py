from flask import current_app, jsonify, url_for

from . import bp


@bp.route("/")
def index():
    return jsonify(
        {
            "service": current_app.config["APP_TITLE"],
            "endpoints": {
                "fix_json": url_for("api.fix_json"),
                "generate_character": url_for("api.generate_character"),
                "refine_character": url_for("api.refine_character"),
                "process_files": url_for("api.process_files"),
                "build_character": url_for("api.build_character"),
                "backups": url_for("api.backups"),
            },
        }
    )
