import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv

load_dotenv()

import config
from views.manga import manga_bp

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)
if config.CORS_ALLOW_ORIGINS:
    CORS(
        app,
        origins=config.CORS_ALLOW_ORIGINS,
        supports_credentials=config.CORS_SUPPORTS_CREDENTIALS,
    )
else:
    CORS(app)

app.register_blueprint(manga_bp)


@app.before_request
def log_request():
    app.logger.info("[req] %s %s", request.method, request.full_path.rstrip("?"))


@app.route("/favicon.ico")
def favicon():
    return "", 204


@app.route("/healthz", methods=["GET"])
def healthz():
    return {"status": "ok"}, 200


@app.errorhandler(404)
def page_not_found(_error):
    return jsonify({
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Page not found."}
    }), 404
