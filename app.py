import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from catalog import OMDB_URL, OMDBClient
from database import create_review, db, list_reviews
from logger import configure_logging, logger

load_dotenv()


def error_response(err):
    return jsonify({"error": err.message, "kind": err.kind.value}), err.status_code


def create_app(test_config=None, catalog=None):
    """Build the Flask app.

    ``test_config`` overrides values read from the environment and
    ``catalog`` replaces the OMDb client (anything with ``search(keyword, page)``).
    """
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///reviews.db")
    app.config['OMDB_API_KEY'] = os.getenv("OMDB_API_KEY")
    app.config['OMDB_URL'] = os.getenv("OMDB_URL", OMDB_URL)
    app.config['OMDB_TIMEOUT'] = float(os.getenv("OMDB_TIMEOUT", "10"))
    app.config['LOG_LEVEL'] = os.getenv("LOG_LEVEL", "INFO")
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config['LOG_LEVEL'])

    if catalog is None:
        if not app.config['OMDB_API_KEY']:
            logger.warning("OMDB_API_KEY is not set; searches will be rejected upstream")
        catalog = OMDBClient(
            api_key=app.config['OMDB_API_KEY'],
            base_url=app.config['OMDB_URL'],
            timeout=app.config['OMDB_TIMEOUT'],
        )
    app.extensions['catalog'] = catalog

    db.init_app(app)

    # Schema is created on startup, no migrations
    with app.app_context():
        db.create_all()
        logger.info("Database & tables synced")

    register_routes(app)
    register_error_handlers(app)
    return app


def register_routes(app):

    @app.before_request
    def log_request():
        logger.info("{} {}", request.method, request.full_path.rstrip("?"))

    @app.route('/health')
    def health():
        try:
            with db.engine.connect() as connection:
                connection.execute(text('SELECT 1'))
        except SQLAlchemyError:
            logger.exception("Health check could not reach the database")
            return jsonify({"status": "unavailable"}), 503
        return jsonify({"status": "ok"}), 200

    # Query params: q = keyword (required), page = result page (default 1)
    @app.route('/api/search', methods=['GET'])
    def search():
        keyword = request.args.get("q")
        page = request.args.get("page") or 1

        result = app.extensions['catalog'].search(keyword, page)
        if not result.ok:
            return error_response(result)
        return jsonify(result.value), 200

    @app.route('/api/reviews', methods=['POST'])
    def add_review():
        # silent=True: a non-JSON body is treated as missing fields
        result = create_review(request.get_json(silent=True))
        if not result.ok:
            return error_response(result)
        return jsonify(result.value.to_dict()), 201

    @app.route('/api/reviews/<path:title>', methods=['GET'])
    def get_reviews(title):
        result = list_reviews(title)
        if not result.ok:
            return error_response(result)
        return jsonify([review.to_dict() for review in result.value]), 200


def register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.opt(exception=e).error("Unhandled error on {} {}", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500


if __name__ == '__main__':
    create_app().run(debug=True)
