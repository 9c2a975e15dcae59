# couponstack/errors.py
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from .extensions import db
from .utils.api import api_error
from .utils.logging import get_logger

logger = get_logger(__name__)

class ConflictError(Exception):
    """The request collides with existing data (e.g. a duplicate coupon code)."""

class NotFoundError(LookupError):
    pass

def register_error_handlers(app):
    @app.errorhandler(ValueError)
    def handle_value_error(e):
        db.session.rollback()
        r = jsonify(api_error(str(e)))
        r.status_code = 422
        return r

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        db.session.rollback()
        r = jsonify(api_error(str(e.args[0]) if e.args else "not found"))
        r.status_code = 404
        return r

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        db.session.rollback()
        r = jsonify(api_error(str(e)))
        r.status_code = 409
        return r

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        db.session.rollback()
        logger.exception("database_error", error=str(e))
        r = jsonify(api_error("database error"))
        r.status_code = 500
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        r = jsonify(api_error(e.description or e.name))
        r.status_code = e.code or 500
        return r
