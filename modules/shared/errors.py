# File path: modules/shared/errors.py

import logging

from flask import jsonify

from database.models import db

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base for failures the services hand back to the routing layer."""

    status_code = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        out = {"success": False, "error": self.message, "kind": type(self).__name__}
        if self.details:
            out["details"] = self.details
        return out


class NotFoundError(DomainError):
    status_code = 404


class ValidationError(DomainError):
    status_code = 400


class ExpiredError(DomainError):
    status_code = 410


class ConflictError(DomainError):
    status_code = 409


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(err):
        # anything flushed before the failure must not leak into the next request
        db.session.rollback()
        logger.info("%s: %s", type(err).__name__, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(404)
    def handle_not_found(_err):
        return jsonify({"success": False, "error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(_err):
        return jsonify({"success": False, "error": "Method not allowed"}), 405
