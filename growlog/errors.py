import logging
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError
from jwt.exceptions import PyJWTError
from werkzeug.exceptions import BadRequest, HTTPException, RequestEntityTooLarge

logger = logging.getLogger(__name__)


class GrowHasDependentPlants(Exception):
    """Raised when deleting a grow that still owns plants."""

    def __init__(self, grow_id, plant_count):
        self.grow_id = grow_id
        self.plant_count = plant_count
        super().__init__(f"Grow {grow_id} has {plant_count} dependent plant(s)")


def register_error_handlers(api):
    """Map every failure onto a ``{"error": ...}`` body.

    flask-restx checks handlers in registration order and prefers
    ``e.data`` over the handler's return value, so the HTTPException
    handler rewrites ``e.data`` in place.
    """

    @api.errorhandler(NoAuthorizationError)
    def handle_missing_token(error):
        return {'error': 'Access denied, token missing'}, 401

    @api.errorhandler(JWTExtendedException)
    def handle_jwt_error(error):
        return {'error': 'Invalid token'}, 401

    @api.errorhandler(PyJWTError)
    def handle_invalid_token(error):
        return {'error': 'Invalid token'}, 401

    @api.errorhandler(GrowHasDependentPlants)
    def handle_grow_has_plants(error):
        logger.info("Refused to delete grow %s: %s plant(s) attached", error.grow_id, error.plant_count)
        return {'error': 'Grow has dependent plants'}, 409

    @api.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error):
        return {'error': 'File too large'}, 413

    @api.errorhandler(HTTPException)
    def handle_http_error(error):
        data = getattr(error, 'data', None) or {}
        if 'error' not in data:
            if isinstance(error, BadRequest) and data.get('errors'):
                data = {'error': 'Invalid input', 'details': data['errors']}
            else:
                data = {'error': data.get('message') or error.description}
            error.data = data
        return data, error.code

    @api.errorhandler
    def handle_unexpected(error):
        logger.exception("Unhandled error: %s", error)
        return {'error': 'Something went wrong!'}, 500
