"""
API Route Handlers for the Imposter game.

Control plane for operators: start or reset a room's game and read its
status, authorized by the shared admin secret.
Contains no business logic - only request/response handling.
"""

import hmac
import logging
from flask import jsonify, request

from game.models import ErrorKind

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_DISTRIBUTED: 409,
    ErrorKind.GAME_IN_PROGRESS: 409,
    ErrorKind.VOTING_IN_PROGRESS: 409,
}

def status_code_for(error) -> int:
    return ERROR_STATUS_CODES.get(error, 400)

def register_api_handlers(app, controller, admin_secret: str):
    """
    Register all API route handlers.

    Args:
        app: Flask application instance
        controller: GameSessionController instance
        admin_secret: Secret required by the control-plane endpoints
    """

    def secret_matches(supplied) -> bool:
        return hmac.compare_digest(str(supplied or ''), str(admin_secret))

    def read_request():
        payload = request.get_json(silent=True) or {}
        room_id = str(payload.get('room_id') or '').strip()
        return payload, room_id

    @app.route('/api/health')
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'Imposter game server is running',
            'active_sessions': controller.get_active_sessions_count()
        })

    @app.route('/api/distribute', methods=['POST'])
    def distribute_roles():
        """Start a game in a room and send everyone their role."""
        payload, room_id = read_request()
        if not secret_matches(payload.get('secret')):
            logger.warning("Rejected /api/distribute call with a bad secret")
            return jsonify({'error': 'Unauthorized'}), 401
        if not room_id:
            return jsonify({'error': 'Missing room_id'}), 400

        try:
            result = controller.start_game(room_id)
        except Exception as e:
            logger.error(f"Error distributing roles in room {room_id}: {e}")
            return jsonify({'error': 'Failed to distribute roles'}), 500

        if not result.success:
            return jsonify(result.to_dict()), status_code_for(result.error)
        return jsonify(result.to_dict())

    @app.route('/api/reset', methods=['POST'])
    def reset_room():
        """Hard reset of a room back to an empty lobby."""
        payload, room_id = read_request()
        if not secret_matches(payload.get('secret')):
            logger.warning("Rejected /api/reset call with a bad secret")
            return jsonify({'error': 'Unauthorized'}), 401
        if not room_id:
            return jsonify({'error': 'Missing room_id'}), 400

        try:
            result = controller.reset_session(room_id)
        except Exception as e:
            logger.error(f"Error resetting room {room_id}: {e}")
            return jsonify({'error': 'Failed to reset room'}), 500

        return jsonify(result.to_dict())

    @app.route('/api/status/<room_id>')
    def room_status(room_id):
        """Read-only status of a room's session."""
        if not secret_matches(request.args.get('secret')):
            return jsonify({'error': 'Unauthorized'}), 401

        status = controller.get_status(room_id)
        if status is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(status)

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        return jsonify({'error': 'Internal server error'}), 500

    logger.info("API handlers registered successfully")
