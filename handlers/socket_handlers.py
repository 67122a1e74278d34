"""
Socket.IO Event Handlers for the Imposter game.

Pure routing layer that delegates to the GameSessionController.
Contains no business logic - only event routing and response formatting.

Clients first send 'identify' with their user id; every later event
carries the chat it was issued from as {chat_id, is_private}. Private
chats all map to the shared global room.
"""

import logging
from typing import Callable, Dict, Optional
from flask import request
from flask_socketio import emit, join_room, leave_room

from game.collaborators import MembershipRole
from game.models import OperationResult, ErrorKind
from utils.helpers import get_effective_room_id, is_global_room
from .transport import user_channel, room_channel

logger = logging.getLogger(__name__)

def register_socket_handlers(socketio, controller, transport):
    """
    Register all Socket.IO event handlers.

    Args:
        socketio: SocketIO instance
        controller: GameSessionController instance
        transport: SocketIOTransport used by the controller
    """
    profiles: Dict[str, dict] = {}  # sid -> {user_id, display_name, username}

    def current_profile() -> Optional[dict]:
        profile = profiles.get(request.sid)
        if profile is None:
            emit('error', {'message': 'Identify first', 'error': ErrorKind.UNAUTHORIZED.value})
        return profile

    def resolve_room(data: dict) -> Optional[str]:
        is_private = bool(data.get('is_private', False))
        chat_id = data.get('chat_id')
        if not is_private and not chat_id:
            emit('error', {'message': 'Missing chat id', 'error': ErrorKind.NOT_FOUND.value})
            return None
        return get_effective_room_id(chat_id, is_private)

    def reply(event: str, result: OperationResult):
        payload = result.to_dict()
        if result.success:
            emit(event, payload)
        else:
            emit('error', payload)

    def run_command(event: str, data, action: Callable[[str, dict], OperationResult], failure: str):
        """Resolve identity and room, run the controller action and reply."""
        try:
            data = data or {}
            profile = current_profile()
            if profile is None:
                return
            room_id = resolve_room(data)
            if room_id is None:
                return
            reply(event, action(room_id, profile))
        except Exception as e:
            logger.error(f"Error handling {event}: {e}")
            emit('error', {'message': failure})

    @socketio.on('connect')
    def handle_connect():
        """Handle client connection."""
        logger.info(f"Client connected: {request.sid}")
        emit('connected', {'message': 'Connected to server successfully'})

    @socketio.on('disconnect')
    def handle_disconnect():
        """Handle client disconnection."""
        logger.info(f"Client disconnected: {request.sid}")
        profiles.pop(request.sid, None)
        transport.unregister_connection(request.sid)

    @socketio.on('identify')
    def handle_identify(data):
        """Bind this socket to a user so private messages can reach it."""
        data = data or {}
        user_id = str(data.get('user_id') or '').strip()
        if not user_id:
            emit('error', {'message': 'Missing user id'})
            return

        profiles[request.sid] = {
            'user_id': user_id,
            'display_name': data.get('display_name') or user_id,
            'username': data.get('username')
        }
        join_room(user_channel(user_id))
        transport.register_connection(user_id, request.sid)
        emit('identified', {'user_id': user_id})

    @socketio.on('open_chat')
    def handle_open_chat(data):
        """Subscribe to a group chat's room messages."""
        data = data or {}
        profile = current_profile()
        if profile is None:
            return
        room_id = resolve_room(data)
        if room_id is None:
            return

        if not is_global_room(room_id):
            join_room(room_channel(room_id))
        role = transport.register_member(room_id, profile['user_id'])
        emit('chat_opened', {'room_id': room_id, 'role': role.value})

    @socketio.on('close_chat')
    def handle_close_chat(data):
        """Unsubscribe from a group chat's room messages."""
        data = data or {}
        room_id = resolve_room(data)
        if room_id is None:
            return
        if not is_global_room(room_id):
            leave_room(room_channel(room_id))
        emit('chat_closed', {'room_id': room_id})

    @socketio.on('join')
    def handle_join(data):
        def action(room_id, profile):
            if not is_global_room(room_id):
                join_room(room_channel(room_id))
            transport.register_member(room_id, profile['user_id'])
            return controller.join(room_id, profile['user_id'], profile['display_name'], profile['username'])
        run_command('joined', data, action, 'Failed to join game')

    @socketio.on('leave')
    def handle_leave(data):
        run_command('left', data,
                    lambda room_id, profile: controller.leave(room_id, profile['user_id']),
                    'Failed to leave game')

    @socketio.on('remove_player')
    def handle_remove_player(data):
        target = str((data or {}).get('target') or '').strip()
        if not target:
            emit('error', {'message': 'Usage: remove_player {target: user id or @username}'})
            return
        run_command('player_removed', data,
                    lambda room_id, profile: controller.remove_player(room_id, profile['user_id'], target),
                    'Failed to remove player')

    @socketio.on('distribute')
    def handle_distribute(data):
        run_command('roles_distributed', data,
                    lambda room_id, profile: controller.distribute(room_id, profile['user_id']),
                    'Failed to start game')

    @socketio.on('start_vote')
    def handle_start_vote(data):
        run_command('vote_started', data,
                    lambda room_id, profile: controller.start_vote(room_id, profile['user_id']),
                    'Failed to start voting')

    @socketio.on('cast_vote')
    def handle_cast_vote(data):
        target = str((data or {}).get('target') or '').strip()
        if not target:
            emit('error', {'message': 'Missing vote target'})
            return
        run_command('vote_cast', data,
                    lambda room_id, profile: controller.cast_vote(room_id, profile['user_id'], target),
                    'Failed to cast vote')

    @socketio.on('close_vote')
    def handle_close_vote(data):
        run_command('vote_closed', data,
                    lambda room_id, profile: controller.close_vote(room_id, profile['user_id']),
                    'Failed to close voting')

    @socketio.on('end_game')
    def handle_end_game(data):
        run_command('game_ended', data,
                    lambda room_id, profile: controller.end(room_id, profile['user_id']),
                    'Failed to end game')

    @socketio.on('reset')
    def handle_reset(data):
        run_command('game_reset', data,
                    lambda room_id, profile: controller.reset(room_id, profile['user_id']),
                    'Failed to reset game')

    @socketio.on('promote')
    def handle_promote(data):
        secret = (data or {}).get('secret') or ''
        run_command('promoted', data,
                    lambda room_id, profile: controller.promote(room_id, profile['user_id'], secret),
                    'Failed to promote')

    @socketio.on('grant_admin')
    def handle_grant_admin(data):
        """Chat creator makes another member a chat administrator."""
        target = str((data or {}).get('target') or '').strip()
        if not target:
            emit('error', {'message': 'Usage: grant_admin {target: user id}'})
            return

        def action(room_id, profile):
            if is_global_room(room_id) or \
                    transport.get_membership_role(room_id, profile['user_id']) is not MembershipRole.CREATOR:
                return OperationResult.fail(ErrorKind.UNAUTHORIZED, "Only the chat creator can grant admin rights")
            if target == profile['user_id']:
                return OperationResult.fail(ErrorKind.INVALID_TARGET, "You already own this chat")
            if transport.get_membership_role(room_id, target) is MembershipRole.OTHER:
                return OperationResult.fail(ErrorKind.NOT_FOUND, "User is not a member of this chat")
            transport.grant_role(room_id, target, MembershipRole.ADMINISTRATOR)
            logger.info(f"User {target} made administrator of room {room_id}")
            return OperationResult.ok("Admin rights granted", user_id=target)
        run_command('admin_granted', data, action, 'Failed to grant admin rights')

    @socketio.on('update_settings')
    def handle_update_settings(data):
        data = data or {}

        def action(room_id, profile):
            try:
                vote_time = int(data['vote_time_seconds']) if data.get('vote_time_seconds') is not None else None
                min_players = int(data['min_players']) if data.get('min_players') is not None else None
            except (TypeError, ValueError):
                return OperationResult.fail(ErrorKind.INVALID_SETTING, "Settings must be numbers")
            online_mode = data.get('online_mode')
            return controller.update_settings(
                room_id, profile['user_id'],
                vote_time_seconds=vote_time,
                online_mode=bool(online_mode) if online_mode is not None else None,
                min_players=min_players
            )
        run_command('settings_updated', data, action, 'Failed to update settings')

    @socketio.on('set_group_link')
    def handle_set_group_link(data):
        link = str((data or {}).get('link') or '')
        run_command('group_link_updated', data,
                    lambda room_id, profile: controller.set_group_link(room_id, profile['user_id'], link),
                    'Failed to set group link')

    @socketio.on('reveal')
    def handle_reveal(data):
        run_command('revealed', data,
                    lambda room_id, profile: controller.reveal(room_id, profile['user_id']),
                    'Failed to reveal topic')

    @socketio.on('broadcast')
    def handle_broadcast(data):
        text = str((data or {}).get('text') or '')
        run_command('broadcast_sent', data,
                    lambda room_id, profile: controller.broadcast(
                        room_id, profile['user_id'], text, sender_name=profile['display_name']),
                    'Failed to send broadcast')

    @socketio.on('status')
    def handle_status(data):
        """Handle request for the room's game status."""
        data = data or {}
        room_id = resolve_room(data)
        if room_id is None:
            return
        try:
            status = controller.get_status(room_id)
            if status:
                emit('status', {'status': status})
            else:
                emit('error', {'message': 'No game in this chat', 'error': ErrorKind.NOT_FOUND.value})
        except Exception as e:
            logger.error(f"Error getting status: {e}")
            emit('error', {'message': 'Failed to get status'})

    logger.info("Socket handlers registered successfully")
