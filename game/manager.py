"""
Game Session Controller - Coordinator for game operations.

Drives each room's session through its lifecycle
(lobby -> prepared -> active -> voting <-> active -> ended, plus reset)
by coordinating the RoleAssignmentEngine, the VotingCoordinator, the
SessionRegistry and the chat transport.
"""

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from .collaborators import ChatTransport, MembershipRole
from .models import (
    Session, SessionSettings, Player, GameResult, OperationResult, ErrorKind
)
from .registry import SessionRegistry
from .roles import RoleAssignmentEngine
from .vote_manager import VotingCoordinator
from . import messages
from utils.constants import SETTINGS_LIMITS
from utils.helpers import is_global_room, sanitize_message, validate_group_link

logger = logging.getLogger(__name__)

@dataclass
class DeliveryReport:
    """Outcome of a best-effort fan-out."""
    delivered: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # recipient -> error

class GameSessionController:
    """
    Coordinates all game operations within rooms.

    Every operation returns an OperationResult. Collaborator failures
    (notifications, persistence, topic provider) are logged and never
    leave a session half-updated.
    """

    def __init__(self,
                 registry: SessionRegistry,
                 transport: ChatTransport,
                 admin_secret: str,
                 role_engine: Optional[RoleAssignmentEngine] = None,
                 voting: Optional[VotingCoordinator] = None):
        self.registry = registry
        self.transport = transport
        self.admin_secret = admin_secret
        self.role_engine = role_engine or RoleAssignmentEngine()
        self.voting = voting or VotingCoordinator()

    # ------------------------------------------------------------------
    # Admin roster
    # ------------------------------------------------------------------

    def is_admin(self, room_id: str, user_id: str) -> bool:
        """
        Check whether a user may run admin operations in a room.

        Promoted admins always qualify. In group rooms the chat's
        creator and administrators do too; the shared private lobby
        never grants admin through chat roles.
        """
        session = self.registry.get(room_id)
        if session is not None and user_id in session.promoted_admins:
            return True

        if is_global_room(room_id):
            return False

        try:
            role = self.transport.get_membership_role(room_id, user_id)
        except Exception as e:
            logger.error(f"Error checking admin status for {user_id} in room {room_id}: {e}")
            return False

        if role is MembershipRole.CREATOR or role is MembershipRole.ADMINISTRATOR:
            return True
        return False

    def promote(self, room_id: str, user_id: str, supplied_secret: str) -> OperationResult:
        """Grant admin rights to a user who knows the admin secret."""
        if not hmac.compare_digest(str(supplied_secret or ''), str(self.admin_secret)):
            logger.warning(f"Failed promotion attempt by {user_id} in room {room_id}")
            return OperationResult.fail(ErrorKind.UNAUTHORIZED, "Incorrect password")

        if self.is_admin(room_id, user_id):
            return OperationResult.ok("You're already an admin", already_admin=True)

        session = self.registry.get_or_create(room_id)
        session.promoted_admins.append(user_id)
        self.registry.save(session)

        logger.info(f"User {user_id} promoted to admin in room {room_id}")
        return OperationResult.ok("Promoted to admin", already_admin=False)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def join(self, room_id: str, player_id: str, display_name: str,
             username: Optional[str] = None) -> OperationResult:
        """
        Add a player to the room's lobby.

        Returns:
            OperationResult; data['already_joined'] is True when the
            player was in the lobby already
        """
        user_is_admin = self.is_admin(room_id, player_id)
        session = self.registry.get_or_create(room_id, owner_admin_id=player_id if user_is_admin else None)

        if user_is_admin and not session.owner_admin_id:
            session.owner_admin_id = player_id
            self.registry.save(session)

        if session.has_player(player_id):
            return OperationResult.ok(
                f"Already in lobby ({len(session.players)} players)",
                already_joined=True,
                total_players=len(session.players)
            )

        if session.started:
            return OperationResult.fail(ErrorKind.GAME_IN_PROGRESS, "Game already in progress")

        player = Player(id=player_id, display_name=display_name, username=username)
        session.add_player(player)
        self._announce(session, messages.joined_message(session, player.name))
        self.registry.save(session)

        logger.info(f"Player {player.name} joined room {room_id}")
        return OperationResult.ok(
            f"{player.name} joined the lobby",
            already_joined=False,
            player=player.to_dict(),
            total_players=len(session.players)
        )

    def leave(self, room_id: str, player_id: str) -> OperationResult:
        """Remove a player from the lobby at their own request."""
        session = self.registry.get(room_id)
        if session is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "No active lobby")

        return self._remove_from_lobby(session, player_id, removed_by_admin=False)

    def remove_player(self, room_id: str, actor_id: str, target: str) -> OperationResult:
        """Admin removal of a player, referenced by id or @username."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get(room_id)
        if session is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "No active lobby")

        if session.roles_distributed:
            return OperationResult.fail(ErrorKind.GAME_IN_PROGRESS, "Cannot remove players during active game")

        player = self._resolve_player(session, target)
        if player is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Player not found in lobby")

        return self._remove_from_lobby(session, player.id, removed_by_admin=True)

    def _remove_from_lobby(self, session: Session, player_id: str, removed_by_admin: bool) -> OperationResult:
        if session.roles_distributed:
            return OperationResult.fail(ErrorKind.GAME_IN_PROGRESS, "Cannot leave during active game")

        player = session.remove_player(player_id)
        if player is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Not in the lobby")

        if player_id in session.imposters:
            session.imposters.remove(player_id)

        self._announce(session, messages.left_message(session, player.name, removed_by_admin))
        self.registry.save(session)

        if session.settings.online_mode and not is_global_room(session.room_id):
            try:
                self.transport.ban_then_unban(session.room_id, player_id)
                logger.info(f"Player {player_id} removed from room {session.room_id} (online mode)")
            except Exception as e:
                logger.error(f"Failed to remove player {player_id} from room {session.room_id}: {e}")

        logger.info(f"Player {player.name} left room {session.room_id} (by admin: {removed_by_admin})")
        return OperationResult.ok(f"{player.name} left the lobby", total_players=len(session.players))

    # ------------------------------------------------------------------
    # Game start
    # ------------------------------------------------------------------

    def distribute(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: prepare the game and send everyone their role."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied
        return self.start_game(room_id)

    def start_game(self, room_id: str) -> OperationResult:
        """
        Prepare and distribute roles for a room.

        Callers are responsible for authorization (admin command or
        the control plane's shared secret).
        """
        session = self.registry.get_or_create(room_id)

        if len(session.players) < session.settings.min_players:
            return OperationResult.fail(
                ErrorKind.INSUFFICIENT_PLAYERS,
                f"Need at least {session.settings.min_players} players to start. Currently: {len(session.players)}",
                required=session.settings.min_players,
                current=len(session.players)
            )

        if session.roles_distributed:
            return OperationResult.fail(ErrorKind.ALREADY_DISTRIBUTED, "Roles already distributed. End the game first.")

        prepared = self.prepare_game(room_id)
        if not prepared.success:
            return prepared

        distributed = self.distribute_roles(room_id)
        if not distributed.success:
            return distributed

        self._announce(session, messages.game_started_message(len(session.players), len(session.imposters)))
        self.registry.save(session)

        return OperationResult.ok(
            "Roles distributed successfully",
            players=len(session.players),
            imposters=len(session.imposters),
            failed_deliveries=distributed.data['failed_deliveries']
        )

    def prepare_game(self, room_id: str) -> OperationResult:
        """Select imposters and topic, then mark the game started."""
        session = self.registry.get_or_create(room_id)

        if session.roles_distributed:
            return OperationResult.fail(ErrorKind.ALREADY_DISTRIBUTED, "Roles already distributed")

        result = self.role_engine.prepare(session.players, session.settings)
        if not result.success:
            return result

        assignment = result.data['assignment']
        for player in session.players:
            player.eliminated = False
        session.imposters = list(assignment.imposters)
        session.topic = assignment.topic
        session.voting_round = None
        session.started = True
        self.registry.save(session)

        logger.info(f"Game prepared in room {room_id}: {len(session.players)} players, "
                    f"{len(session.imposters)} imposters, topic source: {assignment.source}")
        return OperationResult.ok(
            "Game prepared",
            imposters=len(session.imposters),
            topic_source=assignment.source
        )

    def distribute_roles(self, room_id: str, group_link: Optional[str] = None) -> OperationResult:
        """
        Privately tell every player their role.

        Delivery is best effort: a failure for one player is logged and
        the remaining players still get their role.
        """
        session = self.registry.get(room_id)
        if session is None or not session.started:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "Game has not been prepared")

        if session.roles_distributed:
            return OperationResult.fail(ErrorKind.ALREADY_DISTRIBUTED, "Roles already distributed")

        link = None
        if session.settings.online_mode:
            link = group_link or session.custom_group_link
            if not link:
                logger.warning(f"Online mode in room {room_id} but no group link available")

        report = self._fan_out(
            [p.id for p in session.players],
            lambda player_id: messages.role_message(session.is_imposter(player_id), session.topic, link)
        )

        session.roles_distributed = True
        self.registry.save(session)

        logger.info(f"Distributed roles in room {room_id}: {len(report.delivered)} delivered, "
                    f"{len(report.failed)} failed")
        return OperationResult.ok(
            "Roles distributed",
            delivered=report.delivered,
            failed_deliveries=report.failed
        )

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    def start_vote(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: open a timed voting round."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get(room_id)
        if session is None:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "No active game")

        opened = self.voting.open_round(session)
        if not opened.success:
            return opened

        voting_round = opened.data['round']
        self.registry.save(session)

        ballot = messages.vote_started_message(session)
        self._announce(session, ballot)
        report = self._fan_out(messages.recipients(session), ballot)
        self.registry.save(session)

        round_id = voting_round.round_id
        self.voting.schedule_tally(
            session.settings.vote_time_seconds,
            lambda: self._on_vote_timer(room_id, round_id)
        )

        return OperationResult.ok(
            "Voting started",
            round_id=round_id,
            deadline=voting_round.deadline.isoformat(),
            candidates=[p.id for p in session.active_players],
            failed_deliveries=report.failed
        )

    def cast_vote(self, room_id: str, voter_id: str, target: str) -> OperationResult:
        """Record a ballot; target is a player id or @username."""
        session = self.registry.get(room_id)
        if session is None:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_VOTING, "No voting session is active")

        player = self._resolve_player(session, target)
        target_id = player.id if player else target

        result = self.voting.record_vote(session, voter_id, target_id)
        if result.success:
            self._announce(session, result.message)
            self.registry.save(session)
        return result

    def close_vote(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: tally the open round before its deadline."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied
        return self.tally(room_id)

    def tally(self, room_id: str, round_id: Optional[str] = None) -> OperationResult:
        """
        Close the open round, eliminate the most-voted player and check for a winner.

        Only the first call for a round does anything; later calls (or a
        timer left over from an earlier round) return NO_ACTIVE_VOTING
        without messaging anyone.
        """
        session = self.registry.get(room_id)
        if session is None:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_VOTING, "No voting session is active")

        closed = self.voting.close_round(session, round_id)
        if closed is None:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_VOTING, "Voting already closed")

        results = self.voting.calculate_results(session, closed)
        self.voting.apply_results(session, results)
        session.voting_round = None

        game_result = None
        if results.winner:
            game_result = self._finish_game(session, winner=results.winner)

        text = messages.vote_results_message(results, game_result)
        self._announce(session, text)
        self._fan_out(messages.recipients(session), text)
        self.registry.save(session)

        return OperationResult.ok(
            "Voting closed",
            results=results.to_dict(),
            game_result=game_result.to_dict() if game_result else None
        )

    def resume_rounds(self, now: Optional[datetime] = None) -> int:
        """
        Restart the tally timer for every round restored from storage.

        Rounds whose deadline passed while the server was down are
        tallied immediately; the rest are rescheduled for the time they
        have left.

        Returns:
            Number of rounds resumed
        """
        resumed = 0
        for room_id in self.registry.room_ids():
            session = self.registry.get(room_id)
            if session is None or not session.is_voting_active:
                continue

            voting_round = session.voting_round
            if voting_round.is_expired(now):
                logger.info(f"Round {voting_round.round_id} in room {room_id} expired during downtime")
                self._on_vote_timer(room_id, voting_round.round_id)
            else:
                remaining = voting_round.time_remaining(now)
                if remaining is None:
                    remaining = session.settings.vote_time_seconds
                self.voting.schedule_tally(
                    remaining,
                    lambda room_id=room_id, round_id=voting_round.round_id: self._on_vote_timer(room_id, round_id)
                )
                logger.info(f"Rescheduled round {voting_round.round_id} in room {room_id} ({remaining}s left)")
            resumed += 1
        return resumed

    def _on_vote_timer(self, room_id: str, round_id: str):
        try:
            result = self.tally(room_id, round_id)
            if not result.success:
                logger.debug(f"Vote timer for round {round_id} in room {room_id}: {result.message}")
        except Exception as e:
            logger.error(f"Failed to process vote results for room {room_id}: {e}")

    # ------------------------------------------------------------------
    # Game end
    # ------------------------------------------------------------------

    def end(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: reveal the topic and imposters and return to the lobby."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get(room_id)
        if session is None or not session.roles_distributed:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "No active game to end")

        game_result = self._finish_game(session, reason="Ended by admin")

        if session.settings.online_mode and not is_global_room(room_id):
            deleted = self.clear_tracked_messages(room_id)
            logger.info(f"Cleared {deleted} bot messages in room {room_id}")

        text = messages.game_over_message(game_result)
        self._announce(session, text)
        self._fan_out(messages.recipients(session), text)
        self.registry.save(session)

        logger.info(f"Game ended in room {room_id}")
        return OperationResult.ok("Game ended", game_result=game_result.to_dict())

    def _finish_game(self, session: Session, winner: Optional[str] = None,
                     reason: Optional[str] = None) -> GameResult:
        """Capture the reveal, then clear game fields (roster stays)."""
        result = GameResult(
            topic=session.topic,
            imposters=list(session.imposters),
            imposter_names=session.imposter_names(),
            total_players=len(session.players),
            winner=winner,
            reason=reason or f"{winner} win"
        )
        session.clear_game()
        logger.info(f"Game finished in room {session.room_id}: winner={winner}, topic={result.topic}")
        return result

    def reset(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: clear everything except settings and promoted admins."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied
        return self.reset_session(room_id, owner_admin_id=actor_id)

    def reset_session(self, room_id: str, owner_admin_id: Optional[str] = None) -> OperationResult:
        """Hard reset of a room back to an empty lobby."""
        old = self.registry.get(room_id)
        session = Session(room_id=room_id, owner_admin_id=owner_admin_id)
        if old is not None:
            session.settings = SessionSettings(**old.settings.to_dict())
            session.promoted_admins = list(old.promoted_admins)
            session.created_at = old.created_at

        self.registry.replace(session)
        self._announce(session, "Game reset! Players can join again.")
        self.registry.save(session)

        logger.info(f"Reset room {room_id}")
        return OperationResult.ok("Game reset successfully")

    # ------------------------------------------------------------------
    # Settings and admin tools
    # ------------------------------------------------------------------

    def update_settings(self, room_id: str, actor_id: str,
                        vote_time_seconds: Optional[int] = None,
                        online_mode: Optional[bool] = None,
                        min_players: Optional[int] = None) -> OperationResult:
        """Admin command: change a room's settings."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get_or_create(room_id)

        if vote_time_seconds is not None:
            if not SETTINGS_LIMITS['MIN_VOTE_TIME'] <= vote_time_seconds <= SETTINGS_LIMITS['MAX_VOTE_TIME']:
                return OperationResult.fail(
                    ErrorKind.INVALID_SETTING,
                    f"Invalid time. Use {SETTINGS_LIMITS['MIN_VOTE_TIME']}-{SETTINGS_LIMITS['MAX_VOTE_TIME']} seconds"
                )

        if min_players is not None:
            if session.started:
                return OperationResult.fail(ErrorKind.GAME_IN_PROGRESS, "Cannot change settings during game")
            if not SETTINGS_LIMITS['MIN_PLAYERS'] <= min_players <= SETTINGS_LIMITS['MAX_PLAYERS']:
                return OperationResult.fail(
                    ErrorKind.INVALID_SETTING,
                    f"Invalid number. Use {SETTINGS_LIMITS['MIN_PLAYERS']}-{SETTINGS_LIMITS['MAX_PLAYERS']}"
                )

        if vote_time_seconds is not None:
            session.settings.vote_time_seconds = vote_time_seconds
        if online_mode is not None:
            session.settings.online_mode = bool(online_mode)
        if min_players is not None:
            session.settings.min_players = min_players
        self.registry.save(session)

        logger.info(f"Updated settings in room {room_id}: {session.settings.to_dict()}")
        return OperationResult.ok("Settings updated", settings=session.settings.to_dict())

    def set_group_link(self, room_id: str, actor_id: str, link: str) -> OperationResult:
        """Admin command: set (or 'clear') the group link sent with roles in online mode."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get_or_create(room_id)

        if link and link.strip().lower() == 'clear':
            session.custom_group_link = None
            self.registry.save(session)
            return OperationResult.ok("Group link cleared", link=None)

        is_valid, error = validate_group_link((link or '').strip())
        if not is_valid:
            return OperationResult.fail(ErrorKind.INVALID_SETTING, error)

        session.custom_group_link = link.strip()
        self.registry.save(session)
        return OperationResult.ok("Group link set successfully", link=session.custom_group_link)

    def reveal(self, room_id: str, actor_id: str) -> OperationResult:
        """Admin command: privately send the topic to the requesting admin."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get(room_id)
        if session is None or not session.started:
            return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "No active game")

        report = self._fan_out([actor_id], messages.reveal_message(session))
        if report.failed:
            return OperationResult.ok("Could not send the topic privately", delivered=False)
        return OperationResult.ok("Topic sent to admin privately", delivered=True)

    def broadcast(self, room_id: str, actor_id: str, text: str,
                  sender_name: Optional[str] = None) -> OperationResult:
        """Admin command: send a message to every player privately."""
        denied = self._require_admin(room_id, actor_id)
        if denied:
            return denied

        session = self.registry.get(room_id)
        if session is None or not session.players:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "No players in lobby to message")

        clean = sanitize_message(text or '')
        if not clean:
            return OperationResult.fail(ErrorKind.INVALID_SETTING, "Please provide a message")

        report = self._fan_out(
            messages.recipients(session),
            messages.broadcast_message(sender_name or "Admin", clean)
        )

        message = f"Message sent to {len(report.delivered)} player(s)"
        if report.failed:
            message += f" ({len(report.failed)} failed)"
        logger.info(f"Admin {actor_id} broadcast to {len(report.delivered)} players in room {room_id}")
        return OperationResult.ok(message, sent=len(report.delivered), failed=len(report.failed))

    def clear_tracked_messages(self, room_id: str) -> int:
        """
        Delete every tracked bot message in a room.

        Returns:
            Number of messages deleted
        """
        session = self.registry.get(room_id)
        if session is None or not session.tracked_message_ids:
            return 0

        deleted_count = 0
        for message_id in list(session.tracked_message_ids):
            try:
                self.transport.delete_message(room_id, message_id)
                deleted_count += 1
            except Exception as e:
                logger.error(f"Failed to delete message {message_id} in room {room_id}: {e}")

        session.tracked_message_ids = []
        self.registry.save(session)
        return deleted_count

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self, room_id: str) -> Optional[Dict]:
        """Read-only status projection, or None for unknown rooms."""
        session = self.registry.get(room_id)
        if session is None:
            return None
        status = session.to_status()
        status['voting'] = self.voting.get_voting_status(session)
        return status

    def get_active_sessions_count(self) -> int:
        return self.registry.count()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_admin(self, room_id: str, actor_id: str) -> Optional[OperationResult]:
        if self.is_admin(room_id, actor_id):
            return None
        return OperationResult.fail(ErrorKind.UNAUTHORIZED, "Admin only command")

    def _resolve_player(self, session: Session, reference: str) -> Optional[Player]:
        reference = str(reference).strip()
        if reference.startswith('@'):
            return session.find_player_by_username(reference)
        return session.get_player(reference)

    def _announce(self, session: Session, text: str) -> Optional[str]:
        """
        Post to a group room and track the message for later deletion.

        The shared private lobby has no room to post to.
        """
        if is_global_room(session.room_id):
            return None
        try:
            message_id = self.transport.send_to_room(session.room_id, text)
        except Exception as e:
            logger.error(f"Failed to send message to room {session.room_id}: {e}")
            return None
        if message_id:
            session.tracked_message_ids.append(message_id)
        return message_id

    def _fan_out(self, recipient_ids: List[str], text: Union[str, Callable[[str], str]]) -> DeliveryReport:
        """Attempt delivery to every recipient; failures are collected, never raised."""
        report = DeliveryReport()
        for recipient_id in recipient_ids:
            body = text(recipient_id) if callable(text) else text
            try:
                self.transport.send_direct(recipient_id, body)
                report.delivered.append(recipient_id)
            except Exception as e:
                logger.error(f"Failed to send message to user {recipient_id}: {e}")
                report.failed[recipient_id] = str(e)
        return report
