"""
Voting Coordinator for the Imposter game.

Handles the voting round: opening it, recording ballots, closing it
exactly once and counting the results. Contains no messaging - the
session controller announces outcomes.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .models import (
    Session, VotingRound, VoteResults, OperationResult, ErrorKind, utc_now
)
from utils.constants import WINNER_TYPES

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]

def thread_scheduler(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    """Run callback once after delay_seconds on a daemon timer thread."""
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer

class VotingCoordinator:
    """
    Manages voting rounds and vote counting.

    At most one round is open per session. Closing a round flips
    ``active`` to False under a lock; only the first caller gets the
    round back, so a timer and a manual close never both tally it.
    """

    def __init__(self, scheduler: Optional[Scheduler] = None):
        """
        Initialize the coordinator.

        Args:
            scheduler: callable(delay_seconds, callback) used for the
                automatic tally (defaults to a threading.Timer)
        """
        self.scheduler = scheduler or thread_scheduler
        self._lock = threading.Lock()
        logger.debug("Voting coordinator initialized")

    def open_round(self, session: Session, now: Optional[datetime] = None) -> OperationResult:
        """
        Open a new voting round for a session.

        Returns:
            OperationResult with the VotingRound under data['round']
        """
        with self._lock:
            if not session.roles_distributed:
                return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "No active game")

            if session.is_voting_active:
                return OperationResult.fail(ErrorKind.VOTING_IN_PROGRESS, "Voting is already in progress")

            if not session.active_players:
                return OperationResult.fail(ErrorKind.NO_ACTIVE_GAME, "No players left to vote for")

            started_at = now or utc_now()
            voting_round = VotingRound(
                started_at=started_at,
                deadline=started_at + timedelta(seconds=session.settings.vote_time_seconds)
            )
            session.voting_round = voting_round

        logger.info(f"Opened voting round {voting_round.round_id} in room {session.room_id} "
                    f"with {len(session.active_players)} eligible players")
        return OperationResult.ok("Voting started", round=voting_round)

    def record_vote(self, session: Session, voter_id: str, target_id: str,
                    now: Optional[datetime] = None) -> OperationResult:
        """
        Record a ballot. A later ballot from the same voter replaces the earlier one.

        Ballots arriving at or after the round's deadline are rejected even
        if the tally has not run yet.
        """
        with self._lock:
            voting_round = session.voting_round
            if voting_round is None or not voting_round.active:
                return OperationResult.fail(ErrorKind.NO_ACTIVE_VOTING, "No voting session is active")
            if voting_round.is_expired(now):
                return OperationResult.fail(ErrorKind.NO_ACTIVE_VOTING, "Voting time is over")

            voter = session.get_player(voter_id)
            if voter is None:
                return OperationResult.fail(ErrorKind.INELIGIBLE, "You're not in this game")
            if voter.eliminated:
                return OperationResult.fail(ErrorKind.INELIGIBLE, "Eliminated players cannot vote")

            target = session.get_player(target_id)
            if target is None or target.eliminated:
                return OperationResult.fail(ErrorKind.INVALID_TARGET, "Player not found or already eliminated")

            previous = voting_round.votes.get(voter_id)
            voting_round.votes[voter_id] = target_id

        if previous and previous != target_id:
            logger.info(f"Changed vote in room {session.room_id}: {voter_id} from {previous} to {target_id}")
        else:
            logger.info(f"Recorded vote in room {session.room_id}: {voter_id} -> {target_id}")

        return OperationResult.ok(
            f"{voter.name} voted for {target.name}",
            voter_id=voter_id,
            target_id=target_id,
            changed=previous is not None and previous != target_id
        )

    def close_round(self, session: Session, round_id: Optional[str] = None) -> Optional[VotingRound]:
        """
        Close the session's open round.

        Args:
            session: Session whose round to close
            round_id: Only close if the open round has this id

        Returns:
            The closed round for the first caller, None otherwise
        """
        with self._lock:
            voting_round = session.voting_round
            if voting_round is None or not voting_round.active:
                return None
            if round_id is not None and voting_round.round_id != round_id:
                logger.debug(f"Ignoring close for stale round {round_id} in room {session.room_id}")
                return None
            voting_round.active = False
            return voting_round

    def calculate_results(self, session: Session, voting_round: VotingRound) -> VoteResults:
        """
        Count ballots and pick the player to eliminate.

        Ties go to the tied player who joined first. No ballots means
        no elimination.
        """
        vote_counts = voting_round.vote_counts()
        total_votes = len(voting_round.votes)

        if not vote_counts:
            return VoteResults(round_id=voting_round.round_id, total_votes=0)

        max_votes = max(vote_counts.values())
        tied_players = [p.id for p in session.players if vote_counts.get(p.id, 0) == max_votes]

        return VoteResults(
            round_id=voting_round.round_id,
            vote_counts=vote_counts,
            eliminated_id=tied_players[0],
            max_votes=max_votes,
            tied_players=tied_players,
            is_tie=len(tied_players) > 1,
            total_votes=total_votes
        )

    def apply_results(self, session: Session, results: VoteResults) -> VoteResults:
        """Eliminate the chosen player, then evaluate the win condition."""
        if results.eliminated_id is not None:
            player = session.get_player(results.eliminated_id)
            if player is not None:
                player.eliminated = True
                results.eliminated_name = player.name
                results.was_imposter = session.is_imposter(player.id)
                results.winner = self.evaluate_winner(session)

        results.remaining_imposters, results.remaining_innocents = session.remaining_counts()
        logger.info(f"Tallied round {results.round_id} in room {session.room_id}: "
                    f"{results.total_votes} votes, eliminated: {results.eliminated_id}, winner: {results.winner}")
        return results

    def evaluate_winner(self, session: Session) -> Optional[str]:
        """
        Check the win condition over non-eliminated players.

        Returns:
            'innocents', 'imposters' or None while the game continues
        """
        remaining_imposters, remaining_innocents = session.remaining_counts()
        if remaining_imposters == 0:
            return WINNER_TYPES['INNOCENTS']
        if remaining_imposters >= remaining_innocents:
            return WINNER_TYPES['IMPOSTERS']
        return None

    def schedule_tally(self, delay_seconds: float, callback: Callable[[], None]) -> Any:
        """Schedule the automatic tally for a round."""
        return self.scheduler(delay_seconds, callback)

    def get_voting_status(self, session: Session) -> Dict[str, Any]:
        """
        Get current status of the session's voting round.

        Returns:
            Status information dictionary
        """
        voting_round = session.voting_round
        total_eligible = len(session.active_players)
        if voting_round is None:
            return {'active': False, 'votes_cast': 0, 'total_eligible': total_eligible}

        return {
            'active': voting_round.active,
            'round_id': voting_round.round_id,
            'votes_cast': len(voting_round.votes),
            'total_eligible': total_eligible,
            'time_remaining_seconds': voting_round.time_remaining(),
            'voters_who_voted': list(voting_round.votes.keys())
        }
