"""
Notification texts sent by the game controller.
"""

from typing import List, Optional

from .models import Session, VoteResults, GameResult
from utils.constants import WINNER_TYPES
from utils.helpers import format_time_duration, calculate_imposter_count

def player_list(session: Session) -> str:
    if not session.players:
        return "No players in lobby"
    return "\n".join(f"{i}. {p.name}" for i, p in enumerate(session.players, start=1))

def joined_message(session: Session, player_name: str) -> str:
    total = len(session.players)
    minimum = session.settings.min_players
    lines = [
        f"{player_name} joined the lobby!",
        f"Players: {total}",
        f"Imposters will be: {calculate_imposter_count(total)}",
        f"Minimum players to start: {minimum}",
        "",
        player_list(session)
    ]
    if total < minimum:
        lines.append(f"\nNeed {minimum - total} more player(s)")
    return "\n".join(lines)

def left_message(session: Session, player_name: str, removed_by_admin: bool = False) -> str:
    verb = "was removed from the lobby by admin" if removed_by_admin else "left the lobby"
    total = len(session.players)
    text = f"{player_name} {verb}\n\nPlayers remaining: {total}"
    if total:
        text += f"\nImposters will be: {calculate_imposter_count(total)}\n\n{player_list(session)}"
    return text

def role_message(is_imposter: bool, topic: str, group_link: Optional[str] = None) -> str:
    if is_imposter:
        text = "You're an imposter\n\nYour goal: blend in without knowing the topic!"
    else:
        text = f"You're not an imposter\n\nYour topic: {topic}\n\nDiscuss the topic to find the imposters!"
    if group_link:
        text += f"\n\nGroup chat link:\n{group_link}"
    return text

def game_started_message(total_players: int, imposter_count: int) -> str:
    return (
        f"Game started!\n\n"
        f"Total players: {total_players}\n"
        f"Imposters: {imposter_count}\n\n"
        f"Roles have been sent to all players privately."
    )

def vote_started_message(session: Session) -> str:
    ballot = "\n".join(f"/vote {p.id} - {p.name}" for p in session.active_players)
    duration = format_time_duration(session.settings.vote_time_seconds)
    return f"Voting started!\n\nYou have {duration} to vote.\n\n{ballot}"

def vote_results_message(results: VoteResults, game_result: Optional[GameResult] = None) -> str:
    if results.eliminated_id is None:
        return "Voting ended with no votes. No one was eliminated."

    lines = [f"{results.eliminated_name} received {results.max_votes} vote(s) and has been eliminated!"]
    if results.was_imposter:
        lines.append(f"{results.eliminated_name} WAS an imposter!")
    else:
        lines.append(f"{results.eliminated_name} was NOT an imposter!")

    if game_result is not None:
        lines.append("")
        lines.append(game_over_message(game_result))
    else:
        lines.append(
            f"\nRemaining: {results.remaining_innocents} innocent player(s), "
            f"{results.remaining_imposters} imposter(s)\n"
            f"Admin can start another vote."
        )
    return "\n".join(lines)

def game_over_message(result: GameResult) -> str:
    if result.winner == WINNER_TYPES['INNOCENTS']:
        header = "INNOCENTS WIN! All imposters have been eliminated!"
    elif result.winner == WINNER_TYPES['IMPOSTERS']:
        header = "IMPOSTERS WIN! Imposters equal or outnumber innocents!"
    else:
        header = "Game ended"
    return (
        f"{header}\n\n"
        f"Topic: {result.topic}\n"
        f"Imposters were: {', '.join(result.imposter_names)}\n"
        f"Total players: {result.total_players}\n"
        f"Total imposters: {len(result.imposters)}"
    )

def reveal_message(session: Session) -> str:
    return f"Game info (admin)\n\nTopic: {session.topic}\nImposters: {len(session.imposters)}"

def broadcast_message(sender_name: str, text: str) -> str:
    return f"Message from {sender_name}:\n\n{text}"

def recipients(session: Session) -> List[str]:
    return [p.id for p in session.players]
