"""
Session Module - The single live quiz.

A session holds the shared game for the lifetime of the process:
- Created when the server starts
- Applies quiz master and player commands one at a time
- Hands out snapshots to polling clients
- Wiped by reset-game

Sessions are EPHEMERAL: nothing is written to disk.
"""

from .manager import GameSession, generate_player_id

__all__ = [
    "GameSession",
    "generate_player_id",
]
