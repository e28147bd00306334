"""
Quiz Party - Live party-quiz game server

A single shared game driven by a quiz master, played from phones and shown
on a public leaderboard. The package provides:
- Game state and phase transitions
- Scoring for bets, flat rounds, auctions, spotlight and poker rounds
- A serialised game session with player identities
- A JSON API for the master, player and leaderboard clients
"""

__version__ = "0.1.0"
