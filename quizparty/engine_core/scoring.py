"""
Scoring - Pure point calculations for every round type.

Nothing here touches GameState; the reducer applies the deltas.

Modes:
- Flat: correct answers earn a fixed bonus, bets are ignored
- Bet: win or lose the stake, a zero bet earns a participation point
- Auction: highest bid wins and only the winner pays
- Poker: antes form a pot split evenly between correct answerers
- Spotlight: fixed deltas for the spotlighted player and correct predictors

Points may go negative in every mode.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Mapping

from ..config import GameConfig
from .state import Prediction


# =============================================================================
# Question rounds
# =============================================================================

def flat_points(correct: bool, config: GameConfig) -> int:
    """Points for a round played without betting."""
    return config.flat_bonus if correct else 0


def bet_points(correct: bool, bet: int, config: GameConfig) -> int:
    """Points for a betting round: +bet if correct, -bet if wrong."""
    if correct:
        return bet if bet > 0 else config.participation_bonus
    return -bet


def answer_points(
    correct: bool,
    bet: int | None,
    betting_enabled: bool,
    config: GameConfig,
) -> int:
    """Points for a graded answer under the current betting mode."""
    if not betting_enabled:
        return flat_points(correct, config)
    return bet_points(correct, bet or 0, config)


def bet_error(bet: int, points: int) -> str | None:
    """
    Check a stake against the betting policy.

    Stakes run from 0 to the player's balance and a stake of exactly 1
    is not allowed. Returns an error message, or None if the stake is valid.
    """
    if bet < 0:
        return "Bet cannot be negative"
    if bet == 1:
        return "Bet must be 0 or at least 2"
    if bet > max(points, 0):
        return f"Bet of {bet} exceeds balance of {points}"
    return None


def bid_error(bid: int, points: int) -> str | None:
    """Check an auction bid: 0 up to the player's balance."""
    if bid < 0:
        return "Bid cannot be negative"
    if bid > max(points, 0):
        return f"Bid of {bid} exceeds balance of {points}"
    return None


# =============================================================================
# Auction
# =============================================================================

@dataclass(frozen=True)
class AuctionBid:
    player_id: str
    bid: int
    points_at_bid: int


def resolve_auction(bids: Iterable[AuctionBid]) -> AuctionBid | None:
    """
    Pick the auction winner.

    Highest bid wins. Equal bids go to the bidder who had fewer points
    when bidding. Bids equal on both counts go to the first bidder in
    iteration order. A bid of 0 never wins.
    """
    winner: AuctionBid | None = None
    for bid in bids:
        if bid.bid <= 0:
            continue
        if winner is None or bid.bid > winner.bid:
            winner = bid
        elif bid.bid == winner.bid and bid.points_at_bid < winner.points_at_bid:
            winner = bid
    return winner


# =============================================================================
# Poker
# =============================================================================

def poker_ante(points: int, config: GameConfig) -> int:
    """
    Forced ante for a pot round.

    A percentage of the balance rounded half up, or the whole balance
    when it is below the all-in threshold. Empty or negative balances
    pay nothing.
    """
    if points <= 0:
        return 0
    if points < config.poker_all_in_below:
        return points
    return (points * config.poker_ante_percent + 50) // 100


def split_pot(pot: int, winner_count: int) -> tuple[int, int]:
    """Return (share per winner, undistributed remainder)."""
    if winner_count <= 0:
        return 0, pot
    share = pot // winner_count
    return share, pot - share * winner_count


# =============================================================================
# Spotlight
# =============================================================================

def spotlight_points(correct: bool, config: GameConfig) -> int:
    """Delta for the spotlighted player."""
    if correct:
        return config.spotlight_correct_points
    return -config.spotlight_wrong_penalty


def spotlight_rewards(
    correct: bool,
    predictions: Mapping[str, Prediction],
    config: GameConfig,
) -> dict[str, int]:
    """Points for each predictor who called the outcome. Others get nothing."""
    outcome = Prediction.from_outcome(correct)
    return {
        player_id: config.spotlight_prediction_points
        for player_id, prediction in predictions.items()
        if prediction == outcome
    }
