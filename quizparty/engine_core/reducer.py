"""
Reducer - Applies commands to the game state.

The reducer is the single point of state mutation.
All state changes must go through Reducer.apply().

Design principles:
- Validates the command against the phase table before applying
- Works on a clone; the caller's state is never touched
- Returns CommandResult with success/failure
- Delegates point arithmetic to the scoring module
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging

from ..config import GameConfig
from ..errors import ErrorCode
from .state import (
    GameState, GamePhase, Player, Prediction,
    AuctionWinner, SpotlightResult, PokerResult, PokerWinner,
)
from .action import Command, CommandType, CommandResult
from . import scoring


logger = logging.getLogger(__name__)

ALL_PHASES = frozenset(GamePhase)
ANSWERING_PHASES = frozenset(phase for phase in GamePhase if phase.is_answering)

# Phases in which each command may be issued. Anything else is rejected.
PHASE_RULES: dict[CommandType, frozenset[GamePhase]] = {
    CommandType.START_QUIZ: frozenset({GamePhase.REGISTRATION}),
    CommandType.ADVANCE_TO_ANSWERING: frozenset({GamePhase.BETTING}),
    CommandType.SHOW_RESULTS: frozenset({GamePhase.ANSWERING}),
    CommandType.NEXT_ROUND: frozenset({GamePhase.RESULTS, GamePhase.AUCTION_RESULTS}),
    CommandType.START_AUCTION: frozenset({GamePhase.RESULTS, GamePhase.AUCTION_RESULTS}),
    CommandType.END_AUCTION: frozenset({GamePhase.AUCTION}),
    CommandType.START_SPOTLIGHT: frozenset({GamePhase.RESULTS}),
    CommandType.GRADE_SPOTLIGHT: frozenset({GamePhase.SPOTLIGHT}),
    CommandType.START_POKER: frozenset({GamePhase.RESULTS}),
    CommandType.POKER_TO_ANSWERING: frozenset({GamePhase.POKER}),
    CommandType.SHOW_POKER_RESULTS: frozenset({GamePhase.POKER_ANSWERING}),
    CommandType.END_GAME: frozenset({
        GamePhase.BETTING,
        GamePhase.ANSWERING,
        GamePhase.RESULTS,
        GamePhase.AUCTION,
        GamePhase.AUCTION_RESULTS,
    }),
    CommandType.RESET_GAME: ALL_PHASES,
    CommandType.TOGGLE_BETTING: frozenset({
        GamePhase.REGISTRATION,
        GamePhase.BETTING,
        GamePhase.RESULTS,
        GamePhase.AUCTION_RESULTS,
        GamePhase.LEADERBOARD,
    }),
    CommandType.LOCK_ANSWERING: ANSWERING_PHASES,
    CommandType.MARK_ANSWER: ANSWERING_PHASES,
    CommandType.UNDO_GRADING: ANSWERING_PHASES,
    CommandType.ADJUST_SCORE: ALL_PHASES,
    CommandType.REMOVE_PLAYER: ALL_PHASES,
    CommandType.REGISTER: ALL_PHASES,
    CommandType.SUBMIT_BET: frozenset({GamePhase.BETTING, GamePhase.AUCTION}),
    CommandType.SUBMIT_ANSWER: ANSWERING_PHASES,
    CommandType.LOG_FOCUS_LOSS: ALL_PHASES,
    CommandType.SUBMIT_PREDICTION: frozenset({GamePhase.SPOTLIGHT}),
}

MAX_NAME_LENGTH = 50

Handler = Callable[[GameState, Command], CommandResult]


def is_allowed(phase: GamePhase, command_type: CommandType) -> bool:
    """Check the phase table."""
    return phase in PHASE_RULES.get(command_type, frozenset())


def _not_found(player_id: str | None) -> CommandResult:
    return CommandResult.failure(
        f"Player {player_id} not found",
        error_code=ErrorCode.PLAYER_NOT_FOUND.value,
    )


def _invalid(message: str) -> CommandResult:
    return CommandResult.failure(message, error_code=ErrorCode.VALIDATION_ERROR.value)


def _rejected(message: str) -> CommandResult:
    return CommandResult.failure(message, error_code=ErrorCode.INVALID_COMMAND.value)


@dataclass
class Reducer:
    """
    Reducer applies commands to game state.

    Stateless - all state is in GameState.
    Config provides the scoring constants.
    """
    config: GameConfig

    def apply(self, state: GameState, command: Command) -> CommandResult:
        """
        Apply a command to the game state.

        Returns CommandResult with new state or error.
        """
        validation_error = self._validate_command(state, command)
        if validation_error:
            return _rejected(validation_error)

        handler = self._get_handler(command.command_type)
        if not handler:
            return CommandResult.failure(
                f"No handler for command type: {command.command_type.value}",
                error_code=ErrorCode.INTERNAL_ERROR.value,
            )

        try:
            return handler(state.clone(), command)
        except Exception as e:
            logger.exception("[command-error] type=%s", command.command_type.value)
            return CommandResult.failure(str(e), error_code=ErrorCode.INTERNAL_ERROR.value)

    def _validate_command(self, state: GameState, command: Command) -> str | None:
        """
        Validate that a command is legal in the current phase.

        Returns error message if invalid, None if valid.
        """
        if not is_allowed(state.phase, command.command_type):
            return (
                f"Cannot {command.command_type.value} during "
                f"{state.phase.value} phase"
            )
        return None

    def _get_handler(self, command_type: CommandType) -> Handler | None:
        """Get the handler function for a command type."""
        handlers = {
            CommandType.START_QUIZ: self._handle_start_quiz,
            CommandType.ADVANCE_TO_ANSWERING: self._handle_advance_to_answering,
            CommandType.SHOW_RESULTS: self._handle_show_results,
            CommandType.NEXT_ROUND: self._handle_next_round,
            CommandType.START_AUCTION: self._handle_start_auction,
            CommandType.END_AUCTION: self._handle_end_auction,
            CommandType.START_SPOTLIGHT: self._handle_start_spotlight,
            CommandType.GRADE_SPOTLIGHT: self._handle_grade_spotlight,
            CommandType.START_POKER: self._handle_start_poker,
            CommandType.POKER_TO_ANSWERING: self._handle_poker_to_answering,
            CommandType.SHOW_POKER_RESULTS: self._handle_show_poker_results,
            CommandType.END_GAME: self._handle_end_game,
            CommandType.RESET_GAME: self._handle_reset_game,
            CommandType.TOGGLE_BETTING: self._handle_toggle_betting,
            CommandType.LOCK_ANSWERING: self._handle_lock_answering,
            CommandType.MARK_ANSWER: self._handle_mark_answer,
            CommandType.UNDO_GRADING: self._handle_undo_grading,
            CommandType.ADJUST_SCORE: self._handle_adjust_score,
            CommandType.REMOVE_PLAYER: self._handle_remove_player,
            CommandType.REGISTER: self._handle_register,
            CommandType.SUBMIT_BET: self._handle_submit_bet,
            CommandType.SUBMIT_ANSWER: self._handle_submit_answer,
            CommandType.LOG_FOCUS_LOSS: self._handle_log_focus_loss,
            CommandType.SUBMIT_PREDICTION: self._handle_submit_prediction,
        }
        return handlers.get(command_type)

    # =========================================================================
    # Round flow
    # =========================================================================

    def _open_round(self, state: GameState, command: Command) -> None:
        """Enter betting or answering, depending on the betting toggle."""
        if state.betting_enabled:
            state.phase = GamePhase.BETTING
        else:
            self._open_answering(state, command, GamePhase.ANSWERING)

    def _open_answering(self, state: GameState, command: Command, phase: GamePhase) -> None:
        state.phase = phase
        state.answering_locked = False
        state.answering_started_at = command.payload.timestamp

    def _handle_start_quiz(self, state: GameState, command: Command) -> CommandResult:
        state.clear_round()
        state.current_round = 1
        self._open_round(state, command)
        return CommandResult.success_with_state(state, [f"Quiz started in {state.phase.value}"])

    def _handle_next_round(self, state: GameState, command: Command) -> CommandResult:
        state.clear_round()
        state.current_round += 1
        self._open_round(state, command)
        return CommandResult.success_with_state(
            state, [f"Round {state.current_round} opened in {state.phase.value}"]
        )

    def _handle_advance_to_answering(self, state: GameState, command: Command) -> CommandResult:
        self._open_answering(state, command, GamePhase.ANSWERING)
        return CommandResult.success_with_state(state, ["Answering opened"])

    def _handle_show_results(self, state: GameState, command: Command) -> CommandResult:
        """Charge players who bet but never answered, then show results."""
        changes = []
        for player_id, player in state.players.items():
            entry = state.get_entry(player_id)
            if not entry or not entry.has_bet or entry.has_answer or entry.graded:
                continue
            delta = -entry.bet
            player.points += delta
            entry.graded = True
            entry.correct = False
            entry.points_change = delta
            changes.append(f"{player.name} did not answer ({delta:+d})")

        state.phase = GamePhase.RESULTS
        state.answering_locked = False
        return CommandResult.success_with_state(state, changes)

    def _handle_end_game(self, state: GameState, command: Command) -> CommandResult:
        state.phase = GamePhase.LEADERBOARD
        return CommandResult.success_with_state(state, ["Game over"])

    def _handle_reset_game(self, state: GameState, command: Command) -> CommandResult:
        """Wipe everything except the betting toggle."""
        fresh = GameState(betting_enabled=state.betting_enabled)
        return CommandResult.success_with_state(fresh, ["Game reset"])

    # =========================================================================
    # Auction
    # =========================================================================

    def _handle_start_auction(self, state: GameState, command: Command) -> CommandResult:
        state.clear_round()
        state.phase = GamePhase.AUCTION
        return CommandResult.success_with_state(state, ["Auction opened"])

    def _handle_end_auction(self, state: GameState, command: Command) -> CommandResult:
        bids = []
        for player_id, player in state.players.items():
            entry = state.get_entry(player_id)
            if not entry or not entry.has_bet:
                continue
            points_at_bid = entry.points_at_bid if entry.points_at_bid is not None else player.points
            bids.append(scoring.AuctionBid(player_id, entry.bet, points_at_bid))

        state.auction_winner = None
        state.phase = GamePhase.AUCTION_RESULTS

        winning = scoring.resolve_auction(bids)
        if winning is None:
            logger.info("[auction] no winning bid among %d bids", len(bids))
            return CommandResult.success_with_state(state, ["Auction closed without a winner"])

        winner = state.players[winning.player_id]
        winner.points -= winning.bid
        state.answers[winning.player_id].points_change = -winning.bid
        state.auction_winner = AuctionWinner(id=winning.player_id, name=winner.name, bid=winning.bid)
        logger.info("[auction] winner=%s bid=%d bids=%d", winning.player_id, winning.bid, len(bids))
        return CommandResult.success_with_state(
            state, [f"{winner.name} won the auction for {winning.bid}"]
        )

    # =========================================================================
    # Spotlight
    # =========================================================================

    def _handle_start_spotlight(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)

        state.spotlight_player_id = player_id
        state.spotlight_predictions = {}
        state.spotlight_result = None
        state.phase = GamePhase.SPOTLIGHT
        return CommandResult.success_with_state(state, [f"{player.name} in the spotlight"])

    def _handle_grade_spotlight(self, state: GameState, command: Command) -> CommandResult:
        correct = command.payload.correct
        if correct is None:
            return _invalid("Spotlight grading needs 'correct'")

        player_id = state.spotlight_player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _rejected("No player in the spotlight")

        delta = scoring.spotlight_points(correct, self.config)
        player.points += delta

        rewards = scoring.spotlight_rewards(correct, state.spotlight_predictions, self.config)
        for rewarded_id, points in rewards.items():
            rewarded = state.get_player(rewarded_id)
            if rewarded:
                rewarded.points += points

        state.spotlight_result = SpotlightResult(
            player_id=player_id,
            player_name=player.name,
            correct=correct,
            points_change=delta,
            predictions=dict(state.spotlight_predictions),
            rewarded_player_ids=list(rewards),
        )
        state.clear_spotlight()
        state.phase = GamePhase.RESULTS
        logger.info(
            "[spotlight] player=%s correct=%s delta=%d rewarded=%d",
            player_id, correct, delta, len(rewards),
        )
        return CommandResult.success_with_state(state, [f"{player.name} spotlight {delta:+d}"])

    # =========================================================================
    # Poker
    # =========================================================================

    def _handle_start_poker(self, state: GameState, command: Command) -> CommandResult:
        """Collect every player's ante into the pot."""
        state.clear_round()
        for player_id, player in state.players.items():
            ante = scoring.poker_ante(player.points, self.config)
            player.points -= ante
            state.poker_bets[player_id] = ante
        state.poker_pot = sum(state.poker_bets.values())
        state.phase = GamePhase.POKER
        logger.info("[poker] pot=%d players=%d", state.poker_pot, len(state.poker_bets))
        return CommandResult.success_with_state(state, [f"Pot of {state.poker_pot} collected"])

    def _handle_poker_to_answering(self, state: GameState, command: Command) -> CommandResult:
        self._open_answering(state, command, GamePhase.POKER_ANSWERING)
        return CommandResult.success_with_state(state, ["Poker answering opened"])

    def _handle_show_poker_results(self, state: GameState, command: Command) -> CommandResult:
        """Grade stragglers wrong and split the pot between correct answerers."""
        for player_id in state.players:
            entry = state.ensure_entry(player_id)
            if not entry.graded:
                entry.graded = True
                entry.correct = False

        # Players who joined after the antes were collected have no stake in the pot
        winner_ids = [
            pid for pid in state.players
            if state.answers[pid].correct and pid in state.poker_bets
        ]
        loser_ids = [pid for pid in state.players if pid not in winner_ids]
        pot = state.poker_pot
        share, remainder = scoring.split_pot(pot, len(winner_ids))

        winners = []
        for player_id in winner_ids:
            player = state.players[player_id]
            entry = state.answers[player_id]
            player.points += share
            entry.poker_winnings = share
            entry.points_change = share - state.poker_bets.get(player_id, 0)
            winners.append(PokerWinner(id=player_id, name=player.name, winnings=share))

        for player_id in loser_ids:
            entry = state.answers[player_id]
            ante = state.poker_bets.get(player_id, 0)
            entry.poker_loss = ante
            entry.points_change = -ante

        state.poker_result = PokerResult(
            pot=pot,
            share=share,
            remainder=remainder,
            winners=winners,
            loser_ids=loser_ids,
        )
        state.poker_pot = 0
        state.answering_locked = False
        state.phase = GamePhase.RESULTS
        logger.info(
            "[poker] pot=%d winners=%d share=%d remainder=%d",
            pot, len(winners), share, remainder,
        )
        return CommandResult.success_with_state(
            state, [f"Pot of {pot} split {len(winners)} ways"]
        )

    # =========================================================================
    # Quiz master controls
    # =========================================================================

    def _handle_toggle_betting(self, state: GameState, command: Command) -> CommandResult:
        if command.payload.enabled is None:
            return _invalid("Toggle needs 'enabled'")
        state.betting_enabled = command.payload.enabled
        return CommandResult.success_with_state(
            state, [f"Betting {'enabled' if state.betting_enabled else 'disabled'}"]
        )

    def _handle_lock_answering(self, state: GameState, command: Command) -> CommandResult:
        if command.payload.locked is None:
            return _invalid("Lock needs 'locked'")
        state.answering_locked = command.payload.locked
        return CommandResult.success_with_state(
            state, [f"Answering {'locked' if state.answering_locked else 'unlocked'}"]
        )

    def _handle_mark_answer(self, state: GameState, command: Command) -> CommandResult:
        """Grade one answer. Grading an already graded answer changes nothing."""
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)
        correct = command.payload.correct
        if correct is None:
            return _invalid("Grading needs 'correct'")

        entry = state.ensure_entry(player_id)
        if entry.graded:
            return CommandResult.success_with_state(state, [f"{player.name} already graded"])

        # Pot rounds pay out at show-poker-results
        if state.phase == GamePhase.POKER_ANSWERING:
            delta = 0
        else:
            delta = scoring.answer_points(correct, entry.bet, state.betting_enabled, self.config)

        player.points += delta
        entry.graded = True
        entry.correct = correct
        entry.points_change = delta
        return CommandResult.success_with_state(
            state, [f"{player.name} marked {'correct' if correct else 'wrong'} ({delta:+d})"]
        )

    def _handle_undo_grading(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)

        entry = state.get_entry(player_id)
        if not entry or not entry.graded:
            return CommandResult.success_with_state(state, [f"{player.name} was not graded"])

        player.points -= entry.points_change or 0
        entry.clear_grading()
        return CommandResult.success_with_state(state, [f"{player.name} grading undone"])

    def _handle_adjust_score(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)
        change = command.payload.amount
        if change is None:
            return _invalid("Score adjustment needs 'change'")

        player.points += change
        return CommandResult.success_with_state(state, [f"{player.name} adjusted {change:+d}"])

    def _handle_remove_player(self, state: GameState, command: Command) -> CommandResult:
        """Remove a player and every trace of them in the current round."""
        player_id = command.payload.player_id
        player = state.players.pop(player_id, None) if player_id else None
        if not player:
            return _not_found(player_id)

        state.answers.pop(player_id, None)
        state.poker_bets.pop(player_id, None)
        state.spotlight_predictions.pop(player_id, None)
        if state.auction_winner and state.auction_winner.id == player_id:
            state.auction_winner = None
        if state.spotlight_player_id == player_id:
            state.clear_spotlight()
            state.phase = GamePhase.RESULTS
        return CommandResult.success_with_state(state, [f"{player.name} removed"])

    # =========================================================================
    # Player actions
    # =========================================================================

    def _handle_register(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        name = (command.payload.name or "").strip()
        if not player_id:
            return _invalid("Registration needs a player id")
        if not name:
            return _invalid("Name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            return _invalid(f"Name longer than {MAX_NAME_LENGTH} characters")
        if player_id in state.players:
            return _rejected(f"Player {player_id} already registered")

        state.players[player_id] = Player(name=name, points=self.config.starting_points)
        return CommandResult.success_with_state(state, [f"{name} joined"])

    def _handle_submit_bet(self, state: GameState, command: Command) -> CommandResult:
        """Record a round stake, or an auction bid during the auction."""
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)
        amount = command.payload.amount
        if amount is None:
            return _invalid("Bet needs an amount")

        if state.phase == GamePhase.AUCTION:
            error = scoring.bid_error(amount, player.points)
        else:
            error = scoring.bet_error(amount, player.points)
        if error:
            return _invalid(error)

        entry = state.ensure_entry(player_id)
        entry.bet = amount
        if state.phase == GamePhase.AUCTION:
            entry.points_at_bid = player.points
        return CommandResult.success_with_state(state, [f"{player.name} bet {amount}"])

    def _handle_submit_answer(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)
        if state.answering_locked:
            return CommandResult.failure(
                "Answering is locked",
                error_code=ErrorCode.ANSWERING_LOCKED.value,
            )

        answer = (command.payload.answer or "").strip()
        if not answer:
            return _invalid("Answer cannot be empty")

        entry = state.ensure_entry(player_id)
        if entry.graded:
            return _rejected("Answer already graded")

        time_taken = command.payload.time_taken
        if time_taken is None and state.answering_started_at is not None and command.payload.timestamp:
            time_taken = command.payload.timestamp - state.answering_started_at
        if time_taken is not None and time_taken < 0:
            return _invalid("Time taken cannot be negative")

        entry.answer = answer
        entry.time_taken = round(time_taken, 4) if time_taken is not None else None
        return CommandResult.success_with_state(state, [f"{player.name} answered"])

    def _handle_log_focus_loss(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)

        payload = command.payload
        if payload.round is not None and payload.round != state.current_round:
            return CommandResult.success_with_state(state, ["Stale focus report ignored"])
        if payload.focus_losses is None or payload.focus_losses < 0:
            return _invalid("Focus loss count must be zero or more")

        entry = state.ensure_entry(player_id)
        entry.focus_losses = payload.focus_losses
        entry.focus_lost_time = round(payload.focus_lost_time or 0.0, 2)
        return CommandResult.success_with_state(
            state, [f"{player.name} lost focus {payload.focus_losses} times"]
        )

    def _handle_submit_prediction(self, state: GameState, command: Command) -> CommandResult:
        player_id = command.payload.player_id
        player = state.get_player(player_id) if player_id else None
        if not player:
            return _not_found(player_id)
        if player_id == state.spotlight_player_id:
            return _rejected("The spotlight player cannot predict their own answer")

        try:
            prediction = Prediction(command.payload.prediction)
        except ValueError:
            return _invalid("Prediction must be 'correct' or 'wrong'")

        state.spotlight_predictions[player_id] = prediction
        return CommandResult.success_with_state(
            state, [f"{player.name} predicts {prediction.value}"]
        )


def apply_command(config: GameConfig, state: GameState, command: Command) -> CommandResult:
    """Convenience function to apply a command."""
    return Reducer(config).apply(state, command)
