"""
Tests for the reducer (phase transitions).

Tests:
- Phase table enforcement
- Round flow and grading
- Auction, spotlight and poker rounds
- Player submissions
"""

import pytest

from ..engine_core.state import GameState, GamePhase, Player, RoundEntry, Prediction, AuctionWinner
from ..engine_core.action import Command, CommandType, CommandPayload
from ..engine_core.reducer import Reducer, apply_command, is_allowed


def run(reducer, state, command):
    """Apply a command that must succeed and return the new state."""
    result = reducer.apply(state, command)
    assert result.success, result.error
    return result.new_state


def simple(command_type):
    return Command.simple(command_type)


class TestPhaseTable:
    """Tests for phase legality."""

    def test_illegal_command_rejected(self, reducer):
        state = GameState()
        result = reducer.apply(state, simple(CommandType.END_AUCTION))

        assert not result.success
        assert result.error_code == "INVALID_COMMAND"
        assert "registration" in result.error

    def test_rejection_leaves_state_untouched(self, reducer, results_state):
        result = reducer.apply(results_state, simple(CommandType.SHOW_RESULTS))

        assert not result.success
        assert results_state.phase == GamePhase.RESULTS

    def test_apply_does_not_mutate_input(self, reducer, results_state):
        new_state = run(reducer, results_state, Command.adjust_score("alice", 5))

        assert new_state.players["alice"].points == 25
        assert results_state.players["alice"].points == 20

    def test_reset_allowed_everywhere(self):
        for phase in GamePhase:
            assert is_allowed(phase, CommandType.RESET_GAME)

    def test_end_game_not_allowed_mid_poker(self):
        assert not is_allowed(GamePhase.POKER, CommandType.END_GAME)
        assert not is_allowed(GamePhase.SPOTLIGHT, CommandType.END_GAME)
        assert not is_allowed(GamePhase.REGISTRATION, CommandType.END_GAME)

    def test_leaderboard_only_resets(self):
        allowed = {c for c in CommandType if is_allowed(GamePhase.LEADERBOARD, c)}
        assert CommandType.RESET_GAME in allowed
        assert CommandType.NEXT_ROUND not in allowed
        assert CommandType.START_QUIZ not in allowed


class TestRoundFlow:
    """Tests for the regular question rounds."""

    def test_start_quiz_with_betting(self, reducer):
        state = GameState(players={"a": Player("A", 5)})
        state = run(reducer, state, simple(CommandType.START_QUIZ))

        assert state.phase == GamePhase.BETTING
        assert state.current_round == 1
        assert state.answers == {}

    def test_start_quiz_without_betting_opens_answering(self, reducer):
        state = GameState(betting_enabled=False)
        command = Command(CommandType.START_QUIZ, CommandPayload(timestamp=50.0))
        state = run(reducer, state, command)

        assert state.phase == GamePhase.ANSWERING
        assert state.answering_started_at == 50.0

    def test_next_round_increments_and_clears(self, reducer, results_state):
        results_state.answers["alice"] = RoundEntry(bet=2, answer="x", graded=True)
        results_state.poker_result = object()
        state = run(reducer, results_state, simple(CommandType.NEXT_ROUND))

        assert state.current_round == 2
        assert state.phase == GamePhase.BETTING
        assert state.answers == {}
        assert state.poker_result is None

    def test_show_results_charges_bet_without_answer(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answers = {
            "alice": RoundEntry(bet=4),
            "bob": RoundEntry(bet=3, answer="Paris"),
        }
        state = run(reducer, results_state, simple(CommandType.SHOW_RESULTS))

        assert state.phase == GamePhase.RESULTS
        assert state.players["alice"].points == 16
        assert state.answers["alice"].graded
        assert state.answers["alice"].correct is False
        assert state.answers["alice"].points_change == -4
        # Answered but ungraded players are left alone
        assert state.players["bob"].points == 8
        assert not state.answers["bob"].graded

    def test_show_results_skips_already_graded(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answers = {
            "alice": RoundEntry(bet=4, graded=True, correct=False, points_change=-4),
        }
        results_state.players["alice"].points = 16
        state = run(reducer, results_state, simple(CommandType.SHOW_RESULTS))

        assert state.players["alice"].points == 16

    def test_unanswered_bet_charged_after_betting_disabled(self, reducer, results_state):
        """Turning betting off mid-round does not refund placed stakes."""
        results_state.phase = GamePhase.BETTING
        state = run(reducer, results_state, Command.submit_bet("alice", 3))
        state = run(reducer, state, Command.toggle_betting(False))
        state = run(reducer, state, simple(CommandType.ADVANCE_TO_ANSWERING))
        state = run(reducer, state, simple(CommandType.SHOW_RESULTS))

        assert state.players["alice"].points == 17
        assert state.answers["alice"].points_change == -3
        assert state.answers["alice"].correct is False

    @pytest.mark.parametrize("phase", list(GamePhase))
    def test_reset_from_any_phase(self, reducer, results_state, phase):
        results_state.phase = phase
        results_state.current_round = 4
        results_state.answers["alice"] = RoundEntry(bet=2, answer="x")
        results_state.poker_pot = 14
        results_state.poker_bets = {"alice": 2, "bob": 8, "carol": 4}
        results_state.spotlight_player_id = "bob"
        results_state.spotlight_predictions = {"carol": Prediction.WRONG}
        results_state.auction_winner = AuctionWinner(id="carol", name="Carol", bid=3)
        state = run(reducer, results_state, simple(CommandType.RESET_GAME))

        assert state.players == {}
        assert state.phase == GamePhase.REGISTRATION
        assert state.current_round == 0
        assert state.answers == {}
        assert state.poker_pot == 0
        assert state.poker_bets == {}
        assert state.spotlight_player_id is None
        assert state.spotlight_predictions == {}
        assert state.auction_winner is None

    def test_end_game(self, reducer, results_state):
        state = run(reducer, results_state, simple(CommandType.END_GAME))
        assert state.phase == GamePhase.LEADERBOARD

    def test_reset_keeps_betting_toggle(self, reducer, results_state):
        results_state.betting_enabled = False
        state = run(reducer, results_state, simple(CommandType.RESET_GAME))

        assert state.phase == GamePhase.REGISTRATION
        assert state.players == {}
        assert state.current_round == 0
        assert state.betting_enabled is False


class TestGrading:
    """Tests for mark-answer and undo-grading."""

    @pytest.fixture
    def answering_state(self, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answers = {
            "alice": RoundEntry(bet=3, answer="Paris"),
            "bob": RoundEntry(bet=0, answer="Lyon"),
        }
        return results_state

    def test_correct_bet_wins_stake(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.mark_answer("alice", True))

        assert state.players["alice"].points == 23
        assert state.answers["alice"].points_change == 3

    def test_wrong_bet_loses_stake(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.mark_answer("alice", False))
        assert state.players["alice"].points == 17

    def test_zero_bet_correct_earns_one(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.mark_answer("bob", True))
        assert state.players["bob"].points == 9

    def test_flat_mode_ignores_bet(self, reducer, answering_state):
        answering_state.betting_enabled = False
        state = run(reducer, answering_state, Command.mark_answer("alice", True))
        assert state.players["alice"].points == 21

    def test_grading_twice_is_noop(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.mark_answer("alice", True))
        state = run(reducer, state, Command.mark_answer("alice", False))

        assert state.players["alice"].points == 23
        assert state.answers["alice"].correct is True

    @pytest.mark.parametrize("correct", [True, False])
    def test_undo_restores_points(self, reducer, answering_state, correct):
        state = run(reducer, answering_state, Command.mark_answer("alice", correct))
        state = run(reducer, state, Command.undo_grading("alice"))

        assert state.players["alice"].points == 20
        entry = state.answers["alice"]
        assert not entry.graded
        assert entry.correct is None
        assert entry.points_change is None

    def test_undo_ungraded_is_noop(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.undo_grading("alice"))
        assert state.players["alice"].points == 20

    def test_grading_player_without_entry(self, reducer, answering_state):
        state = run(reducer, answering_state, Command.mark_answer("carol", True))

        assert state.players["carol"].points == 36
        assert state.answers["carol"].graded

    def test_grading_unknown_player(self, reducer, answering_state):
        result = reducer.apply(answering_state, Command.mark_answer("nobody", True))
        assert result.error_code == "PLAYER_NOT_FOUND"

    def test_grading_outside_answering_rejected(self, reducer, results_state):
        result = reducer.apply(results_state, Command.mark_answer("alice", True))
        assert result.error_code == "INVALID_COMMAND"


class TestAuction:
    """Tests for auction rounds."""

    @pytest.fixture
    def auction_state(self, reducer, results_state):
        return run(reducer, results_state, simple(CommandType.START_AUCTION))

    def test_start_auction_clears_previous(self, reducer, results_state):
        results_state.answers["alice"] = RoundEntry(bet=2)
        state = run(reducer, results_state, simple(CommandType.START_AUCTION))

        assert state.phase == GamePhase.AUCTION
        assert state.answers == {}
        assert state.auction_winner is None

    def test_highest_bidder_pays(self, reducer, auction_state):
        state = run(reducer, auction_state, Command.submit_bet("alice", 6))
        state = run(reducer, state, Command.submit_bet("carol", 4))
        state = run(reducer, state, simple(CommandType.END_AUCTION))

        assert state.phase == GamePhase.AUCTION_RESULTS
        assert state.auction_winner.id == "alice"
        assert state.auction_winner.bid == 6
        assert state.players["alice"].points == 14
        assert state.players["carol"].points == 35

    def test_tie_goes_to_fewer_points(self, reducer, auction_state):
        state = run(reducer, auction_state, Command.submit_bet("alice", 5))
        state = run(reducer, state, Command.submit_bet("bob", 5))
        state = run(reducer, state, simple(CommandType.END_AUCTION))

        assert state.auction_winner.id == "bob"
        assert state.players["bob"].points == 3
        assert state.players["alice"].points == 20

    def test_full_tie_goes_to_earliest_registered(self, reducer, auction_state):
        auction_state.answers = {
            "carol": RoundEntry(bet=5, points_at_bid=12),
            "alice": RoundEntry(bet=5, points_at_bid=12),
            "bob": RoundEntry(bet=5, points_at_bid=12),
        }
        state = run(reducer, auction_state, simple(CommandType.END_AUCTION))

        assert state.auction_winner.id == "alice"

    def test_bid_records_points_at_bid(self, reducer, auction_state):
        state = run(reducer, auction_state, Command.submit_bet("bob", 1))
        assert state.answers["bob"].points_at_bid == 8

    def test_bid_over_balance_rejected(self, reducer, auction_state):
        result = reducer.apply(auction_state, Command.submit_bet("bob", 9))
        assert result.error_code == "VALIDATION_ERROR"

    def test_no_bids_no_winner(self, reducer, auction_state):
        state = run(reducer, auction_state, simple(CommandType.END_AUCTION))

        assert state.phase == GamePhase.AUCTION_RESULTS
        assert state.auction_winner is None

    def test_auction_results_can_restart_auction(self, reducer, auction_state):
        state = run(reducer, auction_state, simple(CommandType.END_AUCTION))
        state = run(reducer, state, simple(CommandType.START_AUCTION))
        assert state.phase == GamePhase.AUCTION


class TestSpotlight:
    """Tests for spotlight rounds."""

    @pytest.fixture
    def spotlight_state(self, reducer, results_state):
        return run(reducer, results_state, Command.start_spotlight("alice"))

    def test_start_spotlight(self, spotlight_state):
        assert spotlight_state.phase == GamePhase.SPOTLIGHT
        assert spotlight_state.spotlight_player_id == "alice"
        assert spotlight_state.spotlight_predictions == {}

    def test_start_spotlight_unknown_player(self, reducer, results_state):
        result = reducer.apply(results_state, Command.start_spotlight("nobody"))
        assert result.error_code == "PLAYER_NOT_FOUND"

    def test_wrong_answer_with_mismatched_prediction(self, reducer, spotlight_state):
        state = run(reducer, spotlight_state, Command.submit_prediction("bob", "correct"))
        state = run(reducer, state, Command.grade_spotlight(False))

        assert state.phase == GamePhase.RESULTS
        assert state.players["alice"].points == 18
        assert state.players["bob"].points == 8

    def test_correct_answer_pays_predictors(self, reducer, spotlight_state):
        state = run(reducer, spotlight_state, Command.submit_prediction("bob", "correct"))
        state = run(reducer, state, Command.submit_prediction("carol", "wrong"))
        state = run(reducer, state, Command.grade_spotlight(True))

        assert state.players["alice"].points == 30
        assert state.players["bob"].points == 13
        assert state.players["carol"].points == 35

    def test_grading_snapshots_and_clears(self, reducer, spotlight_state):
        state = run(reducer, spotlight_state, Command.submit_prediction("carol", "wrong"))
        state = run(reducer, state, Command.grade_spotlight(False))

        assert state.spotlight_player_id is None
        assert state.spotlight_predictions == {}
        result = state.spotlight_result
        assert result.player_id == "alice"
        assert result.correct is False
        assert result.points_change == -2
        assert result.predictions == {"carol": Prediction.WRONG}
        assert result.rewarded_player_ids == ["carol"]

    def test_spotlight_player_cannot_predict(self, reducer, spotlight_state):
        result = reducer.apply(spotlight_state, Command.submit_prediction("alice", "correct"))
        assert result.error_code == "INVALID_COMMAND"

    def test_invalid_prediction(self, reducer, spotlight_state):
        result = reducer.apply(spotlight_state, Command.submit_prediction("bob", "maybe"))
        assert result.error_code == "VALIDATION_ERROR"

    def test_removing_spotlight_player_returns_to_results(self, reducer, spotlight_state):
        state = run(reducer, spotlight_state, Command.remove_player("alice"))

        assert state.phase == GamePhase.RESULTS
        assert state.spotlight_player_id is None


class TestPoker:
    """Tests for pot rounds."""

    @pytest.fixture
    def poker_state(self, reducer, results_state):
        state = run(reducer, results_state, simple(CommandType.START_POKER))
        return run(reducer, state, simple(CommandType.POKER_TO_ANSWERING))

    def test_antes_collected(self, reducer, results_state):
        state = run(reducer, results_state, simple(CommandType.START_POKER))

        assert state.phase == GamePhase.POKER
        assert state.poker_bets == {"alice": 2, "bob": 8, "carol": 4}
        assert state.poker_pot == sum(state.poker_bets.values()) == 14
        assert state.players["alice"].points == 18
        assert state.players["bob"].points == 0
        assert state.players["carol"].points == 31

    def test_grading_during_poker_moves_no_points(self, reducer, poker_state):
        state = run(reducer, poker_state, Command.mark_answer("alice", True))

        assert state.players["alice"].points == 18
        assert state.answers["alice"].points_change == 0

    def test_pot_split_between_winners(self, reducer, poker_state):
        state = run(reducer, poker_state, Command.mark_answer("alice", True))
        state = run(reducer, state, Command.mark_answer("carol", True))
        state = run(reducer, state, simple(CommandType.SHOW_POKER_RESULTS))

        assert state.phase == GamePhase.RESULTS
        assert state.players["alice"].points == 25
        assert state.players["carol"].points == 38
        assert state.players["bob"].points == 0
        assert state.answers["alice"].poker_winnings == 7
        assert state.answers["alice"].points_change == 5
        assert state.answers["bob"].poker_loss == 8
        assert state.answers["bob"].correct is False
        assert state.poker_pot == 0
        assert state.poker_result.pot == 14
        assert state.poker_result.loser_ids == ["bob"]

    def test_remainder_not_distributed(self, reducer, poker_state):
        state = poker_state
        for player_id in ("alice", "bob", "carol"):
            state = run(reducer, state, Command.mark_answer(player_id, True))
        state = run(reducer, state, simple(CommandType.SHOW_POKER_RESULTS))

        distributed = sum(w.winnings for w in state.poker_result.winners)
        assert distributed == 12
        assert state.poker_result.remainder == 2
        assert distributed <= state.poker_result.pot

    def test_no_winners_loses_pot(self, reducer, poker_state):
        state = run(reducer, poker_state, simple(CommandType.SHOW_POKER_RESULTS))

        assert state.poker_result.winners == []
        assert state.poker_result.remainder == 14
        assert state.players["alice"].points == 18

    def test_next_round_clears_poker(self, reducer, poker_state):
        state = run(reducer, poker_state, simple(CommandType.SHOW_POKER_RESULTS))
        state = run(reducer, state, simple(CommandType.NEXT_ROUND))

        assert state.poker_bets == {}
        assert state.poker_result is None
        assert state.current_round == 2

    def test_late_joiner_takes_no_share(self, reducer, poker_state):
        state = run(reducer, poker_state, Command.register("dave", "Dave"))
        state = run(reducer, state, Command.mark_answer("dave", True))
        state = run(reducer, state, Command.mark_answer("alice", True))
        state = run(reducer, state, simple(CommandType.SHOW_POKER_RESULTS))

        assert [w.id for w in state.poker_result.winners] == ["alice"]
        assert state.poker_result.share == 14
        assert state.players["alice"].points == 32
        assert state.players["dave"].points == 5
        assert "dave" in state.poker_result.loser_ids
        assert state.answers["dave"].poker_loss == 0
        assert state.answers["dave"].points_change == 0


class TestPlayerSubmissions:
    """Tests for bets, answers and focus reports."""

    @pytest.fixture
    def betting_state(self, results_state):
        results_state.phase = GamePhase.BETTING
        return results_state

    def test_bet_of_one_rejected(self, reducer, betting_state):
        result = reducer.apply(betting_state, Command.submit_bet("alice", 1))
        assert result.error_code == "VALIDATION_ERROR"

    def test_bet_over_balance_rejected(self, reducer, betting_state):
        result = reducer.apply(betting_state, Command.submit_bet("bob", 9))
        assert result.error_code == "VALIDATION_ERROR"

    def test_bet_can_be_changed(self, reducer, betting_state):
        state = run(reducer, betting_state, Command.submit_bet("alice", 2))
        state = run(reducer, state, Command.submit_bet("alice", 0))
        assert state.answers["alice"].bet == 0

    def test_answer_rejected_while_locked(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answering_locked = True
        result = reducer.apply(results_state, Command.submit_answer("alice", "Paris"))
        assert result.error_code == "ANSWERING_LOCKED"

    def test_empty_answer_rejected(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        result = reducer.apply(results_state, Command.submit_answer("alice", "   "))
        assert result.error_code == "VALIDATION_ERROR"

    def test_answer_time_from_clock(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answering_started_at = 100.0
        command = Command.submit_answer("alice", "Paris")
        command.payload.timestamp = 112.25
        state = run(reducer, results_state, command)

        assert state.answers["alice"].time_taken == 12.25

    def test_client_time_preferred(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answering_started_at = 100.0
        command = Command.submit_answer("alice", "Paris", time_taken=3.14159)
        command.payload.timestamp = 112.25
        state = run(reducer, results_state, command)

        assert state.answers["alice"].time_taken == 3.1416

    def test_graded_answer_cannot_change(self, reducer, results_state):
        results_state.phase = GamePhase.ANSWERING
        results_state.answers["alice"] = RoundEntry(answer="Paris", graded=True, correct=True)
        result = reducer.apply(results_state, Command.submit_answer("alice", "Rome"))
        assert result.error_code == "INVALID_COMMAND"

    def test_focus_loss_recorded(self, reducer, results_state):
        state = run(reducer, results_state, Command.log_focus_loss("alice", 2, 4.567, round=1))

        assert state.answers["alice"].focus_losses == 2
        assert state.answers["alice"].focus_lost_time == 4.57

    def test_stale_focus_loss_ignored(self, reducer, results_state):
        state = run(reducer, results_state, Command.log_focus_loss("alice", 2, 4.5, round=0))
        assert "alice" not in state.answers

    def test_register_uses_starting_points(self, reducer):
        state = run(reducer, GameState(), Command.register("x1", "  Dana  "))

        assert state.players["x1"].name == "Dana"
        assert state.players["x1"].points == 5

    def test_register_rejects_blank_name(self, reducer):
        result = reducer.apply(GameState(), Command.register("x1", " "))
        assert result.error_code == "VALIDATION_ERROR"

    def test_remove_player_clears_traces(self, reducer, results_state):
        results_state.answers["bob"] = RoundEntry(bet=2)
        results_state.poker_bets["bob"] = 3
        state = run(reducer, results_state, Command.remove_player("bob"))

        assert "bob" not in state.players
        assert "bob" not in state.answers
        assert "bob" not in state.poker_bets

    def test_apply_command_helper(self, config):
        result = apply_command(config, GameState(), Command.register("x1", "Eve"))
        assert result.success
