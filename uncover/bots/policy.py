"""
Bot Policy - The decision adapter contract for the automated side.

A policy answers two kinds of question:
- which card to play, and where, when it holds the turn
- which option(s) to pick when an effect leaves it a decision

The engine calls select_choice() synchronously whenever the Awaiting
decision belongs to the automated side. Whatever heuristic a policy uses,
its answer must be drawn from the options it was given; an empty answer
means "no legal selection" and skips the effect.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action_required import ActionRequired
    from ..engine_core.effect_resolver import PlayOption


@dataclass
class BotDecision:
    """
    A turn decision made by a bot.

    Contains:
    - The play to make (None = end the turn without playing)
    - Explanation (for UI/debugging)
    """
    play: PlayOption | None
    explanation: str = ""


@dataclass
class ChoiceDecision:
    """
    An answer to an ActionRequired.

    ``chosen_values`` must be a subset of the decision's options; an empty
    list signals that the bot sees no legal selection.
    """
    choice_id: str
    chosen_values: list[str]
    explanation: str = ""


class DecisionAdapter(ABC):
    """
    Abstract base class for bot policies.

    Implementations can range from picking the first option to full
    search; the engine only relies on the contract above.
    """

    @abstractmethod
    def select_play(
        self,
        state: GameState,
        legal_plays: list[PlayOption],
    ) -> BotDecision:
        """
        Select a play from the legal plays.

        Args:
            state: Snapshot of the game state
            legal_plays: Plays the engine would accept

        Returns:
            BotDecision with the selected play
        """
        pass

    @abstractmethod
    def select_choice(
        self,
        state: GameState,
        pending: ActionRequired,
    ) -> ChoiceDecision:
        """
        Answer a decision raised by an effect.

        Args:
            state: Snapshot of the game state
            pending: The decision that needs an answer

        Returns:
            ChoiceDecision with the selected option(s)
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(DecisionAdapter):
    """
    Random policy - picks uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        import random
        self.rng = random.Random(seed)

    def select_play(
        self,
        state: GameState,
        legal_plays: list[PlayOption],
    ) -> BotDecision:
        if not legal_plays:
            return BotDecision(play=None, explanation="No legal plays")

        play = self.rng.choice(legal_plays)
        return BotDecision(
            play=play,
            explanation=f"Selected randomly from {len(legal_plays)} plays",
        )

    def select_choice(
        self,
        state: GameState,
        pending: ActionRequired,
    ) -> ChoiceDecision:
        if not pending.options:
            return ChoiceDecision(pending.choice_id, [], "No options available")

        num_to_select = min(pending.max_choices, len(pending.options))
        selected = self.rng.sample(list(pending.options), num_to_select)

        return ChoiceDecision(
            choice_id=pending.choice_id,
            chosen_values=selected,
            explanation="Selected randomly",
        )


class FirstLegalPolicy(DecisionAdapter):
    """
    First-legal policy - always takes the first option.

    Used for:
    - Deterministic testing
    - Baseline comparison
    """

    def select_play(
        self,
        state: GameState,
        legal_plays: list[PlayOption],
    ) -> BotDecision:
        if not legal_plays:
            return BotDecision(play=None, explanation="No legal plays")

        return BotDecision(
            play=legal_plays[0],
            explanation="Selected first legal play",
        )

    def select_choice(
        self,
        state: GameState,
        pending: ActionRequired,
    ) -> ChoiceDecision:
        if not pending.options:
            return ChoiceDecision(pending.choice_id, [], "No options available")

        return ChoiceDecision(
            choice_id=pending.choice_id,
            chosen_values=list(pending.options[:pending.max_choices]),
            explanation="Selected first option(s)",
        )
