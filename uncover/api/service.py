"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions, serializing every engine call behind the session lock
3. Turns engine errors into ErrorResponse objects
4. Formats game state for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging

from .schemas import (
    # Requests
    CreateGameRequest,
    DecisionRequest,
    PlayRequest,
    DrawRequest,
    EndTurnRequest,
    # Responses
    GameStateResponse,
    DecisionResponse,
    QueueResponse,
    CatalogValidationResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    LaneInfo,
    PlayerInfo,
    DecisionInfo,
    QueuedEffectInfo,
    SkippedEffectInfo,
    # Enums
    ErrorCode,
    GameStatus,
    SideName,
)
from ..catalog import Catalog, validate_catalog
from ..engine_core.action_required import ActionRequired
from ..engine_core.effect_queue import QueuedEffect
from ..engine_core.effect_resolver import EffectEngine
from ..engine_core.errors import EngineError
from ..engine_core.state import CardInstance, GamePhase, PlayerState, Side
from ..games.main_set import build_scenario, load_main_set
from ..session import SessionManager, Session

logger = logging.getLogger(__name__)


@dataclass
class GameService:
    """
    Main API service.

    Usage:
        service = GameService()

        # Create game
        state = service.create_game(CreateGameRequest(scenario="psychic3_uncover"))

        # Play and answer decisions
        state = service.play_card(state.game_id, PlayRequest(card_id="Hate-0#1", lane_index=0))
        state = service.submit_decision(state.game_id, DecisionRequest(values=[...]))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    catalog: Catalog = field(default_factory=load_main_set)

    def validate_catalog(self, data: Any) -> CatalogValidationResponse:
        """Validate a raw catalog without loading it."""
        result = validate_catalog(data)
        card_count = 0
        if isinstance(data, dict):
            card_count = sum(len(cards) for cards in data.values() if isinstance(cards, list))
        return CatalogValidationResponse(
            valid=result.valid,
            errors=result.errors,
            warnings=result.warnings,
            card_count=card_count,
        )

    def create_game(self, request: CreateGameRequest) -> GameStateResponse | ErrorResponse:
        """
        Create a new game from a named scenario.
        """
        game_id = self.session_manager.new_session_id()
        kwargs: dict[str, Any] = {"catalog": self.catalog}
        if request.scenario == "standard" and request.random_seed is not None:
            kwargs["random_seed"] = request.random_seed

        try:
            engine = build_scenario(request.scenario, game_id, **kwargs)
        except KeyError:
            return ErrorResponse(
                error=f"Unknown scenario: {request.scenario}",
                error_code=ErrorCode.UNKNOWN_SCENARIO,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_CATALOG)

        session = self.session_manager.create_session(
            engine, session_id=game_id, scenario=request.scenario
        )
        with session.lock:
            return self._build_game_state(session)

    def get_game(self, game_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get current game state.
        """
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        with session.lock:
            return self._build_game_state(session)

    def get_decision(self, game_id: str) -> DecisionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        with session.lock:
            decision = session.engine.action_required
            return DecisionResponse(
                game_id=game_id,
                idle=decision is None,
                decision=self._decision_info(decision),
            )

    def get_queue(self, game_id: str) -> QueueResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        with session.lock:
            engine = session.engine
            pending = [self._queued_info(entry) for entry in engine.pending]
            return QueueResponse(
                game_id=game_id,
                decision=self._decision_info(engine.action_required),
                pending=pending,
                count=len(pending),
            )

    def submit_decision(
        self, game_id: str, request: DecisionRequest
    ) -> GameStateResponse | ErrorResponse:
        return self._with_engine(
            game_id,
            lambda engine: engine.submit(Side(request.side.value), request.values),
        )

    def advance(self, game_id: str) -> GameStateResponse | ErrorResponse:
        """Retry an automated answer the engine rejected."""
        return self._with_engine(game_id, lambda engine: engine.advance())

    def play_card(self, game_id: str, request: PlayRequest) -> GameStateResponse | ErrorResponse:
        return self._with_engine(
            game_id,
            lambda engine: engine.play_card(
                Side(request.side.value), request.card_id, request.lane_index, request.face_up
            ),
        )

    def draw(self, game_id: str, request: DrawRequest) -> GameStateResponse | ErrorResponse:
        return self._with_engine(
            game_id,
            lambda engine: engine.draw(Side(request.side.value), request.count),
        )

    def end_turn(self, game_id: str, request: EndTurnRequest) -> GameStateResponse | ErrorResponse:
        return self._with_engine(
            game_id,
            lambda engine: engine.end_turn(Side(request.side.value)),
        )

    def end_game(self, game_id: str, reason: str = "user_ended") -> bool:
        """
        End a game and drop its session.
        """
        return self.session_manager.end_session(game_id, reason)

    def list_games(self) -> list[str]:
        """
        List active game IDs.
        """
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _with_engine(
        self,
        game_id: str,
        call: Callable[[EffectEngine], Any],
    ) -> GameStateResponse | ErrorResponse:
        """Run one engine call under the session lock."""
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)

        with session.lock:
            try:
                call(session.engine)
            except EngineError as e:
                logger.info("Game %s rejected a call: %s", game_id, e)
                details = {"retryable": getattr(e, "retryable", False)}
                choice_id = getattr(e, "choice_id", None)
                if choice_id:
                    details["choice_id"] = choice_id
                return ErrorResponse(
                    error=str(e),
                    error_code=ErrorCode.__members__.get(e.error_code, ErrorCode.INTERNAL_ERROR),
                    details=details,
                )
            return self._build_game_state(session)

    def _not_found(self, game_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Game {game_id} not found",
            error_code=ErrorCode.GAME_NOT_FOUND,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build complete game state response."""
        engine = session.engine
        state = engine.state
        decision = engine.action_required

        if state.phase == GamePhase.GAME_OVER:
            status = GameStatus.GAME_OVER
        elif decision is not None:
            status = GameStatus.AWAITING_DECISION
        else:
            status = GameStatus.ACTIVE

        return GameStateResponse(
            game_id=session.session_id,
            status=status,
            phase=state.phase.value,
            turn=SideName(state.turn.value),
            turn_number=state.turn_number,
            players=[
                self._player_info(state.player(side), side == state.turn)
                for side in Side
            ],
            decision=self._decision_info(decision),
            pending=[self._queued_info(entry) for entry in engine.pending],
            skipped=[
                SkippedEffectInfo(
                    effect_id=record.effect_id,
                    source_card_id=record.source_card_id,
                    owner=SideName(record.owner.value),
                    reason=record.reason,
                )
                for record in engine.skipped
            ],
            executed=list(engine.executed),
            log=list(state.log),
            adapter_error=str(engine.adapter_error) if engine.adapter_error else None,
        )

    def _player_info(self, player: PlayerState, is_current_turn: bool) -> PlayerInfo:
        lanes = []
        for lane_index, lane in enumerate(player.lanes):
            protocol = player.protocols[lane_index] if lane_index < len(player.protocols) else None
            lanes.append(LaneInfo(
                lane_index=lane_index,
                protocol=protocol,
                cards=[self._card_info(card) for card in lane],
                value=player.lane_value(lane_index),
            ))

        return PlayerInfo(
            side=SideName(player.side.value),
            is_human=player.is_human,
            is_current_turn=is_current_turn,
            hand=[self._card_info(card) for card in player.hand],
            deck_count=len(player.deck),
            discard=[self._card_info(card) for card in player.discard],
            lanes=lanes,
        )

    def _card_info(self, card: CardInstance) -> CardInfo:
        return CardInfo(
            card_id=card.instance_id,
            name=card.name,
            owner=SideName(card.owner.value),
            face_up=card.face_up,
            value=card.value,
            effective_value=card.effective_value,
        )

    def _decision_info(self, decision: ActionRequired | None) -> DecisionInfo | None:
        if decision is None:
            return None
        return DecisionInfo(
            choice_id=decision.choice_id,
            kind=decision.kind.value,
            actor=SideName(decision.actor.value),
            prompt=decision.prompt,
            options=list(decision.options),
            min_choices=decision.min_choices,
            max_choices=decision.max_choices,
            optional=decision.optional,
            source_effect_id=decision.source_effect_id,
            source_card_id=decision.source_card_id,
            subject_card_id=decision.subject_card_id,
        )

    def _queued_info(self, entry: QueuedEffect) -> QueuedEffectInfo:
        return QueuedEffectInfo(
            seq=entry.seq,
            effect_id=entry.effect.effect_id,
            source_card_id=entry.source_card_id,
            owner=SideName(entry.owner.value),
            cause=entry.cause,
            box=entry.box.value if entry.box else None,
        )
