"""
The GameSession is the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the rules required to play a turn:
draw a tile -> place it -> (maybe) put a meeple on it -> next player.

Sessions are values. Every action returns a new session. An action that is not allowed (illegal placement, no meeples left,
wrong phase, ...) returns the very same session object: nothing is raised, the caller decides how to tell the user.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Optional, Self

from src.core.config import GameConfig
from src.core.exceptions import GameStateError
from src.core.shared_types import FeatureClass, Phase
from src.tiles import features
from src.tiles.board import Board, PlacedTile, PlayerId
from src.tiles.catalog import deck_composition, is_known_tile
from src.tiles.placement import (
    check_placement,
    has_placement,
    possible_placements,
    valid_rotations,
)
from src.tiles.position import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Player:
    id: PlayerId
    name: str
    score: int = 0
    meeples_remaining: int = GameConfig.meeples_per_player


@dataclass(frozen=True)
class Deck:
    """Shuffled tiles + a cursor pointing at the next one to draw. Drawing never changes the tuple, only the cursor moves."""

    tiles: tuple[str, ...] = ()
    cursor: int = 0

    @classmethod
    def shuffled(cls, rng: random.Random) -> Self:
        tiles = deck_composition()
        rng.shuffle(tiles)
        return cls(tuple(tiles))

    @property
    def remaining(self) -> int:
        return len(self.tiles) - self.cursor

    def is_exhausted(self) -> bool:
        return self.remaining <= 0

    def draw(self) -> tuple[Optional[str], Self]:
        if self.is_exhausted():
            return None, self
        return self.tiles[self.cursor], replace(self, cursor=self.cursor + 1)


@dataclass(frozen=True)
class GameSession:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    deck: Deck
    current_tile: Optional[str]
    players: tuple[Player, ...]
    active_player_id: PlayerId
    local_player_id: PlayerId
    phase: Phase = Phase.PLAYER_TURN
    # only meaningful while phase == MEEPLE_DECISION
    last_placed: Optional[Position] = None
    config: GameConfig = field(default_factory=GameConfig, compare=False)

    @classmethod
    def new_game(
        cls,
        player_names: list[str],
        local_player_index: int = 0,
        rng: Optional[random.Random] = None,
        config: Optional[GameConfig] = None,
    ) -> Self:
        """Starting tile in the center, shuffled deck, first tile drawn. The first player in the list starts."""
        config = config or GameConfig()
        if not config.min_players <= len(player_names) <= config.max_players:
            raise GameStateError(
                f"A game needs {config.min_players}-{config.max_players} players, got {len(player_names)}"
            )
        if not 0 <= local_player_index < len(player_names):
            raise GameStateError(f"No player with index {local_player_index}")

        rng = rng or random.Random()
        players = tuple(
            Player(id=str(index), name=name, meeples_remaining=config.meeples_per_player)
            for index, name in enumerate(player_names)
        )
        first_tile, deck = Deck.shuffled(rng).draw()
        starting_player = players[0].id
        local_player = players[local_player_index].id
        return cls(
            board=Board.starting(config.board_size),
            deck=deck,
            current_tile=first_tile,
            players=players,
            active_player_id=starting_player,
            local_player_id=local_player,
            phase=Phase.PLAYER_TURN if starting_player == local_player else Phase.OPPONENT_TURN,
            config=config,
        )

    # --- QUERIES ---
    @property
    def active_player(self) -> Player:
        return self.player(self.active_player_id)

    @property
    def local_player(self) -> Player:
        return self.player(self.local_player_id)

    def player(self, player_id: PlayerId) -> Player:
        try:
            return next(player for player in self.players if player.id == player_id)
        except StopIteration:
            raise GameStateError(f"No player with id {player_id!r}") from None

    @property
    def is_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    def possible_placements(self) -> set[Position]:
        """Where the current tile can go. Only the cells: pick one, then ask `valid_rotations()`."""
        if self.current_tile is None or self.phase not in (Phase.PLAYER_TURN, Phase.OPPONENT_TURN):
            return set()
        return possible_placements(self.board, self.current_tile)

    def valid_rotations(self, x: int, y: int) -> list[int]:
        if self.current_tile is None:
            return []
        return valid_rotations(self.board, x, y, self.current_tile)

    def available_features(self) -> list[FeatureClass]:
        """What the meeple decision can offer for the tile just placed"""
        if self.phase != Phase.MEEPLE_DECISION or self.last_placed is None:
            return []
        if self.active_player.meeples_remaining <= 0:
            return []
        return features.available_features(self.board, self.last_placed.x, self.last_placed.y)

    @property
    def winner(self) -> Optional[Player]:
        """
        Only known once the game is over. A tie has no winner (see `is_tie`).
        """
        if not self.is_over:
            return None
        best = max(player.score for player in self.players)
        leaders = [player for player in self.players if player.score == best]
        return leaders[0] if len(leaders) == 1 else None

    @property
    def is_tie(self) -> bool:
        return self.is_over and self.winner is None

    # --- LOCAL PLAYER ACTIONS ---
    def confirm_placement(self, x: int, y: int, rotation: int) -> Self:
        """
        Attempt to lay the current tile
        -----

        1. must be the local player's turn and a tile must be drawn
        2. the tile (turned by `rotation`) must fit on (x, y)
        3. lay it, draw the next tile, remember where it went
        4. -> MEEPLE_DECISION
        """
        if self.phase != Phase.PLAYER_TURN:
            return self._reject(f"cannot place a tile during {self.phase}")
        if self.current_tile is None:
            return self._reject("no tile drawn")
        if rotation not in range(4):
            return self._reject(f"rotation {rotation} is not 0-3")

        placed = PlacedTile.create(self.current_tile, Position(x, y), rotation)
        reason = check_placement(self.board, x, y, placed.borders)
        if reason is not None:
            return self._reject(f"tile {self.current_tile} at ({x}, {y}) r{rotation}: {reason}")

        return replace(self._lay(placed), phase=Phase.MEEPLE_DECISION)

    def attach_meeple(self, feature: FeatureClass) -> Self:
        """Put a meeple on the tile just placed. A refused meeple leaves the session as it is (still deciding)."""
        if self.phase != Phase.MEEPLE_DECISION or self.last_placed is None:
            return self._reject(f"cannot place a meeple during {self.phase}")

        position = self.last_placed
        with_meeple = features.attach_meeple(
            self, position.x, position.y, feature, self.active_player_id
        )
        if with_meeple is self:
            return self
        return with_meeple._pass_turn()

    def attach_meeple_to_slot(self, slot_index: int) -> Self:
        if self.phase != Phase.MEEPLE_DECISION or self.last_placed is None:
            return self._reject(f"cannot place a meeple during {self.phase}")

        position = self.last_placed
        with_meeple = features.attach_meeple_to_slot(
            self, position.x, position.y, slot_index, self.active_player_id
        )
        if with_meeple is self:
            return self
        return with_meeple._pass_turn()

    def skip_meeple(self) -> Self:
        if self.phase != Phase.MEEPLE_DECISION:
            return self._reject(f"nothing to skip during {self.phase}")
        return self._pass_turn()

    def discard_tile(self) -> Self:
        """A tile that fits nowhere is put aside and a new one is drawn."""
        if self.phase != Phase.PLAYER_TURN or self.current_tile is None:
            return self._reject(f"cannot discard during {self.phase}")
        if has_placement(self.board, self.current_tile):
            return self._reject(f"tile {self.current_tile} still fits somewhere")

        logger.info("Tile %s fits nowhere, discarded", self.current_tile)
        next_tile, deck = self.deck.draw()
        session = replace(self, current_tile=next_tile, deck=deck)
        if next_tile is None:
            return replace(session, phase=Phase.GAME_OVER)
        return session

    # --- OTHER SEATS ---
    def play_opponent_turn(self, rng: Optional[random.Random] = None) -> Self:
        """
        Automated opponent: the same protocol as a player, with random choices.
        ----

        1. no tile left -> game over
        2. pick a random cell among the possible placements, then a random rotation that fits there
        3. tile fits nowhere -> discard it and draw another one (the turn is still over)
        4. one time in two: put a meeple on a random feature of the tile just placed
        5. next player
        """
        if self.phase != Phase.OPPONENT_TURN:
            return self._reject(f"not an opponent's turn ({self.phase})")
        if self.current_tile is None:
            return replace(self, phase=Phase.GAME_OVER)

        rng = rng or random.Random()
        placements = sorted(self.possible_placements(), key=lambda p: (p.y, p.x))
        if not placements:
            logger.info(
                "Player %s cannot place tile %s, discarded", self.active_player_id, self.current_tile
            )
            next_tile, deck = self.deck.draw()
            return replace(self, current_tile=next_tile, deck=deck)._advance()

        position = rng.choice(placements)
        rotation = rng.choice(self.valid_rotations(position.x, position.y))
        session = self._lay(PlacedTile.create(self.current_tile, position, rotation))

        if rng.random() > 0.5:
            options = features.available_features(session.board, position.x, position.y)
            if options:
                session = features.attach_meeple(
                    session, position.x, position.y, rng.choice(options), self.active_player_id
                )
        return session._advance()

    def begin_turn(self, player_id: PlayerId, current_tile: Optional[str]) -> Self:
        """The server announced whose turn it is and which tile they drew."""
        if self.is_over:
            return self._reject("game is over")
        if current_tile is not None and not is_known_tile(current_tile):
            return self._reject(f"unknown tile {current_tile!r}")
        if player_id not in {player.id for player in self.players}:
            return self._reject(f"unknown player {player_id!r}")
        phase = Phase.PLAYER_TURN if player_id == self.local_player_id else Phase.OPPONENT_TURN
        return replace(
            self,
            active_player_id=player_id,
            current_tile=current_tile,
            phase=phase,
            last_placed=None,
        )

    def end_game(self) -> Self:
        return replace(self, phase=Phase.GAME_OVER, last_placed=None)

    def with_scores(self, scores: dict[PlayerId, int]) -> Self:
        """Scores are computed by the server; players missing from `scores` keep theirs. Frozen once the game is over."""
        if self.is_over:
            return self._reject("game is over, scores are final")
        players = tuple(
            replace(player, score=scores.get(player.id, player.score)) for player in self.players
        )
        return replace(self, players=players)

    # -- PRIVATE HELPERS ---
    def _reject(self, reason: str) -> Self:
        logger.info("Rejected: %s", reason)
        return self

    def _lay(self, placed: PlacedTile) -> Self:
        """Board update + draw the next tile"""
        next_tile, deck = self.deck.draw()
        logger.debug(
            "Player %s placed %s at (%d, %d) r%d",
            self.active_player_id,
            placed.identity,
            placed.position.x,
            placed.position.y,
            placed.rotation,
        )
        return replace(
            self,
            board=self.board.place(placed),
            deck=deck,
            current_tile=next_tile,
            last_placed=placed.position,
        )

    def _next_player_id(self) -> PlayerId:
        ids = [player.id for player in self.players]
        return ids[(ids.index(self.active_player_id) + 1) % len(ids)]

    def _pass_turn(self) -> Self:
        """End of the local player's turn: the next seat is always an opponent."""
        return replace(
            self,
            active_player_id=self._next_player_id(),
            phase=Phase.OPPONENT_TURN,
            last_placed=None,
        )

    def _advance(self) -> Self:
        """End of an opponent's turn: game over, back to the local player, or on to the next opponent."""
        if self.current_tile is None and self.deck.is_exhausted():
            return replace(self, phase=Phase.GAME_OVER, last_placed=None)
        next_player = self._next_player_id()
        phase = Phase.PLAYER_TURN if next_player == self.local_player_id else Phase.OPPONENT_TURN
        return replace(self, active_player_id=next_player, phase=phase, last_placed=None)
