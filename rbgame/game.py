"""The animated board: forklifts replaying a game log, fetching and delivering boxes.

The window given to :class:`Game` is expected to behave like a pyglet window:
``dispatch_events()``, ``clear()`` (using :data:`CLEAR_COLOR`), ``flip()`` and a
``has_exit`` flag that becomes true once the user asks to close it.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Optional, Sequence

from rbgame import transforms
from rbgame.logfile import RobotStart, parse_moves, parse_starting_positions
from rbgame.model import Board, Box, Forklift, Model, Orientation
from rbgame.shader import setup_shader

SCR_WIDTH = 800
SCR_HEIGHT = 600
CLEAR_COLOR = (0.05, 0.05, 0.05, 1.0)

PROJECTION = transforms.perspective(math.radians(45.0), SCR_WIDTH / SCR_HEIGHT, 0.1, 100.0)
VIEW = transforms.look_at((0.0, -3.0, 4.0), (0.0, 0.0, 0.0), (0.0, -1.0, 0.0))
MODEL = transforms.scale(transforms.identity(), (0.45, 0.45, 0.45))

BOARD_PATH = "assets/board/board.obj"
FORKLIFT_PATH = "assets/forklift/forklift.obj"
BOX_PATH = "assets/box/box.obj"
SHADER_PATHS = {
    "notexture": ("shaders/notexture.vs", "shaders/notexture.fs"),
    "withtexture": ("shaders/withtexture.vs", "shaders/withtexture.fs"),
}

# Cells where boxes are delivered.
YELLOW_CELLS = frozenset(
    {(2, 0), (4, 0), (6, 0), (0, 2), (0, 4), (0, 6), (8, 2), (8, 4), (8, 6)}
)

# Boxes wait in this row, at these columns, placed at these scene offsets.
PICKUP_ROW = 7
BOX_OFFSETS = {
    2: (2.0, 0.0, 3.0),
    4: (0.0, 0.0, 3.0),
    6: (-2.0, 0.0, 3.0),
}

MOVE_STEPS = 10
MOVE_STEP = (0.0, 0.0, 0.1)
TURN_STEPS = 9
_UP_AXIS = (0.0, 1.0, 0.0)
_LEFT, _RIGHT, _BACK = -10.0, 10.0, 20.0  # degrees per animation frame

# Turn needed to go from the current orientation to the target one.
_TURNS = {
    (Orientation.DOWN, Orientation.UP): _BACK,
    (Orientation.LEFT, Orientation.UP): _RIGHT,
    (Orientation.RIGHT, Orientation.UP): _LEFT,
    (Orientation.UP, Orientation.DOWN): _BACK,
    (Orientation.LEFT, Orientation.DOWN): _LEFT,
    (Orientation.RIGHT, Orientation.DOWN): _RIGHT,
    (Orientation.UP, Orientation.LEFT): _LEFT,
    (Orientation.DOWN, Orientation.LEFT): _RIGHT,
    (Orientation.RIGHT, Orientation.LEFT): _BACK,
    (Orientation.UP, Orientation.RIGHT): _RIGHT,
    (Orientation.DOWN, Orientation.RIGHT): _LEFT,
    (Orientation.LEFT, Orientation.RIGHT): _BACK,
}

_STEPS = {
    Orientation.UP: (0, -1),
    Orientation.DOWN: (0, 1),
    Orientation.LEFT: (-1, 0),
    Orientation.RIGHT: (1, 0),
}


class Game:
    """The board, forklifts and boxes of one logged game.

    Asset and shader paths are resolved against ``root``.  ``shaders`` may
    give the untextured and textured programs ready made; otherwise they are
    built from the shader files, which needs a current OpenGL context.
    """

    def __init__(
        self,
        log_file: str | Path,
        *,
        root: str | Path = ".",
        shaders: Optional[Sequence[Any]] = None,
    ) -> None:
        root = Path(root)
        self.board = Board.load(root / BOARD_PATH, PROJECTION, VIEW, MODEL)
        if shaders is None:
            shaders = [
                setup_shader(root / vertex, root / fragment)
                for vertex, fragment in SHADER_PATHS.values()
            ]
        self.notexture, self.withtexture = shaders
        self._forklift_template = Model.load(root / FORKLIFT_PATH, PROJECTION, VIEW, MODEL)
        self.forklifts = [self._place(start) for start in parse_starting_positions(log_file)]
        self._box_template = Box.load(root / BOX_PATH, PROJECTION, VIEW, MODEL)
        self.boxes: dict[int, Optional[Box]] = {column: self._new_box(column) for column in BOX_OFFSETS}

    def _place(self, start: RobotStart) -> Forklift:
        forklift = Forklift.from_model(self._forklift_template, start.x, start.y, start.rgb)
        forklift.model_matrix = transforms.translate(
            MODEL, (4.0 - start.x, 0.0, start.y - 4.0)
        )
        return forklift

    def _new_box(self, column: int) -> Box:
        box = self._box_template.copy()
        box.model_matrix = transforms.translate(MODEL, BOX_OFFSETS[column])
        return box

    def render(self, window: Any) -> None:
        """Draw one frame, unless the window is closing."""
        if window.has_exit:
            return
        window.dispatch_events()
        if window.has_exit:
            return
        window.clear()
        self.board.draw(self.withtexture)
        for forklift in self.forklifts:
            forklift.draw(self.notexture, self.withtexture)
        for box in self.boxes.values():
            if box is not None:
                box.draw(self.withtexture)
        window.flip()

    def move_forward(self, index: int, window: Any) -> None:
        """Drive a forklift one cell ahead, animated."""
        forklift = self.forklifts[index]
        for _ in range(MOVE_STEPS):
            forklift.translate(MOVE_STEP)
            self.render(window)

    def _turn(self, index: int, degrees_per_frame: float, window: Any) -> None:
        forklift = self.forklifts[index]
        for _ in range(TURN_STEPS):
            forklift.rotate(math.radians(degrees_per_frame), _UP_AXIS)
            self.render(window)

    def turn_left(self, index: int, window: Any) -> None:
        """Turn a forklift a quarter turn to the left, animated."""
        self._turn(index, _LEFT, window)

    def turn_right(self, index: int, window: Any) -> None:
        """Turn a forklift a quarter turn to the right, animated."""
        self._turn(index, _RIGHT, window)

    def turn_back(self, index: int, window: Any) -> None:
        """Turn a forklift half a turn, animated."""
        self._turn(index, _BACK, window)

    def _face(self, index: int, target: Orientation, window: Any) -> None:
        forklift = self.forklifts[index]
        turn = _TURNS.get((forklift.orientation, target))
        if turn is not None:
            self._turn(index, turn, window)
        forklift.orientation = target

    def pickup(self, index: int, window: Any) -> None:
        """At a box's waiting cell, face down and take the box."""
        forklift = self.forklifts[index]
        if forklift.y != PICKUP_ROW or forklift.x not in self.boxes:
            return
        self._face(index, Orientation.DOWN, window)
        forklift.box = self.boxes[forklift.x]
        self.boxes[forklift.x] = None

    def dropoff(self, index: int) -> None:
        """On a yellow cell, deliver the box being carried."""
        forklift = self.forklifts[index]
        if (forklift.x, forklift.y) in YELLOW_CELLS:
            forklift.box = None

    def generate_box(self, index: int) -> None:
        """Put a fresh box on the waiting cell the forklift stands on."""
        forklift = self.forklifts[index]
        if forklift.y == PICKUP_ROW and forklift.x in self.boxes:
            self.boxes[forklift.x] = self._new_box(forklift.x)

    def _step(self, index: int, target: Orientation, window: Any) -> None:
        forklift = self.forklifts[index]
        turn = _TURNS.get((forklift.orientation, target))
        if turn is not None:
            self._turn(index, turn, window)
        self.move_forward(index, window)
        forklift.orientation = target
        self.generate_box(index)
        dx, dy = _STEPS[target]
        forklift.x += dx
        forklift.y += dy
        self.pickup(index, window)
        self.dropoff(index)

    def up(self, index: int, window: Any) -> None:
        """Move a forklift one row up."""
        self._step(index, Orientation.UP, window)

    def down(self, index: int, window: Any) -> None:
        """Move a forklift one row down."""
        self._step(index, Orientation.DOWN, window)

    def left(self, index: int, window: Any) -> None:
        """Move a forklift one column left."""
        self._step(index, Orientation.LEFT, window)

    def right(self, index: int, window: Any) -> None:
        """Move a forklift one column right."""
        self._step(index, Orientation.RIGHT, window)

    def run(self, log_file: str | Path, window: Any) -> None:
        """Replay every move of the log, stopping once the window is closing."""
        actions = {
            Orientation.UP: self.up,
            Orientation.DOWN: self.down,
            Orientation.LEFT: self.left,
            Orientation.RIGHT: self.right,
        }
        for move in parse_moves(log_file):
            if window.has_exit:
                return
            actions[move.direction](move.index, window)