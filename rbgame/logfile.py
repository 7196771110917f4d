"""Reading robot start positions and moves from a game log."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from rbgame.model import Orientation

_HEADER = re.compile(r"game starts with (\d) number robots per player")
_MOVE = re.compile(r"([RBG]) robot (\d) go (down|right|left|up)")
_START = re.compile(r"([RBG]) robot \d in position \[(\d),(\d)\]")

# Robots are numbered team by team in this order.
TEAM_ORDER = {"R": 0, "B": 1, "G": 2}

TEAM_COLORS = {
    "R": (0.8, 0.2, 0.2),
    "G": (0.2, 0.8, 0.2),
    "B": (0.2, 0.2, 0.8),
}


@dataclass(frozen=True)
class RobotMove:
    """One step of one robot: ``index`` counts robots team by team from 0."""

    index: int
    direction: Orientation


@dataclass(frozen=True)
class RobotStart:
    """Where a robot of team ``team`` (``"R"``, ``"G"`` or ``"B"``) starts."""

    team: str
    x: int
    y: int

    @property
    def rgb(self) -> tuple[float, float, float]:
        """The colour the team's forklifts are painted in."""
        return TEAM_COLORS[self.team]


def parse_moves(path: str | Path) -> list[RobotMove]:
    """Return the moves of a log in the order they were made.

    The first line must state the number of robots per player; it is needed
    to turn a team and robot number into a robot index.
    """
    with open(path) as log:
        header = _HEADER.search(log.readline())
        if header is None:
            raise ValueError(f"{path}: first line does not give the number of robots per player")
        per_player = int(header.group(1))
        moves = []
        for line in log:
            match = _MOVE.search(line)
            if match is None:
                continue
            team, number, direction = match.groups()
            index = per_player * TEAM_ORDER[team] + int(number) - 1
            if index < 0:
                raise ValueError(f"{path}: no robot {team} {number}")
            moves.append(RobotMove(index, Orientation[direction.upper()]))
    return moves


def parse_starting_positions(path: str | Path) -> list[RobotStart]:
    """Return the starting cell of every robot, in the order the log lists them."""
    with open(path) as log:
        return [
            RobotStart(match.group(1), int(match.group(2)), int(match.group(3)))
            for match in map(_START.search, log)
            if match is not None
        ]