import pytest

from rbgame.logfile import RobotMove, RobotStart, parse_moves, parse_starting_positions
from rbgame.model import Orientation


def write(tmp_path, text):
    path = tmp_path / "game.log"
    path.write_text(text)
    return path


def test_moves_index_robots_team_by_team(tmp_path):
    path = write(
        tmp_path,
        "game starts with 2 number robots per player\n"
        "R robot 1 go up\n"
        "R robot 2 go up\n"
        "B robot 1 go up\n"
        "B robot 2 go up\n"
        "G robot 1 go up\n"
        "G robot 2 go up\n",
    )
    moves = parse_moves(path)
    assert [move.index for move in moves] == list(range(6))


def test_moves_directions_follow_log(tmp_path):
    path = write(
        tmp_path,
        "game starts with 1 number robots per player\n"
        "R robot 1 go down\n"
        "R robot 1 go left\n"
        "R robot 1 go right\n"
        "R robot 1 go up\n",
    )
    assert [move.direction for move in parse_moves(path)] == [
        Orientation.DOWN,
        Orientation.LEFT,
        Orientation.RIGHT,
        Orientation.UP,
    ]


def test_moves_ignore_other_lines_and_find_moves_inside_text(tmp_path):
    path = write(
        tmp_path,
        "game starts with 1 number robots per player\n"
        "R robot 1 in position [4,6]\n"
        "nothing here\n"
        "turn 3: R robot 1 go up now\n",
    )
    assert parse_moves(path) == [RobotMove(0, Orientation.UP)]


def test_moves_need_header_on_first_line(tmp_path):
    path = write(
        tmp_path,
        "R robot 1 go up\n"
        "game starts with 1 number robots per player\n",
    )
    with pytest.raises(ValueError):
        parse_moves(path)


def test_moves_of_empty_log_fail(tmp_path):
    with pytest.raises(ValueError):
        parse_moves(write(tmp_path, ""))


def test_moves_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_moves(tmp_path / "absent.log")


def test_starting_positions_in_log_order(tmp_path):
    path = write(
        tmp_path,
        "game starts with 1 number robots per player\n"
        "R robot 1 in position [4,6]\n"
        "R robot 1 go up\n"
        "B robot 1 in position [1,2]\n"
        "G robot 1 in position [6,3]\n",
    )
    assert parse_starting_positions(path) == [
        RobotStart("R", 4, 6),
        RobotStart("B", 1, 2),
        RobotStart("G", 6, 3),
    ]


def test_starting_position_colours(tmp_path):
    path = write(
        tmp_path,
        "R robot 1 in position [0,0]\n"
        "G robot 1 in position [0,0]\n"
        "B robot 1 in position [0,0]\n",
    )
    starts = parse_starting_positions(path)
    assert [start.rgb for start in starts] == [
        (0.8, 0.2, 0.2),
        (0.2, 0.8, 0.2),
        (0.2, 0.2, 0.8),
    ]


def test_starting_positions_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_starting_positions(tmp_path / "absent.log")