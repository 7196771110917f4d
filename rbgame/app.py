"""Command-line entry point: open a window and replay a game log on the board."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Optional, Sequence

from rbgame.game import CLEAR_COLOR, SCR_HEIGHT, SCR_WIDTH, Game
from rbgame.shader import ShaderError

WINDOW_TITLE = "RBGAME"
GL_VERSION = (4, 6)
_POLL_INTERVAL = 0.01


def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    """Parse the command line: the game log to replay and the asset root."""
    parser = argparse.ArgumentParser(
        prog="rbgame",
        description="Replay a logged robot game as an animated 3D board.",
    )
    parser.add_argument("log_file", help="game log to replay")
    parser.add_argument(
        "--root",
        default=".",
        help="directory holding the assets/ and shaders/ folders (default: current directory)",
    )
    return parser.parse_args(argv)


def _create_window() -> Any:
    import pyglet
    from pyglet import gl

    config = gl.Config(
        major_version=GL_VERSION[0],
        minor_version=GL_VERSION[1],
        forward_compatible=sys.platform == "darwin",
        double_buffer=True,
        depth_size=24,
    )
    window = pyglet.window.Window(
        SCR_WIDTH, SCR_HEIGHT, caption=WINDOW_TITLE, resizable=True, config=config
    )
    window.set_exclusive_mouse(True)
    gl.glEnable(gl.GL_DEPTH_TEST)
    gl.glClearColor(*CLEAR_COLOR)
    return window


def _wait_for_close(window: Any, poll_interval: float = _POLL_INTERVAL) -> None:
    """Keep handling window events until the user closes the window or presses Escape."""
    while not window.has_exit:
        window.dispatch_events()
        if not window.has_exit:
            time.sleep(poll_interval)


def _replay(game: Any, log_file: str | Path, window: Any, poll_interval: float = _POLL_INTERVAL) -> None:
    """Replay the log, then leave the last frame up until the window is closed."""
    game.run(log_file, window)
    _wait_for_close(window, poll_interval)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the viewer; return the process exit status."""
    args = parse_args(argv)
    log_file = Path(args.log_file)
    if not log_file.is_file():
        print("Failed to open file.", file=sys.stderr)
        return 1

    import pyglet

    try:
        window = _create_window()
    except (pyglet.window.WindowException, pyglet.gl.ContextException) as exc:
        print(f"Failed to create window: {exc}", file=sys.stderr)
        return 1

    try:
        try:
            game = Game(log_file, root=args.root)
        except (OSError, ValueError) as exc:
            print(f"Failed to open file: {exc}", file=sys.stderr)
            return 1
        except ShaderError as exc:
            print(exc, file=sys.stderr)
            return 1
        _replay(game, log_file, window)
    finally:
        window.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())