# rbgame

A 3D replay viewer for robot game logs. Forklift robots of three teams
(red, blue and green) drive around a board, pick up boxes from the
pickup cells in row 7 of the board and drop them on the yellow cells at
its edges. `rbgame` reads the log of such a game and plays every move
back as an animation in an OpenGL window.

## Installation

```
pip install .
```

The viewer needs a display with OpenGL 4.6 support.

## Usage

```
rbgame path/to/game.log
rbgame path/to/game.log --root path/to/data
```

`--root` names the directory that holds the `assets/` and `shaders/`
folders (default: the current directory). The files looked for there are:

- `assets/board/board.obj`, `assets/forklift/forklift.obj`,
  `assets/box/box.obj` (Wavefront OBJ, with their MTL libraries and
  textures)
- `shaders/notexture.vs`, `shaders/notexture.fs`,
  `shaders/withtexture.vs`, `shaders/withtexture.fs`

When the replay is over the last frame stays up. Press Escape or close
the window to stop, at any time. The command exits with status 1 if the
log file does not exist, the window cannot be created, a log or shader
file cannot be read, or a shader fails to compile or link.

## Log format

The first line states how many robots each player has:

```
game starts with 2 number robots per player
```

Lines giving each robot's starting cell place the forklifts on the board,
in the order they appear:

```
R robot 1 in position [4,3]
```

Lines describing moves drive the replay, in the order they appear:

```
R robot 1 go up
B robot 2 go left
```

Colours are `R`, `B` and `G`; directions are `up`, `down`, `left` and
`right`; robot numbers and coordinates are single digits. Other lines
are ignored. A move of robot `n` of a team addresses robot index
`robots_per_player * team + n - 1`, with teams counted in the order
`R`, `B`, `G`.

## Library use

The log parsing works on its own, without OpenGL:

```python
from rbgame.logfile import parse_moves, parse_starting_positions

starts = parse_starting_positions("game.log")  # [RobotStart(team, x, y), ...]
moves = parse_moves("game.log")                # [RobotMove(index, direction), ...]
```

`parse_moves` raises `ValueError` if the first line does not give the
number of robots per player. `RobotMove.direction` is a
`rbgame.model.Orientation`; `RobotStart.rgb` is the team's colour.

Other modules:

- `rbgame.transforms`: 4x4 matrix helpers on numpy arrays (`identity`,
  `perspective`, `look_at`, `scale`, `translate`, `rotate`).
- `rbgame.mesh`: `load_scene` and `load_materials` read OBJ and MTL files
  into `Mesh` and `Material` objects; nothing touches the GPU until
  `Mesh.upload()` is called.
- `rbgame.shader`: `setup_shader` builds a `Shader` from a vertex and a
  fragment source file, raising `ShaderError` on failure.
- `rbgame.model`: `Model`, `Board`, `Box` and `Forklift`; a forklift moves
  and turns the box it carries along with it.
- `rbgame.game`: `Game` holds the board, forklifts and boxes and replays a
  log with `Game.run(log_file, window)`. Its shaders are built from the
  shader files (which needs a current OpenGL context) unless given with
  `shaders=`. The window must offer `dispatch_events()`, `clear()`,
  `flip()` and a `has_exit` flag, as a pyglet window does.

## What it does not do

`rbgame` only replays logs; it does not play, judge or generate games.
It ships no models, textures or shaders: the `assets/` and `shaders/`
folders must be provided. Models are read from OBJ/MTL files only.

## Development

```
pip install -e ".[test]"
pytest
```