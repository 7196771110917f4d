"""GLSL program loading and uniform helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

import numpy as np

T = TypeVar("T")

_RULE = "\n -- --------------------------------------------------- -- "


class ShaderError(RuntimeError):
    """Raised when shader sources cannot be read, compiled or linked."""


def check_compile_errors(shader: Callable[[], T], kind: str) -> T:
    """Run a compile (or, for ``"PROGRAM"``, link) step and return its result.

    Any failure of the step is raised as :class:`ShaderError` carrying the
    driver's log.
    """
    try:
        return shader()
    except Exception as exc:  # the GL layer reports failures with its own types
        if kind != "PROGRAM":
            label = "SHADER_COMPILATION_ERROR"
        else:
            label = "PROGRAM_LINKING_ERROR"
        raise ShaderError(f"ERROR::{label} of type: {kind}\n{exc}{_RULE}") from exc


def read_shader_sources(vertex_path: str | Path, fragment_path: str | Path) -> tuple[str, str]:
    """Return the vertex and fragment shader source texts."""
    try:
        vertex_code = Path(vertex_path).read_text()
        fragment_code = Path(fragment_path).read_text()
    except OSError as exc:
        raise ShaderError(f"ERROR::SHADER::FILE_NOT_SUCCESSFULLY_READ: {exc}") from exc
    return vertex_code, fragment_code


def _compile_program(vertex_code: str, fragment_code: str) -> Any:
    from pyglet.graphics.shader import Shader as _GLShader
    from pyglet.graphics.shader import ShaderProgram

    vertex = check_compile_errors(lambda: _GLShader(vertex_code, "vertex"), "VERTEX")
    fragment = check_compile_errors(lambda: _GLShader(fragment_code, "fragment"), "FRAGMENT")
    program = check_compile_errors(lambda: ShaderProgram(vertex, fragment), "PROGRAM")
    # The stages are part of the linked program now.
    vertex.delete()
    fragment.delete()
    return program


def setup_shader(vertex_path: str | Path, fragment_path: str | Path) -> "Shader":
    """Read, compile and link a shader program from two source files."""
    vertex_code, fragment_code = read_shader_sources(vertex_path, fragment_path)
    return Shader(_compile_program(vertex_code, fragment_code))


def _floats(args: Sequence[Any], count: int) -> tuple[float, ...]:
    values = args[0] if len(args) == 1 else args
    flat = tuple(float(v) for v in np.asarray(values, dtype=np.float64).ravel())
    if len(flat) != count:
        raise TypeError(f"expected {count} components, got {len(flat)}")
    return flat


def _column_major(mat: Any, size: int) -> tuple[float, ...]:
    arr = np.asarray(mat, dtype=np.float64)
    if arr.shape != (size, size):
        raise ValueError(f"expected a {size}x{size} matrix, got shape {arr.shape}")
    return tuple(float(v) for v in arr.ravel(order="F"))


class Shader:
    """A linked shader program with typed uniform setters.

    ``program`` is any object offering ``use()``, a ``uniforms`` mapping of
    active uniform names, and item assignment of uniform values.  Setting a
    uniform that the program does not use has no effect.
    """

    def __init__(self, program: Any) -> None:
        self.program = program

    def use(self) -> None:
        """Make this program current."""
        self.program.use()

    def _set(self, name: str, value: Any) -> None:
        if name in self.program.uniforms:
            self.program[name] = value

    def set_bool(self, name: str, value: bool) -> None:
        self._set(name, int(bool(value)))

    def set_int(self, name: str, value: int) -> None:
        self._set(name, int(value))

    def set_float(self, name: str, value: float) -> None:
        self._set(name, float(value))

    def set_vec2(self, name: str, *args: Any) -> None:
        """Set a vec2 from one 2-sequence or from two numbers."""
        self._set(name, _floats(args, 2))

    def set_vec3(self, name: str, *args: Any) -> None:
        """Set a vec3 from one 3-sequence or from three numbers."""
        self._set(name, _floats(args, 3))

    def set_vec4(self, name: str, *args: Any) -> None:
        """Set a vec4 from one 4-sequence or from four numbers."""
        self._set(name, _floats(args, 4))

    def set_mat2(self, name: str, mat: Any) -> None:
        self._set(name, _column_major(mat, 2))

    def set_mat3(self, name: str, mat: Any) -> None:
        self._set(name, _column_major(mat, 3))

    def set_mat4(self, name: str, mat: Any) -> None:
        self._set(name, _column_major(mat, 4))