"""Renderable models: the board, the boxes and the forklifts that carry them."""

from __future__ import annotations

import copy as _copy
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import numpy as np

from rbgame import transforms
from rbgame.mesh import Material, Mesh, load_scene

_log = logging.getLogger(__name__)

_HIGHLIGHT_MATERIAL = "geel1"
_LIGHT = (1.0, 1.0, 1.0)


class Orientation(enum.Enum):
    """The direction a forklift faces on the board."""

    UP = enum.auto()
    DOWN = enum.auto()
    LEFT = enum.auto()
    RIGHT = enum.auto()

    def __str__(self) -> str:
        return self.name


def _directory_of(path: str) -> str:
    head, sep, _ = path.rpartition("/")
    return head if sep else path


@dataclass(eq=False)
class Model:
    """Meshes and materials placed in the scene by three transforms."""

    materials: list[Material] = field(default_factory=list)
    meshes: list[Mesh] = field(default_factory=list)
    directory: str = ""
    projection: np.ndarray = field(default_factory=transforms.identity)
    view: np.ndarray = field(default_factory=transforms.identity)
    model_matrix: np.ndarray = field(default_factory=transforms.identity)

    @classmethod
    def load(
        cls,
        path: str | Path,
        projection: np.ndarray,
        view: np.ndarray,
        model_matrix: np.ndarray,
    ) -> "Model":
        """Load a model from an OBJ file.

        A file that cannot be read or parsed is logged and gives a model with
        no meshes.
        """
        path = str(path)
        model = cls(
            projection=np.array(projection, dtype=np.float32),
            view=np.array(view, dtype=np.float32),
            model_matrix=np.array(model_matrix, dtype=np.float32),
        )
        try:
            materials, meshes = load_scene(path)
        except (OSError, ValueError) as exc:
            _log.error("ERROR::ASSIMP:: %s", exc)
            return model
        model.directory = _directory_of(path)
        model.materials = materials
        model.meshes = meshes
        return model

    def translate(self, vector: Any) -> None:
        """Move the model by ``vector`` in its own coordinates."""
        self.model_matrix = transforms.translate(self.model_matrix, vector)

    def rotate(self, angle: float, axis: Any) -> None:
        """Turn the model by ``angle`` radians about ``axis`` in its own coordinates."""
        self.model_matrix = transforms.rotate(self.model_matrix, angle, axis)

    def copy(self) -> "Model":
        """Return a model sharing this one's geometry but with its own transforms."""
        dup = _copy.copy(self)
        dup.materials = list(self.materials)
        dup.meshes = list(self.meshes)
        dup.projection = np.array(self.projection, copy=True)
        dup.view = np.array(self.view, copy=True)
        dup.model_matrix = np.array(self.model_matrix, copy=True)
        self._finish_copy(dup)
        return dup

    def _finish_copy(self, dup: "Model") -> None:
        """Hook for subclasses holding further state that must not be shared."""

    def _set_matrices(self, shader: Any) -> None:
        shader.use()
        shader.set_mat4("projection", self.projection)
        shader.set_mat4("view", self.view)
        shader.set_mat4("model", self.model_matrix)

    def _draw_textured(self, shader: Any) -> None:
        self._set_matrices(shader)
        if not self.meshes:
            return
        from pyglet import gl

        for mesh in self.meshes:
            mesh.upload()
            for unit, texture in enumerate(mesh.material.diffuse_textures):
                gl.glActiveTexture(gl.GL_TEXTURE0 + unit)
                shader.set_int(f"texture_diffuse{unit + 1}", unit)
                gl.glBindTexture(gl.GL_TEXTURE_2D, texture)
            mesh.draw()
            gl.glActiveTexture(gl.GL_TEXTURE0)


@dataclass(eq=False)
class Box(Model):
    """A textured box that forklifts pick up and drop off."""

    def draw(self, shader: Any) -> None:
        """Draw the box with a textured shader."""
        self._draw_textured(shader)


@dataclass(eq=False)
class Board(Model):
    """The textured game board."""

    def draw(self, shader: Any) -> None:
        """Draw the board with a textured shader."""
        self._draw_textured(shader)


@dataclass(eq=False)
class Forklift(Model):
    """A forklift on a board cell, optionally carrying a box."""

    x: int = 0
    y: int = 0
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    orientation: Orientation = Orientation.DOWN
    box: Optional[Box] = None

    @classmethod
    def from_model(cls, model: Model, x: int, y: int, color: Any) -> "Forklift":
        """Make a forklift at cell ``(x, y)`` from a loaded model's geometry."""
        return cls(
            materials=list(model.materials),
            meshes=list(model.meshes),
            directory=model.directory,
            projection=np.array(model.projection, copy=True),
            view=np.array(model.view, copy=True),
            model_matrix=np.array(model.model_matrix, copy=True),
            x=int(x),
            y=int(y),
            color=tuple(float(c) for c in color),
        )

    def _finish_copy(self, dup: Model) -> None:
        if self.box is not None:
            dup.box = self.box.copy()

    def translate(self, vector: Any) -> None:
        """Move the forklift, and the box it carries, by ``vector``."""
        super().translate(vector)
        if self.box is not None:
            self.box.translate(vector)

    def rotate(self, angle: float, axis: Any) -> None:
        """Turn the forklift, and the box it carries, about ``axis``."""
        super().rotate(angle, axis)
        if self.box is not None:
            self.box.rotate(angle, axis)

    def draw(self, shader: Any, box_shader: Any) -> None:
        """Draw the forklift in its colour, then any box it carries."""
        self._set_matrices(shader)
        for mesh in self.meshes:
            material = mesh.material
            shader.set_vec3("material.ambient", material.kd)
            if material.name == _HIGHLIGHT_MATERIAL:
                shader.set_vec3("material.diffuse", self.color)
            else:
                shader.set_vec3("material.diffuse", material.kd)
            shader.set_vec3("material.specular", material.kd)
            shader.set_float("material.shininess", material.ns)
            shader.set_vec3("light.ambient", _LIGHT)
            shader.set_vec3("light.diffuse", _LIGHT)
            shader.set_vec3("light.specular", _LIGHT)
            mesh.upload()
            mesh.draw()
        if self.box is not None:
            self.box.draw(box_shader)