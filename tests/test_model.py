import math

import numpy as np
import pytest

from rbgame import transforms
from rbgame.mesh import Material
from rbgame.model import Board, Box, Forklift, Model, Orientation


class RecordingShader:
    def __init__(self):
        self.calls = []

    def use(self):
        self.calls.append(("use",))

    def set_mat4(self, name, mat):
        self.calls.append(("mat4", name, np.array(mat)))

    def set_vec3(self, name, *args):
        self.calls.append(("vec3", name, tuple(args[0]) if len(args) == 1 else args))

    def set_float(self, name, value):
        self.calls.append(("float", name, value))

    def set_int(self, name, value):
        self.calls.append(("int", name, value))

    def values(self, kind, name):
        return [c[2] for c in self.calls if c[0] == kind and c[1] == name]


class FakeMesh:
    def __init__(self, material):
        self.material = material
        self.uploaded = 0
        self.drawn = 0

    def upload(self):
        self.uploaded += 1

    def draw(self):
        self.drawn += 1


def _write_scene(directory):
    (directory / "scene.mtl").write_text("newmtl geel1\nKd 1 0 0\nNs 32\n")
    (directory / "scene.obj").write_text(
        "mtllib scene.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl geel1\nf 1 2 3\n"
    )
    return directory / "scene.obj"


def test_orientation_prints_its_name():
    forklift = Forklift.from_model(Model(), 0, 0, (1.0, 1.0, 1.0))
    assert str(forklift.orientation) == "DOWN"
    forklift.orientation = Orientation.RIGHT
    assert f"{forklift.orientation}" == "RIGHT"


def test_load_reads_meshes_and_directory(tmp_path):
    path = _write_scene(tmp_path)
    eye = transforms.identity()
    model = Model.load(path.as_posix(), eye, eye, eye)
    assert len(model.meshes) == 1
    assert model.directory == tmp_path.as_posix()
    assert model.meshes[0].material.name == "geel1"
    assert [m.name for m in model.materials][1:] == ["geel1"]


def test_load_missing_file_gives_empty_model(tmp_path):
    eye = transforms.identity()
    model = Box.load(tmp_path / "missing.obj", eye, eye, eye)
    assert isinstance(model, Box)
    assert model.meshes == []
    assert model.materials == []


def test_load_keeps_given_matrices(tmp_path):
    path = _write_scene(tmp_path)
    matrix = transforms.translate(transforms.identity(), (1.0, 2.0, 3.0))
    board = Board.load(path, transforms.identity(), transforms.identity(), matrix)
    assert np.allclose(board.model_matrix, matrix)


def test_translate_moves_origin():
    model = Model()
    model.translate((1.0, -2.0, 3.0))
    origin = model.model_matrix @ np.array([0.0, 0.0, 0.0, 1.0])
    assert np.allclose(origin[:3], [1.0, -2.0, 3.0])


def test_rotate_full_turn_is_identity():
    model = Model()
    for _ in range(36):
        model.rotate(math.radians(10.0), (0.0, 1.0, 0.0))
    assert np.allclose(model.model_matrix, np.identity(4), atol=1e-5)


def test_forklift_defaults_face_down():
    forklift = Forklift.from_model(Model(), 3, 5, (0.8, 0.2, 0.2))
    assert forklift.orientation is Orientation.DOWN
    assert (forklift.x, forklift.y) == (3, 5)
    assert forklift.box is None


def test_from_model_shares_geometry_but_not_matrix():
    base = Model(meshes=[FakeMesh(Material(name="m"))])
    forklift = Forklift.from_model(base, 1, 2, (0.2, 0.8, 0.2))
    assert forklift.meshes[0] is base.meshes[0]
    forklift.translate((0.0, 0.0, 1.0))
    assert np.allclose(base.model_matrix, np.identity(4))


def test_forklift_moves_its_box():
    box = Box()
    forklift = Forklift(box=box)
    forklift.translate((0.0, 0.0, 0.1))
    forklift.rotate(math.radians(90.0), (0.0, 1.0, 0.0))
    assert np.allclose(box.model_matrix, forklift.model_matrix)


def test_copy_duplicates_box():
    forklift = Forklift(box=Box(), x=2, y=7)
    dup = forklift.copy()
    dup.translate((1.0, 0.0, 0.0))
    assert np.allclose(forklift.box.model_matrix, np.identity(4))
    assert np.allclose(forklift.model_matrix, np.identity(4))
    assert (dup.x, dup.y) == (2, 7)
    assert not np.allclose(dup.box.model_matrix, np.identity(4))


def test_forklift_draw_colours_highlight_material():
    highlight = Material(name="geel1", kd=(0.5, 0.5, 0.5), ns=8.0)
    other = Material(name="body", kd=(0.1, 0.2, 0.3))
    meshes = [FakeMesh(highlight), FakeMesh(other)]
    forklift = Forklift(meshes=meshes, color=(0.8, 0.2, 0.2))
    shader = RecordingShader()
    forklift.draw(shader, RecordingShader())
    diffuse = shader.values("vec3", "material.diffuse")
    assert diffuse == [(0.8, 0.2, 0.2), (0.1, 0.2, 0.3)]
    assert shader.values("float", "material.shininess") == [8.0, 0.0]
    assert all(m.drawn == 1 for m in meshes)


def test_forklift_draw_draws_box_with_box_shader():
    box = Box(model_matrix=transforms.translate(transforms.identity(), (2.0, 0.0, 3.0)))
    forklift = Forklift(box=box)
    shader, box_shader = RecordingShader(), RecordingShader()
    forklift.draw(shader, box_shader)
    models = box_shader.values("mat4", "model")
    assert len(models) == 1
    assert np.allclose(models[0], box.model_matrix)
    assert np.allclose(shader.values("mat4", "model")[0], np.identity(4))