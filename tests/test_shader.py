import numpy as np
import pytest

from rbgame.shader import (
    Shader,
    ShaderError,
    check_compile_errors,
    read_shader_sources,
    setup_shader,
)
from rbgame.transforms import identity, translate


class FakeProgram:
    def __init__(self, *names):
        self.uniforms = {name: {} for name in names}
        self.values = {}
        self.use_count = 0

    def use(self):
        self.use_count += 1

    def __setitem__(self, key, value):
        self.values[key] = value


def test_use_activates_program():
    program = FakeProgram()
    Shader(program).use()
    assert program.use_count == 1


def test_set_float_and_int():
    program = FakeProgram("material.shininess", "texture_diffuse1")
    shader = Shader(program)
    shader.set_float("material.shininess", 32)
    shader.set_int("texture_diffuse1", 0)
    assert program.values == {"material.shininess": 32.0, "texture_diffuse1": 0}


def test_set_bool_stores_integer():
    program = FakeProgram("flag")
    Shader(program).set_bool("flag", True)
    assert program.values["flag"] == 1


def test_unknown_uniform_is_ignored():
    program = FakeProgram("known")
    Shader(program).set_float("missing", 1.0)
    assert program.values == {}


def test_vec3_from_components_matches_sequence():
    program = FakeProgram("light.ambient")
    shader = Shader(program)
    shader.set_vec3("light.ambient", 0.2, 0.8, 0.2)
    from_components = program.values["light.ambient"]
    shader.set_vec3("light.ambient", (0.2, 0.8, 0.2))
    assert program.values["light.ambient"] == from_components == (0.2, 0.8, 0.2)


def test_vec2_and_vec4_lengths():
    program = FakeProgram("a", "b")
    shader = Shader(program)
    shader.set_vec2("a", 1, 2)
    shader.set_vec4("b", np.array([1.0, 2.0, 3.0, 4.0]))
    assert program.values["a"] == (1.0, 2.0)
    assert program.values["b"] == (1.0, 2.0, 3.0, 4.0)


def test_vector_with_wrong_count_raises():
    shader = Shader(FakeProgram("v"))
    with pytest.raises(TypeError):
        shader.set_vec3("v", 1.0, 2.0)


def test_mat4_is_column_major():
    program = FakeProgram("model")
    Shader(program).set_mat4("model", translate(identity(), (1.0, 2.0, 3.0)))
    values = program.values["model"]
    assert len(values) == 16
    assert values[12:15] == pytest.approx((1.0, 2.0, 3.0))


def test_mat2_and_mat3_are_column_major():
    program = FakeProgram("m2", "m3")
    shader = Shader(program)
    m2 = np.array([[1.0, 2.0], [3.0, 4.0]])
    shader.set_mat2("m2", m2)
    shader.set_mat3("m3", np.eye(3))
    assert program.values["m2"][:2] == tuple(m2[:, 0])
    assert program.values["m3"] == tuple(np.eye(3).ravel())


def test_matrix_with_wrong_shape_raises():
    shader = Shader(FakeProgram("m"))
    with pytest.raises(ValueError):
        shader.set_mat3("m", np.eye(4))


def test_check_compile_errors_returns_result():
    assert check_compile_errors(lambda: 42, "VERTEX") == 42


def test_check_compile_errors_reports_stage():
    def failing():
        raise RuntimeError("syntax error at line 3")

    with pytest.raises(ShaderError) as info:
        check_compile_errors(failing, "FRAGMENT")
    message = str(info.value)
    assert "SHADER_COMPILATION_ERROR of type: FRAGMENT" in message
    assert "syntax error at line 3" in message
    assert isinstance(info.value.__cause__, RuntimeError)


def test_check_compile_errors_reports_link_failure():
    def failing():
        raise RuntimeError("unresolved symbol")

    with pytest.raises(ShaderError, match="PROGRAM_LINKING_ERROR of type: PROGRAM"):
        check_compile_errors(failing, "PROGRAM")


def test_read_shader_sources(tmp_path):
    vs = tmp_path / "a.vs"
    fs = tmp_path / "a.fs"
    vs.write_text("void main() { gl_Position = vec4(0.0); }\n")
    fs.write_text("void main() {}\n")
    assert read_shader_sources(vs, fs) == (vs.read_text(), fs.read_text())


def test_read_shader_sources_missing_file(tmp_path):
    vs = tmp_path / "a.vs"
    vs.write_text("void main() {}\n")
    with pytest.raises(ShaderError, match="FILE_NOT_SUCCESSFULLY_READ"):
        read_shader_sources(vs, tmp_path / "missing.fs")


def test_setup_shader_missing_files(tmp_path):
    with pytest.raises(ShaderError, match="FILE_NOT_SUCCESSFULLY_READ"):
        setup_shader(tmp_path / "none.vs", tmp_path / "none.fs")