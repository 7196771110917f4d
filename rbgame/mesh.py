"""Triangle meshes and materials, loaded from Wavefront OBJ/MTL files.

Loading mirrors the import the renderer relies on: polygons are fan
triangulated, smooth normals are generated where a file has none, tangent
space is computed for textured meshes and texture coordinates are flipped
vertically.  GPU resources are only created by :meth:`Mesh.upload`, so
geometry can be loaded without an OpenGL context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import numpy as np

_log = logging.getLogger(__name__)

MAX_BONE_INFLUENCE = 4
DEFAULT_MATERIAL_NAME = "DefaultMaterial"
_DEFAULT_DIFFUSE = (0.6, 0.6, 0.6)

VERTEX_DTYPE = np.dtype(
    [
        ("position", np.float32, 3),
        ("normal", np.float32, 3),
        ("tex_coords", np.float32, 2),
        ("tangent", np.float32, 3),
        ("bitangent", np.float32, 3),
        ("bone_ids", np.int32, MAX_BONE_INFLUENCE),
        ("bone_weights", np.float32, MAX_BONE_INFLUENCE),
    ]
)

# Shader attribute locations follow this order: (field, components, integer).
_ATTRIBUTES = (
    ("position", 3, False),
    ("normal", 3, False),
    ("tex_coords", 2, False),
    ("tangent", 3, False),
    ("bitangent", 3, False),
    ("bone_ids", MAX_BONE_INFLUENCE, True),
    ("bone_weights", MAX_BONE_INFLUENCE, False),
)

_PIXEL_FORMATS = {"L": "R", "RGB": "RGB", "RGBA": "RGBA"}

# Keeps texture objects alive for as long as their ids may be bound.
_TEXTURES: dict[int, Any] = {}

Vec3 = tuple[float, float, float]
_Corner = tuple[int, Optional[int], Optional[int]]


@dataclass(slots=True)
class Vertex:
    """One vertex as laid out in the vertex buffer."""

    position: Vec3 = (0.0, 0.0, 0.0)
    normal: Vec3 = (0.0, 0.0, 0.0)
    tex_coords: tuple[float, float] = (0.0, 0.0)
    tangent: Vec3 = (0.0, 0.0, 0.0)
    bitangent: Vec3 = (0.0, 0.0, 0.0)
    bone_ids: tuple[int, ...] = (0,) * MAX_BONE_INFLUENCE
    bone_weights: tuple[float, ...] = (0.0,) * MAX_BONE_INFLUENCE


@dataclass(eq=False)
class Material:
    """Surface properties shared by meshes.

    Colours are stored with the green and blue channels exchanged, i.e. as
    ``(r, b, g)``; the shaders are set up for that order.
    """

    name: str = ""
    ns: float = 0.0
    ka: Vec3 = (0.0, 0.0, 0.0)
    kd: Vec3 = _DEFAULT_DIFFUSE
    ks: Vec3 = (0.0, 0.0, 0.0)
    diffuse_maps: list[str] = field(default_factory=list)
    directory: str = "."
    diffuse_textures: list[int] = field(default_factory=list)

    def _load_textures(self) -> None:
        if len(self.diffuse_textures) != len(self.diffuse_maps):
            self.diffuse_textures = [
                texture_from_file(name, self.directory) for name in self.diffuse_maps
            ]


def _swap_gb(color: Vec3) -> Vec3:
    return (color[0], color[2], color[1])


def _color(args: Sequence[str]) -> Vec3:
    values = [float(arg) for arg in args]
    if len(values) == 1:
        return (values[0], values[0], values[0])
    if len(values) == 3:
        return (values[0], values[1], values[2])
    raise ValueError(f"expected 1 or 3 colour components, got {len(values)}")


def load_materials(path: str | Path) -> list[Material]:
    """Parse an MTL material library, returning materials in file order."""
    path = Path(path)
    directory = str(path.parent)
    materials: list[Material] = []
    current: Optional[Material] = None
    for lineno, raw in enumerate(path.read_text().splitlines(), start=1):
        tokens = raw.split()
        if not tokens or tokens[0].startswith("#"):
            continue
        key, args = tokens[0].lower(), tokens[1:]
        if key == "newmtl":
            current = Material(name=" ".join(args), directory=directory)
            materials.append(current)
            continue
        if key not in ("ka", "kd", "ks", "ns", "map_kd"):
            continue
        if current is None:
            raise ValueError(f"{path}:{lineno}: '{tokens[0]}' before any newmtl")
        try:
            if key == "ka":
                current.ka = _swap_gb(_color(args))
            elif key == "kd":
                current.kd = _swap_gb(_color(args))
            elif key == "ks":
                current.ks = _swap_gb(_color(args))
            elif key == "ns":
                current.ns = float(args[0])
            else:
                current.diffuse_maps.append(args[-1])
        except (ValueError, IndexError) as exc:
            raise ValueError(f"{path}:{lineno}: {exc}") from exc
    return materials


def _floats(args: Sequence[str], count: int) -> tuple[float, ...]:
    if len(args) < count:
        raise ValueError(f"expected {count} numbers, got {len(args)}")
    return tuple(float(arg) for arg in args[:count])


def _resolve(token: str, count: int, what: str) -> int:
    index = int(token)
    index = index + count if index < 0 else index - 1
    if not 0 <= index < count:
        raise ValueError(f"{what} index {token} out of range")
    return index


def _corner(token: str, n_pos: int, n_uv: int, n_normal: int) -> _Corner:
    parts = token.split("/")
    if len(parts) > 3 or not parts[0]:
        raise ValueError(f"bad face vertex {token!r}")
    position = _resolve(parts[0], n_pos, "position")
    uv = _resolve(parts[1], n_uv, "texture coordinate") if len(parts) > 1 and parts[1] else None
    normal = _resolve(parts[2], n_normal, "normal") if len(parts) > 2 and parts[2] else None
    return (position, uv, normal)


@dataclass
class _Group:
    material: Optional[str]
    faces: list[list[_Corner]] = field(default_factory=list)


def _load_library(path: Path) -> list[Material]:
    try:
        return load_materials(path)
    except OSError as exc:
        _log.warning("material library %s could not be read: %s", path, exc)
        return []


def load_scene(path: str | Path) -> tuple[list[Material], list[Mesh]]:
    """Load an OBJ file into its materials and triangle meshes.

    The first material is always the default one, used by faces that name no
    known material.  A new mesh starts at every object, group or material
    change.
    """
    path = Path(path)
    directory = path.parent
    default = Material(name=DEFAULT_MATERIAL_NAME, directory=str(directory))
    materials = [default]
    positions: list[tuple[float, ...]] = []
    uvs: list[tuple[float, ...]] = []
    normals: list[tuple[float, ...]] = []
    groups = [_Group(None)]
    for lineno, raw in enumerate(path.read_text().splitlines(), start=1):
        tokens = raw.split()
        if not tokens or tokens[0].startswith("#"):
            continue
        key, args = tokens[0], tokens[1:]
        try:
            if key == "v":
                positions.append(_floats(args, 3))
            elif key == "vt":
                uvs.append(_floats(args[:2] if len(args) > 1 else [*args, "0"], 2))
            elif key == "vn":
                normals.append(_floats(args, 3))
            elif key == "f":
                groups[-1].faces.append(
                    [_corner(token, len(positions), len(uvs), len(normals)) for token in args]
                )
            elif key == "usemtl":
                name = " ".join(args)
                if groups[-1].faces:
                    groups.append(_Group(name))
                else:
                    groups[-1].material = name
            elif key in ("o", "g"):
                if groups[-1].faces:
                    groups.append(_Group(groups[-1].material))
            elif key == "mtllib":
                for library in args:
                    materials.extend(_load_library(directory / library))
        except (ValueError, IndexError) as exc:
            raise ValueError(f"{path}:{lineno}: {exc}") from exc

    by_name: dict[str, Material] = {}
    for material in materials:
        by_name.setdefault(material.name, material)
    meshes = [
        mesh
        for group in groups
        if (
            mesh := _build_mesh(
                group.faces,
                positions,
                uvs,
                normals,
                by_name.get(group.material, default) if group.material else default,
            )
        )
        is not None
    ]
    return materials, meshes


def _normalize_rows(vectors: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    return np.divide(vectors, lengths, out=np.zeros_like(vectors), where=lengths > 0)


def _accumulate(per_triangle: np.ndarray, triangles: np.ndarray, count: int) -> np.ndarray:
    total = np.zeros((count, per_triangle.shape[1]), dtype=np.float64)
    for column in triangles.T:
        np.add.at(total, column, per_triangle)
    return total


def _smooth_normals(pos: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    p0, p1, p2 = (pos[column] for column in triangles.T)
    face_normals = _normalize_rows(np.cross(p1 - p0, p2 - p0))
    per_vertex = _accumulate(face_normals, triangles, len(pos))
    _, inverse = np.unique(pos, axis=0, return_inverse=True)
    inverse = np.asarray(inverse).reshape(-1)
    shared = np.zeros((int(inverse.max()) + 1, 3), dtype=np.float64)
    np.add.at(shared, inverse, per_vertex)
    return _normalize_rows(shared[inverse])


def _tangent_space(
    pos: np.ndarray, normals: np.ndarray, uv: np.ndarray, triangles: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    p0, p1, p2 = (pos[column] for column in triangles.T)
    t0, t1, t2 = (uv[column] for column in triangles.T)
    e1, e2 = p1 - p0, p2 - p0
    d1, d2 = t1 - t0, t2 - t0
    det = d1[:, 0] * d2[:, 1] - d2[:, 0] * d1[:, 1]
    valid = np.abs(det) > 1e-12
    inv = np.zeros_like(det)
    inv[valid] = 1.0 / det[valid]
    tangents = (e1 * d2[:, 1:2] - e2 * d1[:, 1:2]) * inv[:, None]
    bitangents = (e2 * d1[:, 0:1] - e1 * d2[:, 0:1]) * inv[:, None]
    tangent = _accumulate(tangents, triangles, len(pos))
    bitangent = _accumulate(bitangents, triangles, len(pos))
    unit_normals = _normalize_rows(normals)

    def orthogonal(vectors: np.ndarray) -> np.ndarray:
        along = np.sum(unit_normals * vectors, axis=1, keepdims=True)
        return _normalize_rows(vectors - unit_normals * along)

    return orthogonal(tangent), orthogonal(bitangent)


def _build_mesh(
    faces: list[list[_Corner]],
    positions: list[tuple[float, ...]],
    uvs: list[tuple[float, ...]],
    normals: list[tuple[float, ...]],
    material: Material,
) -> Optional[Mesh]:
    polygons = [face for face in faces if len(face) >= 3]
    if not polygons:
        return None
    corners = [corner for face in polygons for corner in face]
    pos = np.array([positions[c[0]] for c in corners], dtype=np.float64)

    triangles: list[tuple[int, int, int]] = []
    base = 0
    for face in polygons:
        triangles.extend((base, base + k, base + k + 1) for k in range(1, len(face) - 1))
        base += len(face)
    tris = np.array(triangles, dtype=np.int64)

    if all(c[2] is not None for c in corners):
        nrm = np.array([normals[c[2]] for c in corners], dtype=np.float64)
    else:
        nrm = _smooth_normals(pos, tris)

    count = len(corners)
    if any(c[1] is not None for c in corners):
        uv = np.array(
            [uvs[c[1]] if c[1] is not None else (0.0, 0.0) for c in corners], dtype=np.float64
        )
        tangent, bitangent = _tangent_space(pos, nrm, uv, tris)
        uv[:, 1] = 1.0 - uv[:, 1]
    else:
        uv = np.zeros((count, 2))
        tangent = np.zeros((count, 3))
        bitangent = np.zeros((count, 3))

    vertices = [
        Vertex(tuple(p), tuple(n), tuple(t), tuple(tg), tuple(bt))
        for p, n, t, tg, bt in zip(
            pos.tolist(), nrm.tolist(), uv.tolist(), tangent.tolist(), bitangent.tolist()
        )
    ]
    return Mesh(vertices, tris.ravel().tolist(), material)


def _pack(vertices: Sequence[Vertex]) -> np.ndarray:
    data = np.zeros(len(vertices), dtype=VERTEX_DTYPE)
    if vertices:
        for name in VERTEX_DTYPE.names:
            data[name] = [getattr(vertex, name) for vertex in vertices]
    return data


class Mesh:
    """Indexed triangle geometry drawn with one material."""

    def __init__(self, vertices: Iterable[Vertex], indices: Iterable[int], material: Material):
        self.vertices = list(vertices)
        self.indices = list(indices)
        self.material = material
        self._gl: Optional[tuple[Any, Any, Any]] = None

    def upload(self) -> None:
        """Create the vertex array, buffers and material textures on the GPU."""
        if self._gl is not None:
            return
        from pyglet import gl
        from pyglet.graphics.vertexarray import VertexArray
        from pyglet.graphics.vertexbuffer import BufferObject

        self.material._load_textures()
        vertex_data = _pack(self.vertices).tobytes()
        index_data = np.asarray(self.indices, dtype=np.uint32).tobytes()

        vao = VertexArray()
        vao.bind()
        ebo = BufferObject(len(index_data), usage=gl.GL_STATIC_DRAW)
        ebo.set_data(index_data)
        ebo.bind(gl.GL_ELEMENT_ARRAY_BUFFER)
        vbo = BufferObject(len(vertex_data), usage=gl.GL_STATIC_DRAW)
        vbo.set_data(vertex_data)
        vbo.bind(gl.GL_ARRAY_BUFFER)

        stride = VERTEX_DTYPE.itemsize
        for location, (name, components, integer) in enumerate(_ATTRIBUTES):
            offset = VERTEX_DTYPE.fields[name][1]
            gl.glEnableVertexAttribArray(location)
            if integer:
                gl.glVertexAttribIPointer(location, components, gl.GL_INT, stride, offset)
            else:
                gl.glVertexAttribPointer(
                    location, components, gl.GL_FLOAT, gl.GL_FALSE, stride, offset
                )
        vao.unbind()
        self._gl = (vao, vbo, ebo)

    def draw(self) -> None:
        """Draw the mesh's triangles with the currently bound program."""
        if self._gl is None:
            raise RuntimeError("mesh has not been uploaded")
        from pyglet import gl

        vao = self._gl[0]
        vao.bind()
        gl.glDrawElements(gl.GL_TRIANGLES, len(self.indices), gl.GL_UNSIGNED_INT, 0)
        vao.unbind()


def _read_pixels(filename: str) -> tuple[int, int, str, bytes]:
    from PIL import Image

    with Image.open(filename) as image:
        if image.mode not in _PIXEL_FORMATS:
            has_alpha = "A" in image.getbands() or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")
        # Rows go bottom to top, as OpenGL expects.
        flipped = image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return flipped.width, flipped.height, _PIXEL_FORMATS[flipped.mode], flipped.tobytes()


def texture_from_file(path: str, directory: str | Path) -> int:
    """Load ``directory/path`` into a mipmapped 2D texture and return its id.

    An image that cannot be read is logged and yields texture id 0.
    """
    filename = f"{directory}/{path}"
    try:
        width, height, fmt, data = _read_pixels(filename)
    except OSError:
        _log.warning("Texture failed to load at path: %s", path)
        return 0

    from pyglet import gl
    from pyglet.image import ImageData

    texture = ImageData(width, height, fmt, data, pitch=width * len(fmt)).get_texture()
    gl.glBindTexture(gl.GL_TEXTURE_2D, texture.id)
    gl.glGenerateMipmap(gl.GL_TEXTURE_2D)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR_MIPMAP_LINEAR)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
    _TEXTURES[texture.id] = texture
    return texture.id