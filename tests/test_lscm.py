import math

import pytest

from morsel.parameterize.lscm import (
    EmptyMeshError,
    LSCMOptions,
    NoBoundaryError,
    PinnedVertex,
    find_boundary_vertices,
    lscm,
    select_farthest_boundary_pair,
)


def single_triangle():
    return [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.5, 1.0, 0.0)], [(0, 1, 2)]


def disk_mesh():
    vertices = [
        (0.0, 0.0, 0.0),
        (1.0, 0.0, 0.0),
        (0.5, 0.866, 0.0),
        (-0.5, 0.866, 0.0),
        (-1.0, 0.0, 0.0),
        (-0.5, -0.866, 0.0),
        (0.5, -0.866, 0.0),
    ]
    faces = [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 5), (0, 5, 6), (0, 6, 1)]
    return vertices, faces


def grid_mesh(n):
    vertices = [(float(i), float(j), 0.0) for j in range(n + 1) for i in range(n + 1)]
    faces = []
    for j in range(n):
        for i in range(n):
            v00 = j * (n + 1) + i
            v10 = v00 + 1
            v01 = (j + 1) * (n + 1) + i
            v11 = v01 + 1
            faces.append((v00, v10, v11))
            faces.append((v00, v11, v01))
    return vertices, faces


def tetrahedron():
    vertices = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.5, 1.0, 0.0), (0.5, 0.5, 1.0)]
    faces = [(0, 2, 1), (0, 1, 3), (1, 2, 3), (2, 0, 3)]
    return vertices, faces


def test_lscm_single_triangle():
    vertices, faces = single_triangle()
    uv_map = lscm(vertices, faces, LSCMOptions())
    assert len(uv_map) == 3
    for _, (u, v) in uv_map.items():
        assert -0.1 <= u <= 1.1
        assert -0.1 <= v <= 1.1


def test_lscm_result_is_normalized():
    vertices, faces = single_triangle()
    uv_map = lscm(vertices, faces)
    (min_u, min_v), (max_u, max_v) = uv_map.bounding_box()
    assert min_u == pytest.approx(0.0, abs=1e-10)
    assert min_v == pytest.approx(0.0, abs=1e-10)
    assert max(max_u - min_u, max_v - min_v) == pytest.approx(1.0, abs=1e-10)


def test_lscm_disk():
    vertices, faces = disk_mesh()
    uv_map = lscm(vertices, faces, LSCMOptions())
    assert len(uv_map) == 7
    assert all(math.isfinite(u) and math.isfinite(v) for u, v in uv_map)


def test_lscm_grid():
    vertices, faces = grid_mesh(3)
    uv_map = lscm(vertices, faces, LSCMOptions())
    assert len(uv_map) == 16


def test_lscm_closed_mesh_fails():
    vertices, faces = tetrahedron()
    with pytest.raises(NoBoundaryError):
        lscm(vertices, faces, LSCMOptions())


def test_lscm_empty_mesh_fails():
    with pytest.raises(EmptyMeshError):
        lscm([], [], LSCMOptions())


def test_lscm_with_manual_pins():
    vertices, faces = grid_mesh(2)
    options = LSCMOptions.with_pins(PinnedVertex(0, 0.0, 0.0), PinnedVertex(2, 1.0, 0.0))
    uv_map = lscm(vertices, faces, options)
    assert len(uv_map) == 9


def test_lscm_manual_pin_outside_mesh():
    vertices, faces = grid_mesh(2)
    options = LSCMOptions.with_pins(PinnedVertex(0, 0.0, 0.0), PinnedVertex(50, 1.0, 0.0))
    with pytest.raises(IndexError):
        lscm(vertices, faces, options)


def test_lscm_rejects_bad_face_index():
    vertices, _ = single_triangle()
    with pytest.raises(ValueError):
        lscm(vertices, [(0, 1, 7)])


def test_automatic_options_have_no_pins():
    options = LSCMOptions.automatic()
    assert options.pins is None
    assert options.max_iterations == 1000
    assert options.tolerance == 1e-8


def test_find_boundary_vertices():
    assert len(find_boundary_vertices([(0, 1, 2)], 3)) == 3
    assert len(find_boundary_vertices([(0, 1, 2), (1, 3, 2)], 4)) == 4


def test_find_boundary_vertices_grid_excludes_interior():
    _, faces = grid_mesh(2)
    assert find_boundary_vertices(faces, 9) == [0, 1, 2, 3, 5, 6, 7, 8]


def test_find_boundary_vertices_closed_mesh():
    _, faces = tetrahedron()
    assert find_boundary_vertices(faces, 4) == []


def test_select_farthest_pair():
    vertices = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.5, 1.0, 0.0), (2.0, 0.0, 0.0)]
    pin0, pin1 = select_farthest_boundary_pair(vertices, [0, 1, 2, 3])
    assert {pin0.vertex, pin1.vertex} == {0, 3}
    assert (pin0.u, pin0.v) == (0.0, 0.0)
    assert (pin1.u, pin1.v) == (1.0, 0.0)


def test_select_farthest_pair_keeps_first_of_ties():
    vertices, _ = single_triangle()
    pin0, pin1 = select_farthest_boundary_pair(vertices, [0, 1, 2])
    assert (pin0.vertex, pin1.vertex) == (0, 2)


def test_select_farthest_pair_empty_boundary():
    with pytest.raises(ValueError):
        select_farthest_boundary_pair([(0.0, 0.0, 0.0)], [])