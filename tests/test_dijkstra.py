import math

import pytest

from morsel.geodesic.dijkstra import DijkstraOptions, dijkstra, dijkstra_multiple

TRIANGLE_VERTICES = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.5, 1.0, 0.0)]
TRIANGLE_FACES = [(0, 1, 2)]


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


def test_single_triangle():
    result = dijkstra(TRIANGLE_VERTICES, TRIANGLE_FACES, 0)
    assert len(result) == 3
    assert result.distance(0) == pytest.approx(0.0, abs=1e-10)
    assert result.distance(1) == pytest.approx(1.0, abs=1e-10)
    expected = math.sqrt(0.5**2 + 1.0**2)
    assert result.distance(2) == pytest.approx(expected, abs=1e-10)


def test_grid():
    vertices, faces = grid_mesh(2)
    result = dijkstra(vertices, faces, 0)
    assert result.distance(0) == pytest.approx(0.0, abs=1e-10)
    assert result.reachable_count() == 9
    corner = result.distance(8)
    assert corner > 0.0
    assert math.isfinite(corner)


def test_path_reconstruction():
    options = DijkstraOptions(store_predecessors=True)
    result = dijkstra(TRIANGLE_VERTICES, TRIANGLE_FACES, 0, options)
    assert result.path_to(0) == [0]
    assert result.path_to(1) == [0, 1]


def test_path_without_predecessors_is_none():
    result = dijkstra(TRIANGLE_VERTICES, TRIANGLE_FACES, 0)
    assert result.path_to(1) is None


def test_max_distance():
    vertices, faces = grid_mesh(3)
    result = dijkstra(vertices, faces, 0, DijkstraOptions(max_distance=1.5))
    assert result.is_reachable(0)
    assert result.is_reachable(1)
    assert result.is_reachable(4)
    assert not result.is_reachable(15)


def test_target():
    vertices, faces = grid_mesh(3)
    result = dijkstra(vertices, faces, 0, DijkstraOptions(target=5))
    assert result.is_reachable(5)
    assert math.isfinite(result.distance(5))


def test_multiple_sources():
    vertices, faces = grid_mesh(2)
    result = dijkstra_multiple(vertices, faces, [0, 8])
    assert result.distance(0) == pytest.approx(0.0, abs=1e-10)
    assert result.distance(8) == pytest.approx(0.0, abs=1e-10)
    assert result.is_reachable(4)


def test_farthest_vertex():
    result = dijkstra(TRIANGLE_VERTICES, TRIANGLE_FACES, 0)
    farthest, dist = result.farthest_vertex()
    assert farthest == 2
    assert dist == pytest.approx(math.sqrt(0.5**2 + 1.0**2), abs=1e-10)


def test_empty_mesh():
    result = dijkstra([], [], 0)
    assert len(result) == 0


def test_no_sources():
    result = dijkstra_multiple(TRIANGLE_VERTICES, TRIANGLE_FACES, [])
    assert result.reachable_count() == 0


def test_preserves_triangle_inequality():
    vertices, faces = grid_mesh(3)
    result = dijkstra(vertices, faces, 0)
    for face in faces:
        for a, b in zip(face, face[1:] + face[:1]):
            edge_len = math.dist(vertices[a], vertices[b])
            assert abs(result.distance(a) - result.distance(b)) <= edge_len + 1e-10


def test_out_of_range_face_index_raises():
    with pytest.raises(ValueError):
        dijkstra(TRIANGLE_VERTICES, [(0, 1, 5)], 0)