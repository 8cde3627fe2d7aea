# morsel

Geometry processing for triangle meshes. A mesh is passed to every function
as two plain sequences: vertex positions (`(x, y, z)` triples) and faces
(triples of vertex indices). NumPy arrays of shape `(n, 3)` work as well.

## What it provides

- `morsel.curvature`
  - `compute_curvature(vertices, faces)` returns a `CurvatureResult` with
    per-vertex Gaussian curvature (`gaussian(v)`), signed mean curvature
    (`mean(v)`), principal curvatures (`principal(v)` gives `(k1, k2)` with
    `k1 >= k2`), `shape_index(v)` and `curvedness(v)`. The raw arrays are in
    `gaussian_values`, `mean_values`, `principal_max` and `principal_min`.
  - `gaussian_curvature(vertices, faces)` and `mean_curvature(vertices, faces)`
    return lists with one value per vertex.
  - `mixed_area(vertices, faces, v)` gives the mixed Voronoi area of a vertex.
- `morsel.geodesic.dijkstra`
  - `dijkstra(vertices, faces, source, options)` and
    `dijkstra_multiple(vertices, faces, sources, options)` compute shortest
    distances along mesh edges. `DijkstraOptions` has `store_predecessors`,
    `max_distance` and `target`.
- `morsel.geodesic.heat`
  - `heat_method(vertices, faces, source, options)` and
    `heat_method_multiple(vertices, faces, sources, options)` compute smooth
    approximate geodesic distances, shifted so the smallest is zero.
    `HeatMethodOptions` has `time_step` (squared mean edge length when
    `None`), `max_cg_iterations` and `cg_tolerance`.
- `morsel.geodesic.result.GeodesicResult`, returned by both geodesic methods:
  `distance(v)`, `is_reachable(v)`, `reachable_count()`, `farthest_vertex()`,
  `path_to(target)` (only when predecessors were stored), iteration over
  `(vertex, distance)` pairs and `reachable()` for the finite ones.
- `morsel.parameterize.lscm`
  - `lscm(vertices, faces, options)` computes a least squares conformal map.
    `LSCMOptions` has `pins` (a pair of `PinnedVertex(vertex, u, v)`; by
    default the two farthest boundary vertices are pinned), `max_iterations`
    and `tolerance`; `LSCMOptions.with_pins(pin0, pin1)` and
    `LSCMOptions.automatic()` build them.
  - `find_boundary_vertices(faces, n_vertices)` and
    `select_farthest_boundary_pair(vertices, boundary)`.
- `morsel.parameterize.arap`
  - `arap(vertices, faces, options)` computes an as-rigid-as-possible map.
    `ARAPOptions` has `iterations`, `max_cg_iterations`, `cg_tolerance` and
    `use_lscm_init` (a Tutte embedding is used when it is false).
  - `closest_rotation(m)` and `tutte_embedding(faces, n_vertices, boundary)`.
- `morsel.parameterize.uv.UVMap`: the UV coordinates returned by `lscm` and
  `arap`, held in `coords` (an `(n, 2)` array). It supports indexing,
  `len()`, iteration, `items()`, `bounding_box()`, `normalize()`,
  `normalize_stretch()`, `total_area(faces)` and `UVMap.zeros(n)`.
- `morsel.parameterize.sparse`: `CsrMatrix.from_triplets(rows, cols,
  triplets)` (duplicates are summed), `nrows`, `ncols`, `nnz`, `mul_vec(x)`
  or `matrix @ x`, and `conjugate_gradient(a, b, x0, max_iter, tolerance)`.
- `morsel.progress.Progress`: wraps a `callback(current, total, message)`
  with `report(...)` and `report_sub(...)`; `Progress.none()` discards
  updates.

## Errors

- `NoBoundaryError` (from `morsel.parameterize.lscm`): `lscm` or `arap` was
  given a closed mesh.
- `EmptyMeshError`: `lscm` or `arap` was given a mesh without vertices.
- `ConvergenceError` (from `morsel.parameterize.sparse`): a conjugate
  gradient solve did not converge; its `iterations` attribute holds the limit.
- `ValueError` for faces that refer to vertices that do not exist, and
  `IndexError` for source or pinned vertices outside the mesh.

## Installation

```
pip install .
```

## Example

```python
from morsel.curvature import compute_curvature
from morsel.geodesic.dijkstra import DijkstraOptions, dijkstra
from morsel.parameterize.lscm import lscm

vertices = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.5, 1.0, 0.0)]
faces = [(0, 1, 2)]

result = dijkstra(vertices, faces, 0, DijkstraOptions(store_predecessors=True))
print(result.distance(2), result.path_to(1))

uv = lscm(vertices, faces)
for vertex, (u, v) in uv.items():
    print(vertex, u, v)

curvature = compute_curvature(vertices, faces)
print(curvature.gaussian(0), curvature.mean(0))
```

## What it does not do

The package works only on meshes already held in memory as vertex and face
lists. It does not read or write mesh files, has no mesh data structure of
its own with connectivity queries, offers no mesh editing operations such as
decimation, smoothing, remeshing or subdivision, and has no command-line
tool or viewer.

## Running the tests

```
pip install .[test]
pytest
```