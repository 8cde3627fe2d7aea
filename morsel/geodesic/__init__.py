"""Geodesic distances on triangle meshes: Dijkstra along edges and the heat method."""