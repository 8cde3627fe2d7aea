"""Triangle mesh geometry processing: curvature, geodesic distances, UV parameterization and progress reporting."""

__version__ = "0.1.0"