[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "morsel"
version = "0.1.0"
description = "Triangle mesh geometry processing: curvature, geodesic distances and UV parameterization"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = [
    "mesh",
    "geometry",
    "curvature",
    "geodesic",
    "heat-method",
    "parameterization",
    "lscm",
    "arap",
    "sparse",
    "conjugate-gradient",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["morsel"]

[tool.pytest.ini_options]
addopts = "-ra"
