"""UV parameterization of triangle meshes with boundary (LSCM, ARAP), UV maps and a sparse solver."""