"""
@file geometry.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np
from scipy.spatial import ConvexHull


def near_zero(z):
    """Determines whether a 2x2 determinant is too small to intersect two
    half-plane boundaries

    Args:
        z (float): Determinant of two stacked line normals
    Returns:
        True if the lines are parallel up to tolerance, false otherwise

    Example Input:
        z = np.cross([1.0, 0.0], [2.0, 1e-9])
    Output:
        True
    """
    return abs(z) < 1e-6


def support_polygon(points):
    """Computes the convex hull of a set of planar points

    Args:
        points (ndarray): N x 2 (or N x 3, the z coordinate is dropped) points
    Returns:
        The hull vertices, M x 2, in counter-clockwise order

    Example Input:
        points = np.array([[0, 0], [1, 0], [0.5, 0.2], [1, 1], [0, 1]])
    Output:
        np.array([[0., 0.], [1., 0.], [1., 1.], [0., 1.]])
    """
    points = np.asarray(points, dtype=float)[:, 0:2]
    hull = ConvexHull(points)
    vertices = points[hull.vertices]
    # start from the lowest-leftmost vertex so the order is reproducible
    start = np.lexsort((vertices[:, 0], vertices[:, 1]))[0]
    return np.roll(vertices, -start, axis=0)


def hull_to_halfplanes(vertices, margin=0.0):
    """Converts a counter-clockwise convex polygon into half-planes

    Row i of the result describes the edge from vertex i to vertex i+1:
    A[i].dot(p) <= b[i] holds for every point p inside the polygon. Rows
    are normalized, so margin shrinks the polygon by that distance.

    Args:
        vertices (ndarray): M x 2 vertices in counter-clockwise order
        margin (float): Distance the edges are moved inwards
    Returns:
        A (ndarray): M x 2 unit outward normals
        b (ndarray): M offsets

    Example Input:
        vertices = np.array([[0, 0], [1, 0], [1, 1], [0, 1]])
    Output:
        (np.array([[ 0., -1.], [ 1.,  0.], [ 0.,  1.], [-1.,  0.]]),
         np.array([0., 1., 1., 0.]))
    """
    vertices = np.asarray(vertices, dtype=float)
    edges = np.roll(vertices, -1, axis=0) - vertices
    normals = np.column_stack((edges[:, 1], -edges[:, 0]))
    normals /= np.linalg.norm(normals, axis=1)[:, np.newaxis]
    offsets = np.einsum("ij,ij->i", normals, vertices) - margin
    return normals, offsets


def halfplanes_to_vertices(A, b):
    """Intersects consecutive half-plane boundaries a_i.dot(p) = b_i

    Vertex j is the intersection of line j-1 and line j (Cramer's rule), so
    the output of hull_to_halfplanes() gives back the polygon vertices.

    Args:
        A (ndarray): M x 2 line normals
        b (ndarray): M offsets
    Returns:
        M x 2 intersection points

    Example Input:
        A = np.array([[ 0., -1.], [ 1.,  0.], [ 0.,  1.], [-1.,  0.]])
        b = np.array([0., 1., 1., 0.])
    Output:
        np.array([[0., 0.], [1., 0.], [1., 1.], [0., 1.]])
    """
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float)
    n_lines = A.shape[0]
    points = np.zeros((n_lines, 2))
    for j in range(n_lines):
        i = (j - 1) % n_lines
        det = A[i, 0] * A[j, 1] - A[i, 1] * A[j, 0]
        if near_zero(det):
            raise ValueError("lines %d and %d are parallel" % (i, j))
        points[j, 0] = (b[i] * A[j, 1] - A[i, 1] * b[j]) / det
        points[j, 1] = (A[i, 0] * b[j] - b[i] * A[j, 0]) / det
    return points
