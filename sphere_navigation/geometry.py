import numpy as np


def as_position(values):
    """Return a float copy of a 3-component ``(x, y, z)`` position."""
    position = np.array(values, dtype=np.float64)
    if position.shape != (3,):
        raise ValueError(f"Position needs three components, got shape {position.shape}.")
    return position


def planar(position):
    """Project a position onto the floor plane.

    Args:
        position (Sequence[float]): ``(x, y, z)`` position. ``y`` is the vertical axis.

    Returns:
        np.ndarray: ``[x, z]``.
    """
    return np.array([position[0], position[2]], dtype=np.float64)


def planar_distance(a, b):
    """Return the euclidean distance between two positions, ignoring height.

    Args:
        a (Sequence[float]): First ``(x, y, z)`` position.
        b (Sequence[float]): Second ``(x, y, z)`` position.

    Returns:
        float: Distance on the floor plane.
    """
    return float(np.linalg.norm(planar(b) - planar(a)))


def planar_direction(origin, destination):
    """Return the unit floor-plane vector pointing from ``origin`` to ``destination``.

    Coincident points give the zero vector instead of dividing by zero.

    Returns:
        np.ndarray: ``[dx, dz]`` with norm 1 or 0.
    """
    delta = planar(destination) - planar(origin)
    norm = np.linalg.norm(delta)
    if norm == 0.0:
        return np.zeros(2)
    return delta / norm


def alignment(u, v):
    """Normalized dot product of two planar vectors.

    Args:
        u (Sequence[float]): First 2D vector.
        v (Sequence[float]): Second 2D vector.

    Returns:
        float: Cosine of the angle between ``u`` and ``v`` in [-1, 1],
            or 0.0 if either vector has zero length.
    """
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    norm_u = np.linalg.norm(u)
    norm_v = np.linalg.norm(v)
    if norm_u == 0.0 or norm_v == 0.0:
        return 0.0
    return float(np.clip(np.dot(u, v) / (norm_u * norm_v), -1.0, 1.0))
