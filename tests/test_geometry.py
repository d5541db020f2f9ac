import pytest

from game.geometry import nearest_obstacle, ray_aabb, ray_sphere, segment_blocked
from game.map_data import Obstacle

FORWARD = (0.0, 0.0, -1.0)


def test_ray_sphere_hits_front_surface():
    t = ray_sphere((0, 0, 0), FORWARD, (0, 0, -5), 1.0)
    assert t == pytest.approx(4.0)


def test_ray_sphere_miss_and_behind():
    assert ray_sphere((0, 0, 0), FORWARD, (0, 3, -5), 1.0) is None
    assert ray_sphere((0, 0, 0), FORWARD, (0, 0, 5), 1.0) is None


def test_ray_sphere_origin_inside_returns_exit():
    t = ray_sphere((0, 0, 0), FORWARD, (0, 0, -0.5), 1.0)
    assert t == pytest.approx(1.5)


def test_ray_aabb_entry_distance():
    t = ray_aabb((0, 1, 0), FORWARD, (-1, 0, -6), (1, 2, -4))
    assert t == pytest.approx(4.0)


def test_ray_aabb_parallel_axis_outside_slab_misses():
    # direction has no y component and origin is above the box
    assert ray_aabb((0, 5, 0), FORWARD, (-1, 0, -6), (1, 2, -4)) is None


def test_ray_aabb_behind_origin():
    assert ray_aabb((0, 1, 0), FORWARD, (-1, 0, 4), (1, 2, 6)) is None


def test_ray_aabb_origin_inside_box_returns_exit():
    t = ray_aabb((0, 1, 0), FORWARD, (-1, 0, -3), (1, 2, 1))
    assert t == pytest.approx(3.0)


def test_ray_aabb_diagonal_miss():
    d = (0.7071067811865476, 0.0, -0.7071067811865476)
    assert ray_aabb((0, 1, 0), d, (-1, 0, -6), (1, 2, -4)) is None


def test_nearest_obstacle_picks_closest_within_range():
    near = Obstacle("near", (0, 1, -4), (2, 2, 1))
    far = Obstacle("far", (0, 1, -10), (2, 2, 1))
    assert nearest_obstacle((0, 1, 0), FORWARD, 50, [far, near]) == pytest.approx(3.5)
    assert nearest_obstacle((0, 1, 0), FORWARD, 3.0, [far, near]) is None
    assert nearest_obstacle((0, 1, 0), FORWARD, 50, []) is None


def test_segment_blocked():
    wall = Obstacle("wall", (0, 1, -4), (4, 2, 0.5))
    assert segment_blocked((0, 1, 0), (0, 1, -8), [wall])
    assert not segment_blocked((0, 1, 0), (0, 1, -2), [wall])
    assert not segment_blocked((0, 5, 0), (0, 5, -8), [wall])
