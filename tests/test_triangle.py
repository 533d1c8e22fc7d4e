import numpy as np
import pytest

from raybvh.utils.geometry import Ray, Triangle, add_floor, scene_bounds, triangles_from_mesh
from raybvh.utils.vec3 import cross, dot, hmax, hmin, length, normalize, vec3


def test_hit_and_miss_along_z():
    tri = Triangle((-0.5, -0.5, 0.0), (0.0, 0.5, 0.0), (0.5, -0.5, 0.0))
    away = Ray((0.0, 0.0, -0.5), (0.0, 0.0, -1.0))
    assert tri.intersect(away, 0.0, 1.0) is None

    towards = Ray((0.0, 0.0, -0.5), (0.0, 0.0, 1.0))
    hit = tri.intersect(towards, 0.0, 1.0)
    assert hit is not None
    assert abs(hit.t - 0.5) < 1e-3
    np.testing.assert_allclose(hit.position, [0.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(hit.normal, [0.0, 0.0, -1.0])


def test_centroid_hit_at_plane_distance():
    v0, v1, v2 = (0.0, 0.0, 2.0), (1.0, 0.0, 2.0), (0.0, 1.0, 2.0)
    tri = Triangle(v0, v1, v2)
    c = np.mean([v0, v1, v2], axis=0)
    ray = Ray((c[0], c[1], 0.0), (0.0, 0.0, 1.0))
    hit = tri.intersect(ray, 0.0, 10.0)
    assert hit is not None
    assert hit.t == pytest.approx(2.0, abs=1e-12)
    np.testing.assert_allclose(hit.position, c, atol=1e-12)
    np.testing.assert_allclose(hit.normal, [0.0, 0.0, 1.0])


def test_miss_outside_footprint():
    tri = Triangle((0.0, 0.0, 2.0), (1.0, 0.0, 2.0), (0.0, 1.0, 2.0))
    for origin in [(2.0, 2.0, 0.0), (0.8, 0.8, 0.0), (-0.1, 0.5, 0.0), (0.5, -0.1, 0.0)]:
        assert tri.intersect(Ray(origin, (0.0, 0.0, 1.0)), 0.0, 10.0) is None


def test_window_excludes_plane():
    tri = Triangle((0.0, 0.0, 2.0), (1.0, 0.0, 2.0), (0.0, 1.0, 2.0))
    ray = Ray((0.2, 0.2, 0.0), (0.0, 0.0, 1.0))
    assert tri.intersect(ray, 0.0, 1.9) is None
    assert tri.intersect(ray, 2.1, 10.0) is None
    assert tri.intersect(ray, 0.0, 2.1) is not None


def test_oblique_ray():
    tri = Triangle((-1.0, -1.0, 0.0), (1.0, -1.0, 0.0), (0.0, 1.0, 0.0))
    d = normalize((0.0, 1.0, 1.0))
    ray = Ray((0.0, -1.0, -1.0), d)
    hit = tri.intersect(ray, 0.0, 10.0)
    assert hit is not None
    assert hit.t == pytest.approx(np.sqrt(2.0))
    np.testing.assert_allclose(hit.position, [0.0, 0.0, 0.0], atol=1e-12)


def test_normal_follows_winding():
    a, b, c = (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)
    ray = Ray((0.2, 0.2, 1.0), (0.0, 0.0, -1.0))
    h1 = Triangle(a, b, c).intersect(ray, 0.0, 5.0)
    h2 = Triangle(a, c, b).intersect(ray, 0.0, 5.0)
    np.testing.assert_allclose(h1.normal, [0.0, 0.0, 1.0])
    np.testing.assert_allclose(h2.normal, [0.0, 0.0, -1.0])
    assert h1.t == pytest.approx(h2.t)


def test_degenerate_and_in_plane_rays_miss():
    line = Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    assert line.intersect(Ray((0.5, 0.0, -1.0), (0.0, 0.0, 1.0)), 0.0, 5.0) is None
    tri = Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    assert tri.intersect(Ray((-1.0, 0.2, 0.0), (1.0, 0.0, 0.0)), 0.0, 5.0) is None


def test_triangle_aabb():
    box = Triangle((0.0, 1.0, 2.0), (-1.0, 3.0, 0.5), (2.0, 0.0, 1.0)).aabb()
    np.testing.assert_array_equal(box.bmin, [-1.0, 0.0, 0.5])
    np.testing.assert_array_equal(box.bmax, [2.0, 3.0, 2.0])


def test_vector_helpers():
    v = vec3(1.0, -2.0, 3.0)
    assert not v.flags.writeable
    assert hmin(v) == -2.0
    assert hmax(v) == 3.0
    np.testing.assert_array_equal(cross((0, 0, 1), (0, 1, 0)), [-1.0, 0.0, 0.0])
    assert np.linalg.norm(normalize((0.0, -2.0, 0.0))) == 1.0
    assert np.isnan(normalize((0.0, 0.0, 0.0))).all()
    assert dot((1, 2, 3), (4, 5, 6)) == 32.0
    assert length((3.0, 4.0, 0.0)) == 5.0


def test_triangle_from_array():
    arr = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
    tri = Triangle.from_array(arr)
    assert tri.vertices.dtype == np.float64
    assert not tri.vertices.flags.writeable
    np.testing.assert_array_equal(tri.vertices, arr)


def test_mesh_helpers():
    V = np.array([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], np.float32)
    F = np.array([[0, 1, 2], [0, 2, 3]], np.int32)
    tris = triangles_from_mesh(V, F)
    assert tris.shape == (2, 3, 3) and tris.dtype == np.float64
    np.testing.assert_array_equal(tris[1, 2], [0.0, 1.0, 0.0])

    raised = tris + np.array([0.0, 0.0, 1.0])
    with_floor = add_floor(raised, scale=0.5)
    assert with_floor.shape == (4, 3, 3)
    floor = with_floor[2:]
    assert np.all(floor[..., 1] == 0.0)
    lo, hi = scene_bounds(floor)
    np.testing.assert_allclose(lo, [-0.5, 0.0, 1.0])
    np.testing.assert_allclose(hi, [1.5, 0.0, 1.0])
    with pytest.raises(ValueError):
        add_floor(np.empty((0, 3, 3)))
