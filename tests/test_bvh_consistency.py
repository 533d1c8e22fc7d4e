import numpy as np
import pytest

from raybvh import BuildParams, Scene
from raybvh.params import AXIS_POLICIES
from raybvh.utils.geometry import Ray


def random_soup(n, seed):
    rng = np.random.default_rng(seed)
    centers = rng.uniform(-1.0, 1.0, size=(n, 1, 3))
    return centers + rng.uniform(-0.3, 0.3, size=(n, 3, 3))


def random_rays(n, seed):
    rng = np.random.default_rng(seed)
    origins = rng.uniform(-2.0, 2.0, size=(n, 3))
    dirs = rng.normal(size=(n, 3))
    dirs /= np.linalg.norm(dirs, axis=1, keepdims=True)
    return [Ray(o, d) for o, d in zip(origins, dirs)]


def assert_same_hit(a, b):
    assert (a is None) == (b is None)
    if a is not None:
        assert a.t == b.t
        np.testing.assert_array_equal(a.position, b.position)
        np.testing.assert_array_equal(a.normal, b.normal)


@pytest.mark.parametrize("axis", AXIS_POLICIES)
def test_closest_hit_matches_brute_force(axis):
    scene = Scene(random_soup(300, seed=7), bvh="builtin", build_params=BuildParams(axis=axis))
    hits = 0
    for ray in random_rays(500, seed=8):
        a = scene.intersect(ray, 0.0, 100.0)
        b = scene.intersect_brute(ray, 0.0, 100.0)
        assert_same_hit(a, b)
        hits += a is not None
    assert hits > 50


def test_bvh_matches_unsorted_linear_scan():
    tris = random_soup(200, seed=21)
    fast = Scene(tris, bvh="builtin")
    slow = Scene(tris, bvh="off")
    for ray in random_rays(400, seed=22):
        a = fast.intersect(ray, 0.01, 100.0)
        b = slow.intersect(ray, 0.01, 100.0)
        assert (a is None) == (b is None)
        if a is not None:
            assert a.t == pytest.approx(b.t, abs=1e-9)
            np.testing.assert_allclose(a.position, b.position, atol=1e-9)
            np.testing.assert_allclose(a.normal, b.normal, atol=1e-9)


def test_any_hit_agrees_with_closest_hit():
    scene = Scene(random_soup(300, seed=31), bvh="builtin")
    for ray in random_rays(500, seed=32):
        closest = scene.intersect(ray, 0.01, 3.0)
        assert scene.occluded(ray, 0.01, 3.0) == (closest is not None)
        any_hit = scene.intersect(ray, 0.01, 3.0, any_hit=True)
        brute_any = scene.intersect_brute(ray, 0.01, 3.0, any_hit=True)
        assert (any_hit is None) == (brute_any is None)
        if any_hit is not None:
            assert 0.01 <= any_hit.t <= 3.0
            assert any_hit.t >= closest.t - 1e-9


def test_window_is_respected():
    scene = Scene(random_soup(300, seed=41), bvh="builtin")
    for ray in random_rays(300, seed=42):
        hit = scene.intersect(ray, 0.5, 1.5)
        if hit is not None:
            assert 0.5 <= hit.t <= 1.5
            np.testing.assert_allclose(hit.position, ray.point_at(hit.t), atol=1e-9)
        assert_same_hit(hit, scene.intersect_brute(ray, 0.5, 1.5))


def test_closest_of_stacked_planes():
    quad = np.array([
        [[-1.0, -1.0, 0.0], [1.0, -1.0, 0.0], [1.0, 1.0, 0.0]],
        [[-1.0, -1.0, 0.0], [1.0, 1.0, 0.0], [-1.0, 1.0, 0.0]],
    ])
    # insert far planes first so index order differs from depth order
    tris = np.concatenate([quad + (0.0, 0.0, z) for z in (5.0, 3.0, 1.0, 4.0, 2.0)] * 8)
    for mode in ("builtin", "off"):
        scene = Scene(tris, bvh=mode)
        hit = scene.intersect(Ray((0.1, 0.2, 0.0), (0.0, 0.0, 1.0)), 0.0, 100.0)
        assert hit.t == pytest.approx(1.0)
        hit = scene.intersect(Ray((0.1, 0.2, 0.0), (0.0, 0.0, 1.0)), 1.5, 100.0)
        assert hit.t == pytest.approx(2.0)
        assert scene.intersect(Ray((0.1, 0.2, 0.0), (0.0, 0.0, -1.0)), 0.0, 100.0) is None


def grid_mesh(n):
    """``2 * n * n`` triangles tiling the unit cells of ``[0, n]^2`` in the xz plane."""
    tris = []
    for i in range(n):
        for j in range(n):
            a, b, c, d = (i, 0, j), (i + 1, 0, j), (i + 1, 0, j + 1), (i, 0, j + 1)
            tris.append((a, c, b))
            tris.append((a, d, c))
    return np.asarray(tris, dtype=np.float64)


@pytest.mark.parametrize("swap", [(0, 1, 2), (1, 0, 2), (0, 2, 1)])
@pytest.mark.parametrize("tmin", [0.0, 0.01])
def test_axis_aligned_rays_on_cell_boundaries(swap, tmin):
    n = 12
    swap = list(swap)
    scene = Scene(grid_mesh(n)[..., swap], bvh="builtin")
    d = np.array([0.0, -1.0, 0.0])[swap]
    hits = 0
    coords = np.linspace(0.0, n, 4 * n + 1)
    for u in coords:
        for v in coords:
            ray = Ray(np.array([u, 2.0, v])[swap], d)
            a = scene.intersect(ray, tmin, 10.0)
            assert_same_hit(a, scene.intersect_brute(ray, tmin, 10.0))
            hits += a is not None
            if a is not None:
                assert a.t == pytest.approx(2.0)
    if tmin == 0.0:
        # the plane crossing lands exactly on y = 0, so edges and corners count
        assert hits == coords.size ** 2
    else:
        assert hits > 0.3 * coords.size ** 2
