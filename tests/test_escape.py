import numpy as np
import pytest

from mandelzoom.escape import (
    compute_escape_field,
    merge_histograms,
    partition_rows,
    pixel_coordinates,
)
from mandelzoom.scheduler import Viewport, compute_viewport


def reference_counts(width, height, viewport, max_iterations):
    counts = np.zeros((height, width), dtype=np.int32)
    for y in range(height):
        for x in range(width):
            real = viewport.x_min + x / width * (viewport.x_max - viewport.x_min)
            imag = viewport.y_min + y / height * (viewport.y_max - viewport.y_min)
            c = complex(real, imag)
            z = 0j
            n = 0
            while abs(z) <= 2.0 and n < max_iterations:
                z = z * z + c
                n += 1
            counts[y, x] = n
    return counts


def test_interior_viewport_never_escapes():
    viewport = compute_viewport(-0.5, 0.0, 1e-3, 1e-3, 1.0)
    field = compute_escape_field(4, 4, viewport, 64)
    assert field.iterations.shape == (4, 4)
    assert np.all(field.iterations == 64)
    assert field.histogram[64] == 16
    assert field.histogram.sum() == 16


def test_exterior_viewport_escapes_quickly():
    viewport = compute_viewport(2.0, 2.0, 0.1, 0.1, 1.0)
    field = compute_escape_field(8, 8, viewport, 64)
    assert np.all(field.iterations >= 1)
    assert np.all(field.iterations <= 5)


def test_matches_pointwise_reference():
    viewport = Viewport(x_min=-2.0, x_max=1.0, y_min=-1.5, y_max=1.5)
    field = compute_escape_field(12, 9, viewport, 8)
    np.testing.assert_array_equal(field.iterations, reference_counts(12, 9, viewport, 8))


def test_counts_and_histogram_are_consistent():
    viewport = Viewport(x_min=-2.0, x_max=1.0, y_min=-1.2, y_max=1.2)
    field = compute_escape_field(20, 15, viewport, 40)
    assert field.histogram.shape == (41,)
    assert field.histogram.sum() == 20 * 15
    assert field.iterations.min() >= 0
    assert field.iterations.max() <= 40
    np.testing.assert_array_equal(field.histogram, np.bincount(field.iterations.ravel(), minlength=41))


def test_result_does_not_depend_on_worker_count():
    viewport = compute_viewport(-0.743643887, 0.131825904, 3.0, 2.0, 40.0)
    single = compute_escape_field(16, 11, viewport, 200, workers=1)
    several = compute_escape_field(16, 11, viewport, 200, workers=3)
    many = compute_escape_field(16, 11, viewport, 200, workers=64)
    np.testing.assert_array_equal(single.iterations, several.iterations)
    np.testing.assert_array_equal(single.iterations, many.iterations)
    np.testing.assert_array_equal(single.histogram, several.histogram)


def test_pixel_coordinates_use_left_edges():
    np.testing.assert_allclose(pixel_coordinates(4, -2.0, 2.0), [-2.0, -1.0, 0.0, 1.0])
    np.testing.assert_allclose(pixel_coordinates(4, -2.0, 2.0, 2, 4), [0.0, 1.0])


def test_partition_rows_is_disjoint_and_complete():
    assert partition_rows(10, 3) == [(0, 4), (4, 7), (7, 10)]
    assert partition_rows(2, 8) == [(0, 1), (1, 2)]
    bands = partition_rows(1080, 12)
    assert bands[0][0] == 0 and bands[-1][1] == 1080
    assert all(a[1] == b[0] for a, b in zip(bands, bands[1:]))


def test_merge_histograms_is_order_independent():
    rng = np.random.default_rng(3)
    partials = [rng.integers(0, 50, size=17) for _ in range(6)]
    merged = merge_histograms(partials)
    assert np.array_equal(merged, merge_histograms(reversed(partials)))
    assert np.array_equal(merged, merge_histograms(partials[2:] + partials[:2]))
    assert merged.sum() == sum(int(p.sum()) for p in partials)


def test_merge_histograms_requires_input():
    with pytest.raises(ValueError):
        merge_histograms([])


@pytest.mark.parametrize("width,height,max_iterations", [(0, 4, 10), (4, 0, 10), (4, 4, 0)])
def test_rejects_degenerate_input(width, height, max_iterations):
    viewport = Viewport(x_min=-1.0, x_max=1.0, y_min=-1.0, y_max=1.0)
    with pytest.raises(ValueError):
        compute_escape_field(width, height, viewport, max_iterations)
