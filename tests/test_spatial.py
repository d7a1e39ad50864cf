import numpy as np

from geovision.spatial import compute_center, to_scene_frame, translation_matrix


def test_empty_input_gives_zero_vector():
    center = compute_center([])
    assert center.shape == (3,)
    assert np.array_equal(center, np.zeros(3))


def test_single_point_is_its_own_center():
    assert np.allclose(compute_center([(10.0, -4.0, 250.0)]), [10.0, -4.0, 250.0])


def test_center_is_order_invariant():
    pts = [(0.0, 0.0, 0.0), (10.0, 20.0, 30.0), (-4.0, 8.0, 1.0), (7.0, 7.0, 7.0)]
    assert np.allclose(compute_center(pts), compute_center(pts[::-1]))
    assert np.allclose(compute_center(pts), np.mean(pts, axis=0))


def test_scene_frame_puts_elevation_on_vertical_axis():
    center = (100.0, 200.0, 50.0)
    assert to_scene_frame(110.0, 230.0, 45.0, center) == (10.0, -5.0, 30.0)


def test_translation_matrix_recentres_y_up_model():
    matrix = translation_matrix((100.0, 200.0, 50.0))
    point = matrix @ np.array([100.0, 50.0, 200.0, 1.0])
    assert np.allclose(point[:3], 0.0)
