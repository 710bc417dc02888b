"""
Tests for the pressure Kalman filter.
"""
import numpy as np
import pytest

from pressure_altimeter.kalman_filter import (
    FilterState,
    KalmanFilter,
    KalmanFilterParams,
    correct,
    initial_state,
    predict,
    process_noise,
    transition_matrix,
    update,
)


def test_reset_sets_position_and_zero_velocity():
    kf = KalmanFilter()
    kf.reset(1013.0912)
    assert kf.position == 1013.0912
    assert kf.velocity == 0.0
    cov = kf.covariance
    assert cov[0, 1] == cov[1, 0] == 0.0
    assert cov[0, 0] > 0 and cov[1, 1] > 0


def test_reset_discards_previous_session():
    kf = KalmanFilter()
    kf.reset(1000.0)
    for i in range(20):
        kf.update(1000.0 - 0.1 * i, dt=1.0)
    assert kf.velocity != 0.0

    kf.reset(990.0)
    assert kf.position == 990.0
    assert kf.velocity == 0.0
    assert kf.state == initial_state(990.0, kf.params)


def test_predict_matches_matrix_form():
    """Scalar covariance growth equals F P F^T + Q."""
    state = FilterState(position=1000.0, velocity=-0.2, pxx=0.3, pxv=-0.05, pvv=0.02, process_variance=0.0075)
    for dt in (0.0, 0.02, 0.5, 1.0, 7.5):
        F = transition_matrix(dt)
        expected = F @ state.covariance @ F.T + process_noise(dt, state.process_variance)
        got = predict(state, dt)
        np.testing.assert_allclose(got.covariance, expected, rtol=1e-12, atol=1e-15)
        np.testing.assert_allclose(got.position, (F @ np.array([state.position, state.velocity]))[0])
        assert got.velocity == state.velocity


def test_repeated_predict_grows_uncertainty():
    """Without corrections the covariance grows and stays positive semi-definite."""
    state = initial_state(1000.0, KalmanFilterParams())
    for dt in (0.05, 0.5, 1.0, 3.0, 0.01, 10.0):
        nxt = predict(state, dt)
        assert nxt.pxx > state.pxx
        assert nxt.pvv > state.pvv
        assert nxt.determinant >= 0.0
        state = nxt


def test_predict_with_zero_dt_is_identity():
    state = initial_state(1000.0, KalmanFilterParams())
    assert predict(state, 0.0) == state


def test_zero_dt_update_still_corrects():
    kf = KalmanFilter()
    kf.reset(1000.0)
    kf.update(1001.0, 0.05, dt=0.0)
    # gain = 1.0 / 1.05 with the default prior
    assert kf.position == pytest.approx(1000.0 + 1.0 / 1.05)
    assert kf.covariance[0, 0] < 1.0


def test_noiseless_repeat_drives_covariance_to_zero():
    """Repeated exact measurements of the current position never move it."""
    kf = KalmanFilter()
    kf.reset(1000.0)
    traces = [np.trace(kf.covariance)]
    for _ in range(3):
        kf.update(kf.position, 0.0, dt=0.0)
        assert kf.position == 1000.0
        traces.append(np.trace(kf.covariance))
        assert kf.state.determinant >= 0.0

    assert all(b <= a for a, b in zip(traces, traces[1:]))
    assert kf.covariance[0, 0] == 0.0


def test_zero_innovation_variance_snaps_to_measurement():
    state = FilterState(position=1000.0, velocity=0.5, pxx=0.0, pxv=0.0, pvv=0.01, process_variance=0.0075)
    out = correct(state, 1005.0, 0.0)
    assert out.position == 1005.0
    assert out.velocity == 0.5
    assert out.pxx == 0.0 and out.pxv == 0.0
    assert out.pvv == state.pvv


def test_constant_measurements_converge():
    """Estimate and gain settle for a constant input at a fixed rate."""
    kf = KalmanFilter(KalmanFilterParams(process_variance=0.0075))
    kf.reset(1013.0912)
    pxx_history = []
    for _ in range(200):
        kf.update(1013.25, 0.05, dt=1.0)
        pxx_history.append(kf.covariance[0, 0])

    assert abs(kf.position - 1013.25) < 0.01
    assert abs(kf.velocity) < 1e-3
    # steady state: the posterior variance has stopped changing
    assert abs(pxx_history[-1] - pxx_history[-2]) < 1e-9
    assert 0 < pxx_history[-1] < 0.05


def test_tracks_constant_rate_of_change():
    """Velocity converges to the slope of a noiseless ramp."""
    kf = KalmanFilter()
    kf.reset(1000.0)
    rate = -0.1  # hPa per second, a steady climb
    dt = 0.5
    for i in range(1, 400):
        kf.update(1000.0 + rate * i * dt, dt=dt)

    assert kf.velocity == pytest.approx(rate, abs=1e-3)
    assert kf.position == pytest.approx(1000.0 + rate * 399 * dt, abs=1e-3)


def test_irregular_intervals_stay_stable():
    rng = np.random.default_rng(0)
    kf = KalmanFilter()
    kf.reset(1000.0)
    for _ in range(2000):
        dt = float(rng.choice([0.0, 0.001, 0.05, 0.2, 2.5]))
        kf.update(1000.0 + rng.normal(0.0, 0.2), float(rng.uniform(0.0, 0.2)), dt=dt)
        s = kf.state
        assert s.pxx >= 0.0 and s.pvv >= 0.0
        assert s.determinant >= -1e-12
    assert abs(kf.position - 1000.0) < 0.5


def test_default_measurement_variance_is_used():
    params = KalmanFilterParams(measurement_variance=0.3)
    kf = KalmanFilter(params)
    kf.reset(1000.0)
    kf.update(1002.0, dt=0.1)

    expected = update(initial_state(1000.0, params), 1002.0, 0.3, 0.1)
    assert kf.state == expected


@pytest.mark.parametrize("dt, variance", [
    (-0.01, 0.05),
    (0.1, -1e-6),
    (float("nan"), 0.05),
    (0.1, float("nan")),
    (float("inf"), 0.05),
    (0.1, float("inf")),
])
def test_contract_violations_raise_and_leave_state(dt, variance):
    kf = KalmanFilter()
    kf.reset(1000.0)
    before = kf.state
    with pytest.raises(ValueError):
        kf.update(1001.0, variance, dt=dt)
    assert kf.state is before


def test_update_before_reset_raises():
    kf = KalmanFilter()
    with pytest.raises(RuntimeError):
        kf.update(1000.0, 0.05, dt=0.1)
    with pytest.raises(RuntimeError):
        _ = kf.position


@pytest.mark.parametrize("kwargs", [
    {"process_variance": 0.0},
    {"process_variance": -1.0},
    {"measurement_variance": -0.1},
    {"initial_pos_uncertainty": 0.0},
    {"initial_vel_uncertainty": -1.0},
])
def test_invalid_params_rejected(kwargs):
    with pytest.raises(ValueError):
        KalmanFilterParams(**kwargs)


@pytest.mark.parametrize("measurement", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_measurement_rejected(measurement):
    """A bad reading is refused and later readings still filter normally."""
    kf = KalmanFilter()
    kf.reset(1000.0)
    before = kf.state
    with pytest.raises(ValueError):
        kf.update(measurement, 0.05, dt=0.05)
    assert kf.state is before
    with pytest.raises(ValueError):
        correct(before, measurement, 0.05)

    for _ in range(100):
        kf.update(1000.0, 0.05, dt=0.05)
    assert kf.position == pytest.approx(1000.0)


def test_reset_rejects_non_finite_value():
    kf = KalmanFilter()
    with pytest.raises(ValueError):
        kf.reset(float("nan"))
    assert kf.state is None


def test_update_requires_dt():
    kf = KalmanFilter()
    kf.reset(1000.0)
    with pytest.raises(TypeError):
        kf.update(1001.0, 0.05)
    with pytest.raises(TypeError):
        kf.update(1001.0, 0.05, 0.1)
    assert kf.state == initial_state(1000.0, kf.params)
