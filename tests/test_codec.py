from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from periodogram.core import DctCodec, band_energy, generate, get_provider
from periodogram.errors import ConfigurationError, DataError
from periodogram.types import DctParams, Reading, Window

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)
RANGE = (-3.3, 3.3)
PROVIDERS = ["scipy", "matrix"]


def make_readings(values):
    return tuple(
        Reading(value=float(v), when=BASE + timedelta(seconds=i)) for i, v in enumerate(values)
    )


def signal(count=128, seed=0):
    return generate(3.3, 50.0, 0.1, 0.1, count, seed=seed, base_time=BASE)


@pytest.mark.parametrize("provider", PROVIDERS)
def test_two_sample_scenario(provider):
    readings = make_readings([0.0, 2.0])
    codec = DctCodec(DctParams(2, 2), provider=provider)
    out = codec.apply(readings, (-2.0, 2.0))
    np.testing.assert_allclose(codec.normalized(), [0.5, 1.0], atol=1e-12)
    np.testing.assert_allclose(out, [0.0, 2.0], atol=1e-9)
    np.testing.assert_allclose(codec.outputs(), [0.0, 2.0], atol=1e-9)


@pytest.mark.parametrize("provider", PROVIDERS)
@pytest.mark.parametrize("n", [1, 2, 3, 16, 64])
@pytest.mark.parametrize("seed", range(3))
def test_all_coefficients_is_lossless(provider, n, seed):
    readings = signal(seed=seed)
    codec = DctCodec(DctParams(n, n), provider=provider, max_coeffs=64)
    out = codec.apply(readings, RANGE)
    expected = [r.value for r in readings[:n]]
    assert out.shape == (n,)
    np.testing.assert_allclose(out, expected, rtol=0, atol=1e-9)


@pytest.mark.parametrize("provider", PROVIDERS)
@pytest.mark.parametrize("seed", range(3))
def test_single_output_is_identity(provider, seed):
    readings = signal(seed=seed)
    codec = DctCodec(DctParams(1, 1), provider=provider)
    out = codec.apply(readings, RANGE)
    assert out.shape == (1,)
    assert out[0] == pytest.approx(readings[0].value, abs=1e-12)


@pytest.mark.parametrize("provider", PROVIDERS)
@pytest.mark.parametrize("n", [2, 5, 32])
def test_single_coefficient_gives_window_mean(provider, n):
    readings = signal(seed=n)
    codec = DctCodec(DctParams(n, 1), provider=provider)
    out = codec.apply(readings, RANGE)
    mean = np.mean([r.value for r in readings[:n]])
    np.testing.assert_allclose(out, np.full(n, mean), atol=1e-12)
    assert np.ptp(out) < 1e-12


@pytest.mark.parametrize("provider", PROVIDERS)
@pytest.mark.parametrize("seed", range(3))
def test_dropping_coefficients_smooths_monotonically(provider, seed):
    readings = signal(seed=seed)
    codec = DctCodec(DctParams(32, 16), provider=provider)
    codec.apply(readings, RANGE)
    transform = get_provider(provider)
    lo, hi = RANGE

    retained = []
    while True:
        coeffs = codec.params.coeffs_count
        refwd = transform.forward((codec.outputs() - lo) / (hi - lo))
        assert band_energy(refwd, coeffs) < 1e-18
        retained.append(band_energy(refwd, 0))
        if coeffs == 1:
            break
        codec.adjust("coeffs_count", -1)

    assert len(retained) == 16
    for before, after in zip(retained, retained[1:]):
        assert after <= before + 1e-12


def test_providers_agree():
    readings = signal(seed=4)
    a = DctCodec(DctParams(48, 7), provider="scipy").apply(readings, RANGE)
    b = DctCodec(DctParams(48, 7), provider="matrix").apply(readings, RANGE)
    np.testing.assert_allclose(a, b, atol=1e-12)


def test_coefficients_are_truncated():
    codec = DctCodec(DctParams(16, 4))
    codec.apply(signal(), RANGE)
    coeffs = codec.coefficients()
    assert coeffs.shape == (16,)
    assert np.all(coeffs[4:] == 0.0)
    assert np.any(coeffs[:4] != 0.0)


def test_buffers_are_read_only():
    codec = DctCodec(DctParams(8, 3))
    out = codec.apply(signal(), RANGE)
    for arr in (out, codec.outputs(), codec.normalized(), codec.coefficients()):
        assert not arr.flags.writeable
        with pytest.raises(ValueError):
            arr[0] = 1.0


def test_window_is_a_prefix_and_timestamps_follow():
    readings = signal()
    codec = DctCodec(DctParams(10, 10))
    codec.apply(readings, RANGE)
    assert codec.window == Window(0, 10)
    assert codec.window.width == 10
    restored = codec.output_readings()
    assert [r.when for r in restored] == [r.when for r in readings[:10]]
    np.testing.assert_allclose([r.value for r in restored], [r.value for r in readings[:10]], atol=1e-9)


def test_rejected_request_keeps_previous_state():
    readings = signal()
    codec = DctCodec(DctParams(4, 2))
    before = codec.apply(readings, RANGE)
    with pytest.raises(ConfigurationError):
        codec.set_params(DctParams(3, 5))
    assert codec.params == DctParams(4, 2)
    assert codec.outputs() is before
    assert not codec.stale


def test_constructor_rejects_coeffs_above_outputs():
    with pytest.raises(ConfigurationError):
        DctCodec(DctParams(3, 5))


@pytest.mark.parametrize(
    "params",
    [
        DctParams(0, 1),
        DctParams(4, 0),
        DctParams(1, 0),
        DctParams(-1, -1),
        DctParams(300, 4),
        DctParams(40, 17),
        DctParams(4.5, 2),
        DctParams(True, True),
        DctParams(4, 2.0),
        DctParams("4", 2),
    ],
)
def test_constructor_rejects_invalid_params(params):
    with pytest.raises(ConfigurationError):
        DctCodec(params)


def test_adjust_rejects_outputs_above_cap():
    codec = DctCodec(DctParams(4, 2), max_outputs=4)
    before = codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("outputs_count", +1)
    assert codec.params == DctParams(4, 2)
    assert codec.outputs() is before
    assert not codec.stale


def test_set_params_rejects_non_integer_counts():
    codec = DctCodec(DctParams(4, 2))
    before = codec.apply(signal(), RANGE)
    for params in (DctParams(0.0, 0.0), DctParams(5.0, 2)):
        with pytest.raises(ConfigurationError):
            codec.set_params(params)
    assert codec.params == DctParams(4, 2)
    assert codec.outputs() is before


@pytest.mark.parametrize("amplitude_range", [(-3.3, 0.0, 3.3), (1.0,), None, ("low", "high")])
def test_apply_rejects_malformed_range(amplitude_range):
    codec = DctCodec(DctParams(4, 2))
    with pytest.raises(DataError):
        codec.apply(signal(), amplitude_range)
    assert codec.stale
    assert codec.outputs().shape == (0,)


def test_output_cap_can_be_lifted():
    codec = DctCodec(DctParams(300, 4), max_outputs=None)
    assert codec.apply(signal(count=300), RANGE).shape == (300,)


def test_adjust_rejects_coeffs_above_outputs():
    codec = DctCodec(DctParams(4, 4))
    before = codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("coeffs_count", +1)
    assert codec.params == DctParams(4, 4)
    assert codec.outputs() is before


def test_adjust_rejects_shrinking_window_below_coeffs():
    codec = DctCodec(DctParams(4, 4))
    codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("outputs_count", -1)
    assert codec.params == DctParams(4, 4)


def test_adjust_rejects_window_beyond_readings():
    codec = DctCodec(DctParams(3, 1))
    codec.apply(signal(count=3), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("outputs_count", +1)
    assert codec.params == DctParams(3, 1)


def test_adjust_rejects_coeffs_above_cap():
    codec = DctCodec(DctParams(20, 16))
    codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("coeffs_count", +1)
    assert codec.params.coeffs_count == 16


def test_adjust_rejects_dropping_last_coefficient():
    codec = DctCodec(DctParams(5, 1))
    codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust("coeffs_count", -1)


@pytest.mark.parametrize("field, delta", [("outputs_count", 2), ("coeffs_count", 0), ("window", 1), ("coeffs_count", True)])
def test_adjust_rejects_malformed_requests(field, delta):
    codec = DctCodec(DctParams(8, 2))
    codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.adjust(field, delta)
    assert codec.params == DctParams(8, 2)


def test_adjust_recomputes():
    readings = signal()
    codec = DctCodec(DctParams(8, 2))
    codec.apply(readings, RANGE)
    out = codec.adjust("outputs_count", +1)
    assert codec.params == DctParams(9, 2)
    assert out.shape == (9,)
    assert codec.outputs() is out
    out = codec.adjust("coeffs_count", +1)
    assert codec.params == DctParams(9, 3)
    expected = DctCodec(DctParams(9, 3)).apply(readings, RANGE)
    np.testing.assert_allclose(out, expected)


def test_adjust_before_apply_marks_stale():
    codec = DctCodec(DctParams(8, 2))
    assert codec.stale
    out = codec.adjust("coeffs_count", +1)
    assert codec.params == DctParams(8, 3)
    assert codec.stale
    assert out.size == 0
    codec.apply(signal(), RANGE)
    assert not codec.stale
    assert codec.outputs().shape == (8,)


def test_window_larger_than_readings_preserves_output():
    codec = DctCodec(DctParams(5, 2))
    before = codec.apply(signal(), RANGE)
    with pytest.raises(ConfigurationError):
        codec.apply(signal(count=4), RANGE)
    assert codec.outputs() is before


def test_empty_readings_for_non_empty_window():
    codec = DctCodec(DctParams(2, 1))
    with pytest.raises(DataError):
        codec.apply((), RANGE)


def test_empty_params_are_a_no_op():
    codec = DctCodec(DctParams.empty())
    assert codec.apply((), RANGE).size == 0
    assert codec.apply(signal(), RANGE).size == 0
    assert codec.output_readings() == ()
    assert not codec.stale


def test_non_finite_value_is_rejected():
    readings = make_readings([0.0, float("nan"), 1.0])
    codec = DctCodec(DctParams(3, 2))
    with pytest.raises(DataError):
        codec.apply(readings, RANGE)
    assert codec.outputs().size == 0


@pytest.mark.parametrize("amplitude_range", [(1.0, 1.0), (2.0, -2.0), (float("-inf"), 1.0), (0.0, float("nan"))])
def test_degenerate_amplitude_range(amplitude_range):
    codec = DctCodec(DctParams(2, 2))
    with pytest.raises(DataError):
        codec.apply(make_readings([0.0, 1.0]), amplitude_range)


def test_unknown_provider():
    with pytest.raises(ConfigurationError):
        DctCodec(DctParams(2, 2), provider="fftw")
