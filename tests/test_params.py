import math

import pytest

from epon_ipact import params


def test_documented_constants_drive_transmission_time():
    assert params.PKT_SZ_MIN == 64
    assert params.PKT_SZ_MAX == 1542
    assert params.GRANT_REQUEST_SIZE == 64
    assert params.PON_LINK_DATARATE == 1e9
    assert params.ONU_BUFFER_CAPACITY == 10e6
    assert params.T_GUARD == 5e-6
    assert params.transmission_time(params.GRANT_REQUEST_SIZE) == pytest.approx(5.12e-7)
    assert params.transmission_time(params.ONU_BUFFER_CAPACITY) == pytest.approx(0.08)


def test_max_grant_for_single_onu_and_one_millisecond_cycle():
    assert abs(params.onu_max_grant(1, 1) - 995000) <= 1


def test_average_packet_size_lies_between_limits():
    assert params.PKT_SZ_MIN < params.PKT_SZ_AVG < params.PKT_SZ_MAX
    assert isinstance(params.PKT_SZ_AVG, int)
    assert abs(2 * params.PKT_SZ_AVG - (params.PKT_SZ_MIN + params.PKT_SZ_MAX)) <= 1
    low = params.transmission_time(params.PKT_SZ_MIN)
    mid = params.transmission_time(params.PKT_SZ_AVG)
    high = params.transmission_time(params.PKT_SZ_MAX)
    assert low < mid < high


@pytest.mark.parametrize("cycle,onus", [(2, 16), (1, 1), (5, 32), (10, 4)])
def test_max_grant_is_whole_and_rounded_down(cycle, onus):
    grant = params.onu_max_grant(cycle, onus)
    exact = (cycle * 1e-3 - params.T_GUARD * onus) * (params.PON_LINK_DATARATE / onus)
    assert grant == math.floor(grant)
    assert exact - 1 < grant <= exact


def test_max_grant_shrinks_with_more_onus():
    grants = [params.onu_max_grant(2, n) for n in (1, 2, 4, 8, 16)]
    assert grants == sorted(grants, reverse=True)
    assert len(set(grants)) == len(grants)


def test_max_grant_grows_with_longer_cycle():
    assert params.onu_max_grant(4, 16) > params.onu_max_grant(2, 16)


def test_max_grant_rejects_no_onus():
    with pytest.raises(ValueError):
        params.onu_max_grant(2, 0)


def test_transmission_time_of_one_second_of_data():
    assert params.transmission_time(125_000_000) == pytest.approx(1.0)


def test_transmission_time_is_linear():
    assert params.transmission_time(0) == 0
    one = params.transmission_time(params.GRANT_REQUEST_SIZE)
    two = params.transmission_time(2 * params.GRANT_REQUEST_SIZE)
    assert two == pytest.approx(2 * one)
    assert one > 0


def test_transmission_time_rejects_negative_length():
    with pytest.raises(ValueError):
        params.transmission_time(-1)