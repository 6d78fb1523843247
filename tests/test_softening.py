import pytest

from gadsidm.softening import Softenings


@pytest.fixture
def soft():
    return Softenings(
        gas=1.0,
        halo=2.0,
        disk=3.0,
        bulge=4.0,
        stars=5.0,
        bndry=6.0,
        gas_max_phys=0.5,
        halo_max_phys=10.0,
        disk_max_phys=1.5,
        bulge_max_phys=100.0,
        stars_max_phys=2.5,
        bndry_max_phys=100.0,
        min_gas_hsml_fractional=0.25,
    )


def test_noncomoving_table_is_raw(soft):
    assert soft.table(0.5, False) == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0)


def test_comoving_table_caps_physical_length(soft):
    time = 1.0
    table = soft.table(time, True)
    assert table[0] == pytest.approx(0.5)
    assert table[1] == pytest.approx(2.0)
    assert table[2] == pytest.approx(1.5)
    assert table[3] == pytest.approx(4.0)
    for value, pair in zip(table, soft._pairs()):
        assert value * time <= pair[1] + 1e-12
        assert value <= pair[0]


def test_comoving_cap_scales_with_time(soft):
    table = soft.table(0.25, True)
    assert table[0] == pytest.approx(0.5 / 0.25)
    assert table[1] == pytest.approx(2.0)


def test_force_softening_factor(soft):
    table = soft.table(1.0, True)
    force = soft.force_softening(1.0, True)
    assert len(force) == 6
    for t, f in zip(table, force):
        assert f == pytest.approx(2.8 * t)


def test_min_gas_hsml(soft):
    force = soft.force_softening(0.5, False)
    assert soft.min_gas_hsml(0.5, False) == pytest.approx(0.25 * force[0])


def test_default_caps_never_apply():
    s = Softenings(1.0, 1.0, 1.0, 1.0, 1.0, 1.0)
    assert s.table(1000.0, True) == s.table(1000.0, False)
    assert s.min_gas_hsml(1.0, True) == 0.0