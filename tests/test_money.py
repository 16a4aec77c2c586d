from src.utils.money import round_half_up, round_to_unit


def test_round_half_up_two_places():
    assert round_half_up(2.675) == 2.68
    assert round_half_up(0.125) == 0.13
    assert round_half_up(10.0) == 10.0


def test_round_to_unit_never_rounds_half_to_even():
    assert round_to_unit(0.5) == 1
    assert round_to_unit(2.5) == 3
    assert round_to_unit(61.725) == 62
    assert round_to_unit(61.4) == 61
