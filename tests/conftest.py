import pytest

from ziwei.chart import compute_chart


@pytest.fixture(scope="session")
def chart_1990():
    """1990-03-15, 巳 hour (09:00-10:59), male. Lunar 1990-2-19, 庚午."""
    return compute_chart("1990-03-15", 5, "male")


@pytest.fixture(scope="session")
def chart_1990_female():
    return compute_chart("1990-03-15", 5, "female")


@pytest.fixture(scope="session")
def chart_2000():
    """2000-01-01, 子 hour, female. Lunar 1999-11-25, 己卯."""
    return compute_chart("2000-01-01", 0, "female")


@pytest.fixture(scope="session")
def chart_2023_leap():
    """2023-03-22 is the first day of the leap second month."""
    return compute_chart("2023-03-22", 6, "female")
