from app.utils.stats import (
    detect_outliers,
    group_by,
    mean,
    median,
    percentage,
    percentage_change,
    round2,
    std_dev,
)

amounts = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]


def test_mean_and_std_dev():
    assert mean(amounts) == 5.0
    assert std_dev(amounts) == 2.0


def test_empty_inputs_are_zero():
    assert mean([]) == 0
    assert std_dev([]) == 0
    assert median([]) == 0
    assert detect_outliers([]) == []


def test_median_even_and_odd():
    assert median([3, 1, 2]) == 2
    assert median([4, 1, 3, 2]) == 2.5


def test_percentage_guards_zero_total():
    assert percentage(5, 0) == 0
    assert percentage(25, 200) == 12.5
    assert percentage(0, 200) == 0


def test_percentage_change():
    assert percentage_change(0, 10) == 100
    assert percentage_change(0, 0) == 0
    assert percentage_change(200, 150) == -25


def test_outliers_constant_sequence():
    assert std_dev([10, 10, 10, 10]) == 0
    assert detect_outliers([10, 10, 10, 10]) == []


def test_outliers_z_score():
    values = [10, 10, 10, 10, 10, 10, 10, 10, 10, 100]
    assert detect_outliers(values) == [100]
    assert detect_outliers(values, threshold=5) == []


def test_group_by_keeps_first_seen_order():
    items = [
        {"category": "Food", "amount": 1},
        {"category": "Rent", "amount": 2},
        {"category": None, "amount": 3},
        {"category": "Food", "amount": 4},
    ]
    groups = group_by(items, "category", default="Other")
    assert list(groups) == ["Food", "Rent", "Other"]
    assert [item["amount"] for item in groups["Food"]] == [1, 4]


def test_round2_rounds_half_up():
    assert round2(0.125) == 0.13
    assert round2(10) == 10.0
