from cellmonitor.models import Cell
from cellmonitor.stats import aggregate


def test_aggregate_counts_free_and_occupied():
    cells = [Cell(5, 200), Cell(1, 180), Cell(3, 190)]
    stats = aggregate(cells)
    assert (stats.total, stats.free, stats.occupied) == (3, 1, 1)


def test_other_statuses_only_count_towards_total():
    stats = aggregate([Cell(1, 190), Cell(2, 210), Cell(3, 999)])
    assert (stats.total, stats.free, stats.occupied) == (3, 0, 0)


def test_free_plus_occupied_equals_total_only_for_binary_statuses():
    binary = [Cell(1, 180), Cell(2, 200), Cell(3, 180)]
    stats = aggregate(binary)
    assert stats.free + stats.occupied == stats.total

    mixed = binary + [Cell(4, 210)]
    stats = aggregate(mixed)
    assert stats.free + stats.occupied < stats.total


def test_aggregate_empty():
    stats = aggregate([])
    assert (stats.total, stats.free, stats.occupied) == (0, 0, 0)
