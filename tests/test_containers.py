import pytest

from gfxcore.containers import (
    Bin,
    DoubleBuffer,
    Grid2D,
    Grid3D,
    RingBuffer,
    RollingAvg,
    push_unique,
    swap_remove,
)


def test_swap_remove_moves_last_into_gap():
    items = ["a", "b", "c", "d"]
    assert swap_remove(items, 1) == "b"
    assert items == ["a", "d", "c"]


def test_swap_remove_last_item():
    items = ["a", "b"]
    assert swap_remove(items, 1) == "b"
    assert items == ["a"]


def test_swap_remove_out_of_range():
    with pytest.raises(IndexError):
        swap_remove([], 0)


def test_push_unique():
    items = [1, 2]
    assert push_unique(items, 2) is False
    assert push_unique(items, 3) is True
    assert items == [1, 2, 3]


def test_ring_buffer_fifo_order():
    rb = RingBuffer(3)
    for v in (1, 2, 3):
        rb.push(v)
    assert rb.full()
    assert rb.front() == 1
    assert rb.back() == 3
    assert rb.pop() == 1
    rb.push(4)
    assert list(rb) == [2, 3, 4]
    assert rb[0] == 2 and rb[2] == 4


def test_ring_buffer_overflow_and_underflow():
    rb = RingBuffer(1)
    rb.push("x")
    with pytest.raises(OverflowError):
        rb.push("y")
    assert rb.pop() == "x"
    with pytest.raises(IndexError):
        rb.pop()
    with pytest.raises(IndexError):
        rb.front()
    with pytest.raises(IndexError):
        rb.back()


def test_ring_buffer_room_fill_and_unique():
    rb = RingBuffer(4)
    rb.push(1)
    rb.push_unique(1)
    assert len(rb) == 1
    assert rb.has_room_for(3)
    assert not rb.has_room_for(4)
    rb.fill(7)
    assert list(rb) == [7, 7, 7, 7]
    rb.clear()
    assert len(rb) == 0
    with pytest.raises(IndexError):
        rb[0]


def test_bin_truncates_initial_items():
    b = Bin(2, [1, 2, 3])
    assert list(b) == [1, 2]
    assert b.full()
    with pytest.raises(OverflowError):
        b.push(9)


def test_bin_stack_operations():
    b = Bin(5)
    b.push_many("q", 2)
    b.push("z")
    b.push_unique("z")
    assert len(b) == 3
    assert b.top() == "z"
    assert b.pop() == "z"
    b.clear()
    with pytest.raises(IndexError):
        b.pop()
    with pytest.raises(IndexError):
        b.top()


def test_bin_remove_and_remove_ordered():
    b = Bin(5, ["a", "b", "c", "d"])
    b.remove(0)
    assert list(b) == ["d", "b", "c"]
    b.remove_ordered(0)
    assert list(b) == ["b", "c"]
    with pytest.raises(IndexError):
        b.remove_ordered(5)
    with pytest.raises(IndexError):
        b[2]


def test_grid2d_row_major_index():
    g = Grid2D(3, 2)
    order = [g.index(x, y) for y in range(2) for x in range(3)]
    assert order == list(range(len(g)))


def test_grid2d_get_set_fill_copy():
    g = Grid2D(2, 2, fill=0)
    g[1, 0] = 5
    assert g[g.index(1, 0)] == 5
    dup = g.copy()
    g.fill(8)
    assert dup[1, 0] == 5
    assert all(g[i] == 8 for i in range(len(g)))
    with pytest.raises(IndexError):
        g[2, 0]
    with pytest.raises(IndexError):
        g[len(g)]


def test_grid3d_indices_unique_and_consistent():
    g = Grid3D(2, 3, 4)
    indices = {g.index(x, y, z) for x in range(2) for y in range(3) for z in range(4)}
    assert indices == set(range(len(g)))
    g[1, 2, 3] = "v"
    assert g[g.index(1, 2, 3)] == "v"
    g.fill("w")
    assert g[1, 2, 3] == "w"
    with pytest.raises(IndexError):
        g[0, 0, 4]


def test_double_buffer_swap():
    db = DoubleBuffer("front", "back")
    db.swap()
    assert db.front == "back"
    assert db.back == "front"
    db.swap()
    assert db.front == "front"


def test_rolling_avg():
    ra = RollingAvg(2, 3)
    ra.add(5.0)
    assert ra.roll == [0.0, 0.0, 0.0]
    ra.add(5.0)
    assert ra.roll[0] == 5.0
    assert ra.roll_idx == 1
    for _ in range(4):
        ra.add(7.0)
    assert ra.roll == [5.0, 7.0, 7.0]
    assert ra.roll_idx == 0
    ra.reset()
    assert ra.roll == [0.0, 0.0, 0.0] and ra.avg_idx == 0


def test_rolling_avg_rejects_bad_period():
    with pytest.raises(ValueError):
        RollingAvg(0, 3)