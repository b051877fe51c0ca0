import pytest

from byte_buffer.buffer import ByteBuffer
from byte_buffer.overflow import ByteRangeError, OverflowPolicy


@pytest.fixture
def demo():
    return ByteBuffer.from_values([0, 255, 127, 128])


def test_demo_values_are_stored_exactly(demo):
    assert len(demo) == 4
    assert demo.byte_length == 4
    assert demo.to_list() == [0, 255, 127, 128]
    assert demo == [0, 255, 127, 128]
    assert demo == bytes([0, 255, 127, 128])
    assert demo.policy is OverflowPolicy.WRAP


def test_zero_filled_construction():
    buf = ByteBuffer(3)
    assert buf.to_bytes() == b"\x00\x00\x00"
    assert len(ByteBuffer()) == 0


@pytest.mark.parametrize("length", [-1, 1.5, "4"])
def test_invalid_length(length):
    with pytest.raises(ValueError):
        ByteBuffer(length)


def test_wrap_on_construction_and_assignment():
    buf = ByteBuffer.of(256, -1, 300)
    assert buf == [0, 255, 44]
    buf[0] = 511
    assert buf[0] == 255


def test_saturate_on_assignment():
    buf = ByteBuffer(2, policy=OverflowPolicy.SATURATE)
    buf[0] = 999
    buf[1] = -3
    assert buf == [255, 0]


def test_reject_names_the_index():
    with pytest.raises(ByteRangeError, match="index 2"):
        ByteBuffer.from_values([1, 2, 256], OverflowPolicy.REJECT)

    buf = ByteBuffer(1, policy="reject")
    with pytest.raises(ByteRangeError):
        buf[0] = -1
    assert buf[0] == 0


def test_indexing(demo):
    assert demo[-1] == 128
    assert demo[-4] == 0
    with pytest.raises(IndexError):
        demo[4]
    with pytest.raises(IndexError):
        demo[-5]
    with pytest.raises(IndexError):
        demo[4] = 1
    with pytest.raises(TypeError):
        demo[0:2] = [1, 2]


def test_slice_copies_and_subarray_shares(demo):
    copy = demo[1:3]
    view = demo.subarray(1, 3)
    assert copy == [255, 127]
    assert view == [255, 127]

    view[0] = 1
    assert demo[1] == 1
    assert copy[0] == 255

    demo[2] = 9
    assert view[1] == 9
    assert demo.slice(-2) == [9, 128]
    assert demo[::2] == [0, 9]


def test_subarray_keeps_policy():
    buf = ByteBuffer(4, policy=OverflowPolicy.SATURATE)
    view = buf.subarray(2)
    view[0] = 1000
    assert buf == [0, 0, 255, 0]
    assert len(buf.subarray(3, 1)) == 0


def test_set(demo):
    demo.set([1, 2], offset=2)
    assert demo == [0, 255, 1, 2]
    demo.set(ByteBuffer.of(7))
    assert demo[0] == 7
    with pytest.raises(IndexError):
        demo.set([1, 2, 3], offset=2)
    with pytest.raises(IndexError):
        demo.set([1], offset=-1)
    assert demo == [7, 255, 1, 2]


def test_set_is_all_or_nothing_under_reject():
    buf = ByteBuffer(3, policy=OverflowPolicy.REJECT)
    with pytest.raises(ByteRangeError):
        buf.set([1, 2, 300])
    assert buf == [0, 0, 0]


def test_fill():
    buf = ByteBuffer(5)
    assert buf.fill(-1) is buf
    assert buf == [255] * 5
    buf.fill(0, 1, 3)
    assert buf == [255, 0, 0, 255, 255]
    buf.fill(7, -2)
    assert buf == [255, 0, 0, 7, 7]


def test_search(demo):
    assert 255 in demo
    assert 300 not in demo
    assert "a" not in demo
    assert demo.index(127) == 2
    assert demo.count(0) == 1
    assert demo.count(1000) == 0
    with pytest.raises(ValueError):
        demo.index(5)
    with pytest.raises(ValueError):
        demo.index(0, 1)


def test_reverse_and_conversions(demo):
    assert demo.hex() == "00ff7f80"
    assert demo.hex(" ") == "00 ff 7f 80"
    assert list(demo.reverse()) == [128, 127, 255, 0]


def test_equality_ignores_policy_and_buffers_are_unhashable(demo):
    other = ByteBuffer.from_values([0, 255, 127, 128], OverflowPolicy.SATURATE)
    assert demo == other
    assert demo != [0, 255]
    assert (demo == "abc") is False
    with pytest.raises(TypeError):
        hash(demo)


def test_from_bytes_copies():
    raw = bytearray(b"\x01\x02")
    buf = ByteBuffer.from_bytes(raw)
    raw[0] = 9
    assert buf == [1, 2]


def test_search_accepts_integral_numbers(demo):
    assert 255.0 in demo
    assert demo == [0, 255.0, 127, 128]
    assert demo.index(127.0) == 2
    assert demo.count(128.0) == 1
    assert True not in demo
    assert 0.5 not in demo
    assert demo.count(float("nan")) == 0
    with pytest.raises(ValueError):
        demo.index(127.5)


@pytest.mark.parametrize("data", [5, [1, 2], "ab"])
def test_from_bytes_requires_bytes_like(data):
    with pytest.raises(TypeError):
        ByteBuffer.from_bytes(data)


def test_from_bytes_accepts_views():
    assert ByteBuffer.from_bytes(memoryview(b"\x01\x02\x03")[1:]) == [2, 3]
