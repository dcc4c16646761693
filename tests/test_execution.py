"""Tests for synchronous delivery through wired chains."""

import functools
import gc
from typing import NamedTuple

import pytest

from sigchain import (
    ChainConfig,
    DanglingConsumerError,
    UnwiredProducerError,
    ValueTupleError,
    build_sink,
    build_transform,
    connect,
)


def test_two_stage_chain():
    """consume(1) on x + 1 delivers 2 to the recorder."""
    recorded = []

    def increment(x: int) -> int:
        return x + 1

    def record(y: int) -> None:
        recorded.append(y)

    head = build_transform(increment)
    tail = build_sink(record)
    head.set_consumer(tail)

    head.consume(1)

    assert recorded == [2]


def test_three_stage_chain():
    """increment -> double -> collect turns 3 into 8."""
    collected = []

    def increment(x: int) -> int:
        return x + 1

    def double(x: int) -> int:
        return x * 2

    def collect(y: int) -> None:
        collected.append(y)

    nodes = [build_transform(increment), build_transform(double), build_sink(collect)]
    head = connect(*nodes)

    head.consume(3)

    assert collected == [8]


def test_replacing_consumer_mid_use():
    """After rewiring, only the new handler receives data."""
    old_calls = []
    new_calls = []

    def increment(x: int) -> int:
        return x + 1

    def old_record(y: int) -> None:
        old_calls.append(y)

    def new_record(y: int) -> None:
        new_calls.append(y)

    head = build_transform(increment)
    old_sink = build_sink(old_record)
    new_sink = build_sink(new_record)

    head.set_consumer(old_sink)
    head.consume(1)
    head.set_consumer(new_sink)
    head.consume(10)
    head.produce(100)

    assert old_calls == [2]
    assert new_calls == [11, 100]


def test_downstream_invoked_exactly_once_per_input():
    """Each driven input reaches the downstream handler exactly once."""
    calls = []

    def square(x: int) -> int:
        return x * x

    def record(y: int) -> None:
        calls.append(y)

    head = build_transform(square)
    tail = build_sink(record)
    head.set_consumer(tail)

    for value in [1, 2, 3]:
        head.consume(value)

    assert calls == [1, 4, 9]


def test_transform_into_transform():
    """A transform can be the downstream of another transform."""
    collected = []

    def to_text(x: int) -> str:
        return str(x)

    def shout(text: str) -> str:
        return text + "!"

    def collect(text: str) -> None:
        collected.append(text)

    nodes = [build_transform(to_text), build_transform(shout), build_sink(collect)]
    connect(*nodes)

    nodes[0].consume(42)

    assert collected == ["42!"]


def test_tuple_result_delivered_positionally():
    """A multi-element result arrives as separate positional arguments."""
    received = []

    def split(text: str) -> tuple[str, int]:
        return text, len(text)

    def record(word: str, length: int) -> None:
        received.append((word, length))

    head = build_transform(split)
    tail = build_sink(record)
    head.set_consumer(tail)

    head.consume("hello")

    assert received == [("hello", 5)]


def test_single_value_delivered_as_one_argument():
    """A non-tuple result is one argument, even when it is a container."""
    received = []

    def words(text: str) -> list[str]:
        return text.split()

    def record(items: list[str]) -> None:
        received.append(items)

    head = build_transform(words)
    tail = build_sink(record)
    head.set_consumer(tail)

    head.consume("a b c")

    assert received == [["a", "b", "c"]]


def test_namedtuple_delivered_as_one_argument():
    """NamedTuple results are not unpacked."""
    received = []

    class Point(NamedTuple):
        x: int
        y: int

    def to_point(x: int) -> Point:
        return Point(x, -x)

    def record(point: Point) -> None:
        received.append(point)

    head = build_transform(to_point)
    tail = build_sink(record)
    head.set_consumer(tail)

    head.consume(3)

    assert received == [Point(3, -3)]


def test_consume_returns_after_whole_chain():
    """Delivery completes down the chain before consume returns."""
    events = []

    def first(x: int) -> int:
        events.append("first")
        return x

    def second(x: int) -> None:
        events.append("second")

    head = build_transform(first)
    tail = build_sink(second)
    head.set_consumer(tail)

    result = head.consume(1)
    events.append("returned")

    assert result is None
    assert events == ["first", "second", "returned"]


def test_sink_discards_result():
    """A sink built with discard_result never forwards its return value."""
    calls = []

    def echo(y: int) -> int:
        calls.append(y)
        return y

    node = build_sink(echo, discard_result=True)

    assert node.consume(5) is None
    assert calls == [5]


def test_unwired_producer_raises_on_consume():
    """Driving an unwired transform reports the missing consumer."""
    calls = []

    def increment(x: int) -> int:
        calls.append(x)
        return x + 1

    head = build_transform(increment)

    with pytest.raises(UnwiredProducerError, match="increment"):
        head.consume(1)
    assert calls == [1]


def test_unwired_producer_raises_on_produce():
    """Direct produce() on an unwired node raises as well."""

    def increment(x: int) -> int:
        return x + 1

    head = build_transform(increment)

    with pytest.raises(UnwiredProducerError):
        head.produce(2)


def test_unwired_policy_ignores_type_check_config():
    """The unwired policy is the same in every configuration."""

    def increment(x: int) -> int:
        return x + 1

    head = build_transform(increment, config=ChainConfig(check_types=False))

    with pytest.raises(UnwiredProducerError):
        head.consume(1)


def test_collected_consumer_raises():
    """A downstream node that no longer exists is reported, not skipped."""

    def increment(x: int) -> int:
        return x + 1

    def record(y: int) -> None:
        pass

    head = build_transform(increment)
    head.set_consumer(build_sink(record))  # no reference kept
    gc.collect()

    assert head.downstream is None
    with pytest.raises(DanglingConsumerError):
        head.consume(1)


def test_consume_checks_arity():
    """consume() requires exactly the declared number of values."""

    def add(x: int, y: int) -> None:
        pass

    node = build_sink(add)

    with pytest.raises(ValueTupleError, match="expects 2 value"):
        node.consume(1)
    with pytest.raises(ValueTupleError):
        node.consume(1, 2, 3)


def test_consume_checks_types():
    """consume() rejects values of the wrong type."""
    calls = []

    def record(y: int) -> None:
        calls.append(y)

    node = build_sink(record)

    with pytest.raises(ValueTupleError, match="expects int"):
        node.consume("one")
    assert calls == []


def test_type_checks_can_be_disabled():
    """With check_types=False values reach the handler unchecked."""
    calls = []

    def record(y: int) -> None:
        calls.append(y)

    node = build_sink(record, config=ChainConfig(check_types=False))
    node.consume("one")

    assert calls == ["one"]


def test_handler_returning_wrong_type():
    """A result that contradicts the return annotation is caught on produce."""

    def broken(x: int) -> int:
        return "oops"

    def record(y: int) -> None:
        pass

    head = build_transform(broken)
    tail = build_sink(record)
    head.set_consumer(tail)

    with pytest.raises(ValueTupleError, match="output #0"):
        head.consume(1)


def test_handler_not_returning_declared_tuple():
    """A declared tuple result must actually be a tuple."""

    def broken(x: int) -> tuple[int, int]:
        return [x, x]

    def record(a: int, b: int) -> None:
        pass

    head = build_transform(broken)
    tail = build_sink(record)
    head.set_consumer(tail)

    with pytest.raises(ValueTupleError, match="instead of a tuple"):
        head.consume(1)


def test_handler_errors_propagate_unchanged():
    """Exceptions from handlers reach the driver and stop delivery."""
    calls = []

    def divide(x: int) -> float:
        return 1 / x

    def record(y: float) -> None:
        calls.append(y)

    head = build_transform(divide)
    tail = build_sink(record)
    head.set_consumer(tail)

    with pytest.raises(ZeroDivisionError):
        head.consume(0)
    assert calls == []

    head.consume(4)
    assert calls == [0.25]


def test_produce_skips_own_handler():
    """produce() forwards values without running the producer's handler."""
    calls = []
    received = []

    def increment(x: int) -> int:
        calls.append(x)
        return x + 1

    def record(y: int) -> None:
        received.append(y)

    head = build_transform(increment)
    tail = build_sink(record)
    head.set_consumer(tail)

    head.produce(41)

    assert calls == []
    assert received == [41]


def test_handlers_keep_their_own_state():
    """Bound methods, callable instances and partials all work as stages."""

    class Counter:
        def __init__(self):
            self.total = 0

        def add(self, x: int) -> int:
            self.total += x
            return self.total

    class Scale:
        def __init__(self, factor: int):
            self.factor = factor

        def __call__(self, x: int) -> int:
            return x * self.factor

    def offset(x: int, by: int) -> int:
        return x + by

    collected = []

    def collect(y: int) -> None:
        collected.append(y)

    counter = Counter()
    nodes = [
        build_transform(counter.add),
        build_transform(Scale(10)),
        build_transform(functools.partial(offset, by=1)),
        build_sink(collect),
    ]
    head = connect(*nodes)

    head.consume(1)
    head.consume(2)

    assert counter.total == 3
    assert collected == [11, 31]
