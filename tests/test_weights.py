"""Tests for per-user accumulation, row weight and aggregation."""

import itertools

import pytest

from affinity.models import ItemWeight
from affinity.services.decay import activity_weight
from affinity.services.weights import ItemAccumulator, aggregate_user, row_weight

from .conftest import NOW, make_event


class TestRowWeight:

    def test_empty(self):
        assert row_weight([]) == 0.0

    def test_three_four_five(self):
        weights = [ItemWeight(item="a", itemType="t", weight=3), ItemWeight(item="b", itemType="t", weight=4)]
        assert row_weight(weights) == 5.0

    def test_zero_weights(self):
        assert row_weight([ItemWeight(item="a", itemType="t", weight=0.0)]) == 0.0


class TestItemAccumulator:

    def test_sums_per_item(self):
        acc = ItemAccumulator(NOW)
        acc.add(make_event(item="I1"))
        acc.add(make_event(item="I1", days=45))
        acc.add(make_event(item="I2"))
        by_item = {iw.item: iw.weight for iw in acc.item_weights()}
        assert by_item["I1"] == pytest.approx(1.0 + 1 - 2 * 0.25 ** 3)
        assert by_item["I2"] == 1.0
        assert len(acc) == 2

    def test_first_item_type_wins(self):
        acc = ItemAccumulator(NOW)
        acc.add(make_event(item="I1", item_type="article"))
        acc.add(make_event(item="I1", item_type="video"))
        [entry] = acc.item_weights()
        assert entry.itemType == "article"
        assert entry.weight == 2.0

    def test_non_contributing_action_still_registers_item(self):
        acc = ItemAccumulator(NOW)
        acc.add(make_event(item="I1", action="comment"))
        assert acc.item_weights() == [ItemWeight(item="I1", itemType="article", weight=0.0)]

    def test_first_seen_order(self):
        acc = ItemAccumulator(NOW)
        for item in ["I3", "I1", "I2", "I1"]:
            acc.add(make_event(item=item))
        assert [iw.item for iw in acc.item_weights()] == ["I3", "I1", "I2"]

    def test_order_independent(self):
        events = [
            make_event(item="I1", days=3),
            make_event(item="I2", days=100),
            make_event(item="I1", days=60, action="comment"),
            make_event(item="I3", days=170),
            make_event(item="I2", days=20),
        ]
        results = []
        for perm in itertools.permutations(events):
            acc = ItemAccumulator(NOW)
            for e in perm:
                acc.add(e)
            items = acc.item_weights()
            results.append(({iw.item: (iw.itemType, iw.weight) for iw in items}, row_weight(items)))

        first_map, first_row = results[0]
        for weights_map, row in results[1:]:
            assert weights_map.keys() == first_map.keys()
            for item, (item_type, weight) in weights_map.items():
                assert item_type == first_map[item][0]
                assert weight == pytest.approx(first_map[item][1])
            assert row == pytest.approx(first_row)


async def _aiter(events):
    for e in events:
        yield e


class TestAggregateUser:

    @pytest.mark.asyncio
    async def test_single_fresh_like(self):
        """A like dated now gives weight 1 and row weight 1."""
        result = await aggregate_user("U", _aiter([make_event(user="U")]), now=NOW)
        assert result.user == "U"
        assert result.itemWeights == [ItemWeight(item="I1", itemType="article", weight=1.0)]
        assert result.rowWeight == 1.0

    @pytest.mark.asyncio
    async def test_aged_off_like(self):
        result = await aggregate_user("U", _aiter([make_event(user="U", days=181)]), now=NOW)
        assert result.itemWeights == [ItemWeight(item="I1", itemType="article", weight=0.0)]
        assert result.rowWeight == 0.0

    @pytest.mark.asyncio
    async def test_comment_adds_nothing(self):
        like = make_event(user="U", days=30)
        comment = make_event(user="U", days=2, action="comment")
        result = await aggregate_user("U", _aiter([like, comment]), now=NOW)
        [entry] = result.itemWeights
        assert entry.weight == activity_weight("like", like.dateCreated, NOW)
        assert result.rowWeight == pytest.approx(entry.weight)

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        result = await aggregate_user("U", _aiter([]), now=NOW)
        assert result.itemWeights == []
        assert result.rowWeight == 0.0

    @pytest.mark.asyncio
    async def test_plain_iterable(self):
        result = await aggregate_user("U", [make_event(user="U"), make_event(user="U", item="I2")], now=NOW)
        assert result.rowWeight == pytest.approx(2 ** 0.5)

    @pytest.mark.asyncio
    async def test_stream_error_propagates(self):
        async def broken():
            yield make_event(user="U")
            raise ConnectionError("cursor died")

        with pytest.raises(ConnectionError, match="cursor died"):
            await aggregate_user("U", broken(), now=NOW)
