import io
import random

import pytest

from shardavl.dynamic_sharded import DynamicShardedTree, ShardedConfig


def _filled(n, factor=1, config=None):
    tree = DynamicShardedTree(config)
    for i in range(n):
        tree.insert(i, i * factor)
    return tree


def test_api_compatibility():
    tree = _filled(10000, 10)
    assert len(tree) == 10000
    assert tree.contains(5000)
    assert not tree.contains(99999)
    assert tree.get(5000) == 50000
    assert tree.remove(5000) is True
    assert not tree.contains(5000)
    assert len(tree) == 9999
    assert tree.get(99999) is None
    assert tree.get(99999, 0) == 0


def test_basic_scaling():
    tree = _filled(50000)
    stats1 = tree.stats()
    assert stats1.num_shards == 4
    assert stats1.balance_score > 0.7

    tree.add_shard()
    tree.add_shard()
    stats2 = tree.stats()
    assert stats2.num_shards == 6
    assert stats2.total_elements == stats1.total_elements

    tree.force_rebalance()
    stats3 = tree.stats()
    assert stats3.balance_score > 0.8
    assert stats3.total_elements == stats1.total_elements


def test_scale_down():
    tree = _filled(30000, 2, ShardedConfig(initial_shards=6))
    stats1 = tree.stats()
    assert stats1.num_shards == 6

    assert tree.remove_shard() is True
    assert tree.remove_shard() is True
    stats2 = tree.stats()
    assert stats2.num_shards == 4
    assert stats2.total_elements == stats1.total_elements
    assert all(tree.get(i) == i * 2 for i in range(100))


def test_distribution():
    tree = DynamicShardedTree()
    rng = random.Random(42)
    for i in range(100000):
        tree.insert(rng.randint(0, 999999), i)
    stats = tree.stats()
    assert stats.balance_score > 0.75
    for count in stats.elements_per_shard:
        pct = 100.0 * count / stats.total_elements
        assert 15 <= pct <= 35


def test_string_keys():
    tree = DynamicShardedTree()
    for key, value in [("hello", 1), ("world", 2), ("foo", 3), ("bar", 4)]:
        tree.insert(key, value)
    assert len(tree) == 4
    assert tree.contains("hello") and tree.contains("world")
    assert tree.get("foo") == 3
    tree.remove("bar")
    assert not tree.contains("bar")
    assert len(tree) == 3


def test_lazy_migration():
    tree = _filled(10000, 100)
    tree.add_shard()
    for i in range(1000):
        assert tree.contains(i)
        assert tree.get(i) == i * 100
    assert len(tree) == 10000


def test_lazy_migration_moves_keys_into_new_shard():
    tree = _filled(10000)
    tree.add_shard()
    assert tree.stats().elements_per_shard[4] == 0
    for i in range(10000):
        assert i in tree
    stats = tree.stats()
    assert stats.elements_per_shard[4] > 0
    assert stats.total_elements == 10000


def test_config():
    tree = DynamicShardedTree(ShardedConfig(initial_shards=8, vnodes_per_shard=128))
    assert tree.stats().num_shards == 8
    for i in range(10000):
        tree.insert(i, i)
    assert tree.stats().total_elements == 10000


def test_edge_cases():
    tree = DynamicShardedTree()
    assert len(tree) == 0
    assert not tree.contains(0)

    tree.insert(42, 100)
    assert len(tree) == 1
    assert tree.get(42) == 100

    tree.insert(42, 200)
    assert tree.get(42) == 200
    assert len(tree) == 1

    assert tree.remove(9999) is False
    assert len(tree) == 1

    single = DynamicShardedTree(ShardedConfig(initial_shards=1))
    single.insert(1, 1)
    assert single.remove_shard() is False
    assert single.num_shards == 1
    assert single.get(1) == 1


def test_topology_version_counts_changes():
    tree = DynamicShardedTree()
    assert tree.topology_version == 0
    tree.add_shard()
    tree.remove_shard()
    assert tree.topology_version == 2
    tree.force_rebalance()
    assert tree.topology_version == 2


def test_empty_stats_are_perfectly_balanced():
    stats = DynamicShardedTree().stats()
    assert stats.total_elements == 0
    assert stats.balance_score == 1.0
    assert stats.elements_per_shard == (0, 0, 0, 0)


@pytest.mark.parametrize("kwargs", [{"initial_shards": 0}, {"vnodes_per_shard": 0}])
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        ShardedConfig(**kwargs)


def test_print_stats_report():
    tree = _filled(100)
    out = io.StringIO()
    tree.print_stats(out)
    text = out.getvalue()
    assert text == tree.format_stats()
    assert "  Shards: 4\n" in text
    assert "  Total elements: 100\n" in text
    assert text.count("    Shard ") == 4
    assert "Dynamic Sharded Tree Statistics" in text