# shardavl

In-memory ordered key/value storage split across several independent AVL
trees ("shards"). Each shard has its own lock.

## Modules

- `shardavl.avl_tree`: `BinarySearchTree` (unbalanced) and `AVLTree`
  (height-balanced). Both offer `insert`, `remove` (returns whether the key
  was present), `contains`, `get(key, default)`, `min_key()` / `max_key()`
  (raise `ValueError` when empty), `clear()`, `height()`, ordered `items()`,
  and inclusive `range_items(lo, hi)`. They also support `len()`, `in` and
  iteration over keys.
- `shardavl.hash_table`: `RobinHoodTable`, an open-addressing hash map with
  power-of-two capacity, Robin Hood insertion and backward-shift removal. It
  accepts any hashable key. It also provides `mix64` (a 64-bit Murmur3
  finalizer) and `key_hash`, which mixes integers directly and other keys
  through `hash()`.
- `shardavl.shard`: `TreeShard`, a lock-protected AVL tree. It counts inserts,
  removes and lookups and tracks its minimum and maximum key. `stats()`
  returns these as a `ShardStats`. `intersects_range(lo, hi)` tells whether a
  range can hold any of the shard's keys.
- `shardavl.router`: `Router` maps keys to shard indices under a
  `RouterStrategy`:
  - `STATIC_HASH`: hash modulo shard count.
  - `LOAD_AWARE`: moves keys off a shard loaded above 1.5× the average.
  - `CONSISTENT_HASH`: a ring of 16 virtual nodes per shard.
  - `INTELLIGENT`: adaptive; it switches to load-aware routing when the
    balance drops.

  `stats()` returns a `RouterStats`. An optional `seed` keyword fixes the
  random fallback.
- `shardavl.redirect_index`: `RedirectIndex` records which shard holds a key
  stored outside its natural shard. It has `lookup`, `remove`, `clear`,
  `stats()` (a `RedirectIndexStats`), `memory_bytes()` (an estimate) and
  `gc(get_current_shard)`.
- `shardavl.parallel_avl`: `ParallelAVL` ties shards, router and redirect
  index together.
  - Core operations: `insert`, `contains`, `get`, `remove`.
  - `range_query(lo, hi, max_results)` returns sorted `(key, value)` pairs.
  - Scaling: `add_shard()`, `remove_shard()` (returns `False` when only one
    shard is left) and `force_rebalance()`.
  - Reporting: `balance_score()`, `stats()` (a `ParallelAVLStats`),
    `format_stats()` and `print_stats(file)`.
- `shardavl.dynamic_sharded`: `DynamicShardedTree` places AVL shards on a
  consistent-hash ring configured by `ShardedConfig(initial_shards=4,
  vnodes_per_shard=64)`.
  - `add_shard()` only changes the ring. A key found in the wrong shard is
    moved to its new shard when `get` or `contains` reads it.
  - `remove_shard()` re-homes the last shard's keys.
  - `force_rebalance()` moves every key to the shard the ring assigns it.
  - `stats()` returns a `DynamicShardStats`. `num_shards` and
    `topology_version` are read-only properties.

## Installation

```
pip install .
```

## Example

```python
from shardavl.parallel_avl import ParallelAVL
from shardavl.router import RouterStrategy

tree = ParallelAVL(8, RouterStrategy.INTELLIGENT)
for k in range(1000):
    tree.insert(k, k * 10)

assert 42 in tree
assert tree.get(42) == 420
print(tree.range_query(10, 15, 100))   # [(10, 100), (11, 110), ...]

tree.add_shard()
tree.force_rebalance()
tree.print_stats()
```

```python
from shardavl.dynamic_sharded import DynamicShardedTree, ShardedConfig

tree = DynamicShardedTree(ShardedConfig(initial_shards=4, vnodes_per_shard=64))
tree.insert("hello", 1)
tree.add_shard()
assert tree.get("hello") == 1
print(tree.stats().balance_score)
```

## What it does not do

This is a library only. It has no command-line program and no benchmark or
workload-generation tools. All data lives in memory; nothing is saved to
disk.

## Running the tests

```
pip install .[test]
pytest
```