"""In-memory AVL trees, a Robin Hood hash table, and sharded maps built from them."""

__version__ = "0.1.0"

__all__ = [
    "avl_tree",
    "hash_table",
    "shard",
    "router",
    "redirect_index",
    "parallel_avl",
    "dynamic_sharded",
]