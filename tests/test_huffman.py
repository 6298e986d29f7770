import heapq
import itertools
import random

import pytest

import huffman as huff


def table_from(counts):
    ft = [0] * huff.ALPHABET_SIZE
    for symbol, frequency in counts.items():
        ft[symbol] = frequency
    return ft


def classical_huffman_cost(weights):
    # cost of an optimal prefix code = sum of all merged weights
    heap = list(weights)
    heapq.heapify(heap)
    cost = 0
    while len(heap) > 1:
        merged = heapq.heappop(heap) + heapq.heappop(heap)
        cost += merged
        heapq.heappush(heap, merged)
    return cost


def test_frequency_table_counts_and_forces_sentinel():
    ft = huff.build_frequency_table([b"abca", b"", b"a"])
    assert len(ft) == huff.ALPHABET_SIZE
    assert ft[ord("a")] == 3
    assert ft[ord("b")] == 1
    assert ft[ord("c")] == 1
    assert ft[huff.SENTINEL] == 1
    assert sum(ft) == 6


def test_frequency_table_empty_input():
    ft = huff.build_frequency_table([])
    assert ft[huff.SENTINEL] == 1
    assert sum(ft) == 1


def test_frequency_table_reads_chunks_once():
    chunks = iter([b"xy", b"z"])
    huff.build_frequency_table(chunks)
    assert list(chunks) == []


def test_empty_input_gives_single_leaf_with_one_bit_code():
    root = huff.build_huffman_tree(huff.build_frequency_table([b""]))
    assert isinstance(root, huff.Leaf)
    assert root.symbol == huff.SENTINEL
    assert huff.generate_huffman_codes(root) == {huff.SENTINEL: "0"}


def test_single_repeated_byte_gives_two_one_bit_codes():
    ft = huff.build_frequency_table([b"A" * 1000])
    assert ft[65] == 1000
    root = huff.build_huffman_tree(ft)
    assert isinstance(root, huff.Internal)
    assert root.weight == 1001
    codes = huff.generate_huffman_codes(root)
    assert sorted(codes) == [65, huff.SENTINEL]
    assert sorted(codes.values()) == ["0", "1"]
    assert huff.weighted_path_length(ft, codes) == 1001


def test_all_byte_values_give_257_leaves():
    ft = huff.build_frequency_table([bytes(range(256))])
    root = huff.build_huffman_tree(ft)
    codes = huff.generate_huffman_codes(root)
    assert len(codes) == 257
    lengths = sorted(len(c) for c in codes.values())
    assert lengths.count(8) == 255
    assert lengths.count(9) == 2
    assert huff.weighted_path_length(ft, codes) == 255 * 8 + 2 * 9


def test_equal_weights_merge_in_insertion_order():
    ft = table_from({ord("A"): 1, ord("B"): 1, ord("C"): 1, huff.SENTINEL: 1})
    codes = huff.generate_huffman_codes(huff.build_huffman_tree(ft))
    assert codes == {ord("A"): "00", ord("B"): "01", ord("C"): "10", huff.SENTINEL: "11"}


def test_tree_is_reproducible():
    rng = random.Random(7)
    data = bytes(rng.choice(b"aabbbcdde\n ") for _ in range(500))
    ft = huff.build_frequency_table([data])
    first = huff.generate_huffman_codes(huff.build_huffman_tree(ft))
    second = huff.generate_huffman_codes(huff.build_huffman_tree(list(ft)))
    assert first == second


def test_internal_weights_are_sums_and_tree_is_full():
    ft = huff.build_frequency_table([b"mississippi river"])
    root = huff.build_huffman_tree(ft)

    def check(node):
        if isinstance(node, huff.Leaf):
            assert node.weight == ft[node.symbol]
            return node.weight
        assert node.left is not None and node.right is not None
        total = check(node.left) + check(node.right)
        assert node.weight == total
        return total

    assert check(root) == sum(ft)
    assert sorted(leaf.symbol for leaf in huff.tree_leaves(root)) == [s for s, f in enumerate(ft) if f]


@pytest.mark.parametrize("seed", [1, 2, 3, 4])
def test_codes_are_prefix_free(seed):
    rng = random.Random(seed)
    data = bytes(rng.randrange(0, 40) for _ in range(2000))
    codes = huff.generate_huffman_codes(huff.build_huffman_tree(huff.build_frequency_table([data])))
    for (s1, c1), (s2, c2) in itertools.permutations(codes.items(), 2):
        assert not c2.startswith(c1), f"{s1}:{c1} is a prefix of {s2}:{c2}"


@pytest.mark.parametrize("counts", [
    {0: 5, 1: 9, 2: 12, 3: 13, 4: 16, 5: 45},
    {10: 1, 11: 1, 12: 2, 13: 3, 14: 5, 15: 8, 16: 13},
    {200: 100, 201: 1},
    {i: i * i + 1 for i in range(60)},
])
def test_weighted_path_length_is_optimal(counts):
    ft = table_from(counts)
    ft[huff.SENTINEL] = 1
    codes = huff.generate_huffman_codes(huff.build_huffman_tree(ft))
    expected = classical_huffman_cost([f for f in ft if f > 0])
    assert huff.weighted_path_length(ft, codes) == expected


def test_leaves_are_listed_left_to_right():
    ft = table_from({ord("A"): 1, ord("B"): 1, ord("C"): 1, huff.SENTINEL: 1})
    root = huff.build_huffman_tree(ft)
    assert [leaf.symbol for leaf in huff.tree_leaves(root)] == [ord("A"), ord("B"), ord("C"), huff.SENTINEL]


@pytest.mark.parametrize("bad", [
    [1] * 256,
    [0] * 257,
    [1] * 256 + [-1],
    [1] * 256 + [1.5],
    [1] * 256 + [0],
])
def test_invalid_frequency_tables_are_rejected(bad):
    with pytest.raises(ValueError):
        huff.build_huffman_tree(bad)
