import heapq
from itertools import count
from typing import Dict, Iterable, Iterator, List, Union

ALPHABET_SIZE = 257 # 256 byte values + end-of-stream
SENTINEL = 256 # end-of-stream symbol, always present with frequency 1


class Leaf: # Leaf of the Huffman tree, one per symbol with nonzero frequency
    def __init__(self, symbol: int, weight: int):
        self.symbol = symbol # byte value 0..255 or SENTINEL
        self.weight = weight # frequency of the symbol

    def __repr__(self):
        return f"Leaf({self.symbol}, {self.weight})"


class Internal: # Internal node of the Huffman tree, always has both children
    def __init__(self, weight: int, left: "Node", right: "Node"):
        self.weight = weight # left.weight + right.weight
        self.left = left # 0 branch
        self.right = right # 1 branch

    def __repr__(self):
        return f"Internal({self.weight}, {self.left!r}, {self.right!r})"


Node = Union[Leaf, Internal]


def build_frequency_table(chunks: Iterable[bytes]) -> List[int]: # chunks: iterable of byte strings, consumed once
    frequency_table = [0] * ALPHABET_SIZE
    for chunk in chunks:
        for byte in chunk:
            frequency_table[byte] += 1
    frequency_table[SENTINEL] = 1 # forced, even for empty input
    return frequency_table


def _check_frequency_table(frequency_table) -> None:
    if len(frequency_table) != ALPHABET_SIZE:
        raise ValueError(f"frequency table must have {ALPHABET_SIZE} entries, got {len(frequency_table)}")
    for symbol, frequency in enumerate(frequency_table):
        if not isinstance(frequency, int) or frequency < 0:
            raise ValueError(f"invalid frequency {frequency!r} for symbol {symbol}")
    if frequency_table[SENTINEL] < 1:
        raise ValueError("end-of-stream symbol must have a frequency of at least 1")


def build_huffman_tree(frequency_table: List[int]) -> Node: # frequency_table: list of 257 counts indexed by symbol
    _check_frequency_table(frequency_table)

    # Heap entries are (weight, sequence, node); the sequence number breaks ties
    # in insertion order so equal weights always merge the same way
    sequence = count()
    priority_queue = [(frequency, next(sequence), Leaf(symbol, frequency))
                      for symbol, frequency in enumerate(frequency_table) if frequency > 0]
    heapq.heapify(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        left_weight, _, left = heapq.heappop(priority_queue)
        right_weight, _, right = heapq.heappop(priority_queue)
        weight = left_weight + right_weight
        heapq.heappush(priority_queue, (weight, next(sequence), Internal(weight, left, right)))

    return priority_queue[0][2] # root of the tree, a lone Leaf for a single-symbol table


def generate_huffman_codes(root: Node) -> Dict[int, str]: # root: root of the Huffman tree
    if isinstance(root, Leaf):
        # Edge case of a one-leaf tree -> its path is empty
        # Give it the one bit code "0" so encoder and decoder agree on a nonempty code
        return {root.symbol: "0"}

    codes = {}
    def generate_codes_helper(node, current_code): # recursive helper function to traverse the tree and generate codes
        # Leaf node -> assign code
        if isinstance(node, Leaf):
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    return codes


def tree_leaves(root: Node) -> Iterator[Leaf]: # leaves from left to right
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            yield node
        else:
            stack.append(node.right)
            stack.append(node.left)


def weighted_path_length(frequency_table: List[int], codes: Dict[int, str]) -> int:
    """
    Sum of frequency * code length over all coded symbols,
    i.e. the number of bits in the encoded body before padding
    """
    return sum(frequency_table[symbol] * len(code) for symbol, code in codes.items())
