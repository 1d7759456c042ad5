# tests/test_unit_huffman.py

import sys, os
# Добавляем src/ в путь
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import random
import unittest

from Huffman import *
from Tree import *
from utils import *
from Errors import EmptyInputError, MalformedStreamError, UnknownSymbolError

# ======================================================================
#                        UNIT TESTS FOR FREQUENCIES
# ======================================================================

class TestFrequencyCounter(unittest.TestCase):

    def test_frequency_counting(self):
        freqs = count_frequencies("AAABBC")
        self.assertEqual(freqs["A"], 3)
        self.assertEqual(freqs["B"], 2)
        self.assertEqual(freqs["C"], 1)
        self.assertEqual(list(freqs), ["A", "B", "C"])   # порядок первого появления

    def test_empty_text(self):
        self.assertEqual(count_frequencies(""), {})

    def test_pack_fills_freqs(self):
        h = Huffman()
        h.pack("abracadabra")
        self.assertEqual(h.freqs["a"], 5)
        self.assertEqual(sum(h.freqs.values()), 11)

# ======================================================================
#                        UNIT TESTS FOR TREE
# ======================================================================

class TestHuffmanTree(unittest.TestCase):

    def test_two_symbols(self):
        tree = HuffmanTree.build(count_frequencies("aaab"))
        self.assertEqual(tree.weight, 4)
        left = tree[tree.root_node.left]
        right = tree[tree.root_node.right]
        # меньший вес становится левым потомком
        self.assertEqual((left.symbol, left.weight), ("b", 1))
        self.assertEqual((right.symbol, right.weight), ("a", 3))

    def test_empty_map_raises(self):
        with self.assertRaises(EmptyInputError):
            HuffmanTree.build({})
        with self.assertRaises(ValueError):
            HuffmanTree.build(Counter())

    def test_invalid_symbols(self):
        with self.assertRaises(ValueError):
            HuffmanTree.build({"ab": 1})
        with self.assertRaises(ValueError):
            HuffmanTree.build({"a": -1})

    def test_single_leaf(self):
        tree = HuffmanTree.build(count_frequencies("cccc"))
        self.assertTrue(tree.is_single_leaf)
        self.assertEqual(len(tree), 1)
        self.assertEqual(tree.root_node, TreeNode(4, "c"))
        self.assertEqual(tree.depth(), 0)

    def test_tie_break_is_fixed(self):
        tree = HuffmanTree.build(count_frequencies("abcd"))
        self.assertEqual(tree.structure(), [
            (4, None),
            (2, None), (1, "a"), (1, "b"),
            (2, None), (1, "c"), (1, "d"),
        ])
        for _ in range(5):
            self.assertEqual(HuffmanTree.build(count_frequencies("abcd")), tree)

    def test_weight_conservation(self):
        random.seed(7)
        text = "".join(random.choice("abcdefgh") * random.randint(1, 5) for _ in range(300))
        tree = HuffmanTree.build(count_frequencies(text))
        self.assertEqual(tree.weight, len(text))
        self.assertEqual(sum(leaf.weight for leaf in tree.leaves()), len(text))
        tree.validate()

    def test_str(self):
        tree = HuffmanTree.build(count_frequencies("aaab"))
        self.assertEqual(str(tree),
                         "{ freq: 4, left: { freq: 1, ch: 'b' }, right: { freq: 3, ch: 'a' } }")

    def test_deep_tree_without_recursion(self):
        # веса 1, 2, 4, ... дают вырожденное дерево глубины n - 1
        n = 2000
        freqs = {chr(0x100 + i): 2 ** i for i in range(n)}
        tree = HuffmanTree.build(freqs)
        self.assertEqual(tree.depth(), n - 1)

        codes = build_code_table(tree)
        self.assertEqual(len(codes[chr(0x100)]), n - 1)
        self.assertEqual(len(codes[chr(0x100 + n - 1)]), 1)

        text = chr(0x100) + chr(0x100 + n - 1) + chr(0x100 + 5)
        self.assertEqual(decode_bits(encode_text(text, codes), tree), text)

    def test_validate_rejects_bad_nodes(self):
        # внутренний узел без правого потомка
        broken = HuffmanTree([TreeNode(1, "a"), TreeNode(1, None, 0)], 1)
        with self.assertRaises(MalformedStreamError):
            broken.validate()
        # неверный вес
        broken = HuffmanTree([TreeNode(1, "a"), TreeNode(1, "b"), TreeNode(3, None, 0, 1)], 2)
        with self.assertRaises(MalformedStreamError):
            broken.validate()
        # общий потомок
        broken = HuffmanTree([TreeNode(1, "a"), TreeNode(2, None, 0, 0)], 1)
        with self.assertRaises(MalformedStreamError):
            broken.validate()

    def test_from_preorder(self):
        tree = HuffmanTree.build(count_frequencies("hello world"))
        self.assertEqual(HuffmanTree.from_preorder(tree.structure()), tree)

        with self.assertRaises(MalformedStreamError):
            HuffmanTree.from_preorder([(2, None), (1, "a")])
        with self.assertRaises(MalformedStreamError):
            HuffmanTree.from_preorder([(1, "a"), (1, "b")])
        with self.assertRaises(MalformedStreamError):
            HuffmanTree.from_preorder([])

# ======================================================================
#                        UNIT TESTS FOR CODE TABLE
# ======================================================================

class TestCodeTable(unittest.TestCase):

    def test_scenario_codes(self):
        self.assertEqual(build_code_table(HuffmanTree.build(count_frequencies("aaab"))),
                         {"a": "1", "b": "0"})
        self.assertEqual(build_code_table(HuffmanTree.build(count_frequencies("abcd"))),
                         {"a": "00", "b": "01", "c": "10", "d": "11"})
        self.assertEqual(build_code_table(HuffmanTree.build(count_frequencies("cccc"))),
                         {"c": "0"})

    def test_prefix_free(self):
        random.seed(12345)
        text = "".join(random.choice("abcdefghijklmnopqrstuvwxyz ,.") for _ in range(2000))
        codes = build_code_table(HuffmanTree.build(count_frequencies(text)))
        values = list(codes.values())
        for i, a in enumerate(values):
            self.assertTrue(a)
            self.assertLessEqual(set(a), {"0", "1"})
            for b in values[i + 1:]:
                self.assertFalse(a.startswith(b) or b.startswith(a), (a, b))

    def test_compression_sanity(self):
        text = "a" * 50 + "b" * 20 + "c" * 10 + "d" * 5 + "e" * 2 + "f"
        freqs = count_frequencies(text)
        codes = build_code_table(HuffmanTree.build(freqs))
        for sym, code in codes.items():
            self.assertLessEqual(len(code), len(freqs) - 1)
        for a in freqs:
            for b in freqs:
                if freqs[a] > freqs[b]:
                    self.assertLessEqual(len(codes[a]), len(codes[b]))

    def test_invariant_violation(self):
        broken = HuffmanTree([TreeNode(1, "a"), TreeNode(1, None, 0), TreeNode(2, None, 0, 1)], 2)
        with self.assertRaises(MalformedStreamError):
            build_code_table(broken)

# ======================================================================
#                        UNIT TESTS FOR ENCODER / DECODER
# ======================================================================

class TestEncoderDecoder(unittest.TestCase):

    def test_scenario_aaab(self):
        tree = HuffmanTree.build(count_frequencies("aaab"))
        bits = encode_text("aaab", build_code_table(tree))
        self.assertEqual(bits, "1110")
        self.assertEqual(decode_bits(bits, tree), "aaab")

    def test_single_leaf(self):
        tree = HuffmanTree.build(count_frequencies("cccc"))
        bits = encode_text("cccc", build_code_table(tree))
        self.assertEqual(bits, "0000")
        self.assertEqual(decode_bits(bits, tree), "cccc")
        self.assertEqual(decode_bits("", tree), "")
        with self.assertRaises(MalformedStreamError):
            decode_bits("0010", tree)

    def test_unknown_symbol(self):
        with self.assertRaises(UnknownSymbolError):
            encode_text("abz", {"a": "0", "b": "1"})
        with self.assertRaises(LookupError):
            encode_text("z", {})

    def test_truncated_stream(self):
        tree = HuffmanTree.build(count_frequencies("abcd"))
        bits = encode_text("abcd", build_code_table(tree))
        with self.assertRaises(MalformedStreamError):
            decode_bits(bits[:-1], tree)

    def test_non_binary_bits(self):
        tree = HuffmanTree.build(count_frequencies("abcd"))
        with self.assertRaises(MalformedStreamError):
            decode_bits("0012", tree)
        with self.assertRaises(MalformedStreamError):
            validate_bits("01 1")

    def test_stats(self):
        h = Huffman()
        h.pack("aaab")
        stats = h.stats()
        self.assertEqual(stats["symbols"], 4)
        self.assertEqual(stats["alphabet"], 2)
        self.assertEqual(stats["bits"], 4)
        self.assertEqual(stats["avg_code_length"], 1.0)
        self.assertEqual(stats["max_code_length"], 1)

# ======================================================================
#                        UNIT TESTS FOR UTILS
# ======================================================================

class TestUtils(unittest.TestCase):

    def test_bit_conversion(self):
        out = bits_to_bytes("10101100")
        self.assertEqual(out, b'\xac')
        self.assertEqual(bytes_to_bits(out, 8), "10101100")

    def test_partial_byte(self):
        out = bits_to_bytes("111")
        self.assertEqual(out, b'\xe0')
        self.assertEqual(bytes_to_bits(out, 3), "111")
        self.assertEqual(padding_bits(3), 5)
        self.assertEqual(padding_bits(16), 0)

    def test_bits_to_bytes_rejects_garbage(self):
        with self.assertRaises(MalformedStreamError):
            bits_to_bytes("0121")


if __name__ == "__main__":
    unittest.main()
