import logging
from collections import Counter
from typing import Dict, Optional, Tuple

from Errors import MalformedStreamError, UnknownSymbolError
from Tree import HuffmanTree, build_code_table
from Huffman_Formats import *
from utils import *

"""Кодек Хаффмана для текста.

Поддерживает:
    - подсчёт частот символов текста
    - построение дерева Хаффмана жадным слиянием
    - генерацию кодовой таблицы обходом дерева
    - кодирование текста в битовую строку и обратное декодирование по дереву
    - сериализацию дерева и нагрузки в независимые байтовые буферы

Соглашения:
    - пустой текст кодируется пустым деревом и нагрузкой из 0 бит
    - единственный символ получает код "0", по одному биту на вхождение

Атрибуты:
    freqs (Counter): Частоты символов входного текста.
    tree (HuffmanTree | None): Дерево Хаффмана.
    codes (Dict[str, str]): Кодовая таблица {символ: код}.

API:
    - Huffman(): класс с методами pack/unpack.
    - encode(text) / decode(tree_bytes, payload_bytes): функции поверх Huffman.
"""

log = logging.getLogger(__name__)

class Huffman:
# -------------------------------------------------------------------------------------------------

    def __init__(self, bytes_order: int = 0):
        """Инициализирует локальные СД

        Args:
            bytes_order (int): Порядок байтов заголовков: 0 - LE, 1 - BE.
        """
        self.bytes_order = bytes_order
        self.freqs: Counter = Counter()
        self.tree: Optional[HuffmanTree] = None
        self.codes: Dict[str, str] = dict()
        self.bits: str = ""

# -------------------------------------------------------------------------------------------------

    def pack(self, text: str) -> Tuple[bytes, bytes]:
        """Кодирует текст кодом Хаффмана.

        Args:
            text (str): Входной текст.

        Returns:
            tuple:
            - tree_bytes (bytes): Сериализованное дерево.
            - payload_bytes (bytes): Сериализованная битовая нагрузка.
        """
        self.freqs = count_frequencies(text)
        log.debug("frequencies: %d symbols, %d distinct", len(text), len(self.freqs))

        if self.freqs:
            self.tree = HuffmanTree.build(self.freqs)
            self.codes = build_code_table(self.tree)
        else:
            self.tree = None
            self.codes = {}

        self.bits = encode_text(text, self.codes)

        tree_bytes = serialize_tree(self.tree, self.bytes_order)
        payload_bytes = serialize_payload(self.bits, self.bytes_order)
        return tree_bytes, payload_bytes

    def unpack(self, tree_bytes: bytes, payload_bytes: bytes) -> str:
        """Декодирует текст по сериализованным дереву и нагрузке.

        Raises:
            DeserializationError: повреждённый буфер.
            MalformedStreamError: нагрузка не соответствует дереву
                или длина текста отличается от веса корня.
        """
        self.tree = deserialize_tree(tree_bytes)
        self.bits = deserialize_payload(payload_bytes)

        if self.tree is None:
            if self.bits:
                raise MalformedStreamError(f"Нагрузка из {len(self.bits)} бит при пустом дереве")
            self.freqs = Counter()
            self.codes = {}
            return ""

        # вес листа - число вхождений символа в исходный текст
        self.freqs = Counter({leaf.symbol: leaf.weight for leaf in self.tree.leaves()})
        self.codes = build_code_table(self.tree)
        text = decode_bits(self.bits, self.tree)

        # вес корня равен длине исходного текста
        if len(text) != self.tree.weight:
            raise MalformedStreamError(
                f"Декодировано {len(text)} символов, дерево описывает {self.tree.weight}")
        return text

# -------------------------------------------------------------------------------------------------

    def stats(self) -> dict:
        """Статистика последнего кодирования.

        Returns:
            dict:
            - symbols (int): Длина текста.
            - alphabet (int): Количество различных символов.
            - bits (int): Длина нагрузки в битах.
            - avg_code_length (float): Средняя длина кода на символ.
            - max_code_length (int): Длина самого длинного кода.
        """
        total = sum(self.freqs.values())
        return {
            "symbols": total,
            "alphabet": len(self.freqs),
            "bits": len(self.bits),
            "avg_code_length": len(self.bits) / total if total else 0.0,
            "max_code_length": max(map(len, self.codes.values()), default=0),
        }

# =================================================================================================================

def encode_text(text: str, codes: Dict[str, str]) -> str:
    """Заменяет каждый символ текста его кодом.

    Raises:
        UnknownSymbolError: символа нет в кодовой таблице.
    """
    try:
        return "".join(codes[ch] for ch in text)
    except KeyError as e:
        raise UnknownSymbolError(f"Символ {e.args[0]!r} отсутствует в кодовой таблице") from None

def decode_bits(bits: str, tree: HuffmanTree) -> str:
    """Декодирует битовую строку проходом по дереву.

    Курсор стартует в корне, '0' ведёт влево, '1' вправо,
    на листе символ выводится и курсор возвращается в корень.
    Для дерева из одного листа каждый бит '0' даёт одно вхождение символа.

    Raises:
        MalformedStreamError: бит вне {0,1}, бит '1' для дерева из одного листа
            или поток закончился посреди кода.
    """
    validate_bits(bits)
    root = tree.root_node

    if root.is_leaf:
        if "1" in bits:
            raise MalformedStreamError(f"Бит '1' в позиции {bits.index('1')} для дерева из одного листа")
        return root.symbol * len(bits)

    nodes = tree.nodes
    out = []
    cur = root
    for bit in bits:
        cur = nodes[cur.left] if bit == "0" else nodes[cur.right]
        if cur.symbol is not None:
            out.append(cur.symbol)
            cur = root

    if cur is not root:
        raise MalformedStreamError("Поток обрезан: последний код не завершён")
    return "".join(out)

# =================================================================================================================

def encode(text: str) -> Tuple[bytes, bytes]:
    """Кодирует текст в пару (tree_bytes, payload_bytes)."""
    return Huffman().pack(text)

def decode(tree_bytes: bytes, payload_bytes: bytes) -> str:
    """Восстанавливает текст из пары буферов encode."""
    return Huffman().unpack(tree_bytes, payload_bytes)
