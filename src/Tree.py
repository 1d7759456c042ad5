"""Дерево Хаффмана в виде арены узлов.

Узлы хранятся в плоском списке, дочерние узлы адресуются индексами,
корень - индексом root. Обходы выполняются с явным стеком, без рекурсии,
поэтому глубина дерева не ограничена глубиной стека вызовов.

Разрешение равных весов:
    куча упорядочена по паре (вес, порядковый номер создания узла).
    Листья создаются в порядке ключей таблицы частот, объединённые узлы -
    в порядке слияния. Первый извлечённый узел становится левым потомком.
    Поэтому повторное кодирование одного текста даёт идентичное дерево.

Сложность построения: O(n log n) для n различных символов.

API:
    HuffmanTree.build(freqs) -> HuffmanTree
    HuffmanTree.from_preorder(records) -> HuffmanTree
    build_code_table(tree) -> Dict[str, str]
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from heapq import heappush, heappop
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from Errors import EmptyInputError, MalformedStreamError

# =================================================================================================================

log = logging.getLogger(__name__)

NO_CHILD = -1

# =================================================================================================================

@dataclass(frozen=True)
class TreeNode:
    weight: int
    symbol: Optional[str]   = None
    left: int               = NO_CHILD
    right: int              = NO_CHILD

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None and self.left == NO_CHILD and self.right == NO_CHILD

    @property
    def is_internal(self) -> bool:
        return self.symbol is None and self.left != NO_CHILD and self.right != NO_CHILD

# =================================================================================================================

class HuffmanTree:
    """Неизменяемое двоичное дерево Хаффмана.

    Атрибуты:
        nodes (Tuple[TreeNode, ...]): Арена узлов.
        root (int): Индекс корня в арене.
    """

    def __init__(self, nodes: Iterable[TreeNode], root: int):
        self.nodes: Tuple[TreeNode, ...] = tuple(nodes)
        self.root = root

# -------------------------------------------------------------------------------------------------

    @classmethod
    def build(cls, freqs: Mapping[str, int]) -> HuffmanTree:
        """Строит дерево жадным попарным слиянием двух самых лёгких узлов.

        Args:
            freqs (Mapping[str, int]): Таблица частот {символ: количество}.

        Raises:
            EmptyInputError: если таблица частот пуста.
            ValueError: если ключ не одиночный символ или частота отрицательна.

        Returns:
            HuffmanTree: Дерево, из одного листа если символ единственный.
        """
        if not freqs:
            raise EmptyInputError("Невозможно построить дерево по пустой таблице частот")

        nodes: List[TreeNode] = []
        heap: List[Tuple[int, int]] = []    # (вес, индекс узла = порядок создания)

        for sym, w in freqs.items():
            if not isinstance(sym, str) or len(sym) != 1:
                raise ValueError(f"Symbol must be a single character, got {sym!r}")
            if w < 0:
                raise ValueError(f"Negative frequency for {sym!r}: {w}")
            nodes.append(TreeNode(w, sym))
            heappush(heap, (w, len(nodes) - 1))

        while len(heap) > 1:    # меньший (или более ранний) узел уходит влево
            w1, n1 = heappop(heap)
            w2, n2 = heappop(heap)
            nodes.append(TreeNode(w1 + w2, None, n1, n2))
            heappush(heap, (w1 + w2, len(nodes) - 1))

        _, root = heap[0]
        log.debug("built tree: %d symbols, %d nodes, root weight %d",
                  len(freqs), len(nodes), nodes[root].weight)
        return cls(nodes, root)

    @classmethod
    def from_preorder(cls, records: Iterable[Tuple[int, Optional[str]]]) -> HuffmanTree:
        """Восстанавливает дерево по прямому (pre-order) обходу.

        Каждая запись - (вес, символ), символ None означает внутренний узел.
        Для полного двоичного дерева такой обход однозначно задаёт структуру.

        Raises:
            MalformedStreamError: обход пуст, обрезан, содержит лишние узлы
                или дерево нарушает инварианты.
        """
        raw: List[list] = []
        pending: List[int] = []     # внутренние узлы, ожидающие потомков

        for weight, symbol in records:
            index = len(raw)
            if index and not pending:
                raise MalformedStreamError(f"Лишний узел {index} после завершения дерева")

            raw.append([weight, symbol, NO_CHILD, NO_CHILD])
            if pending:
                parent = raw[pending[-1]]
                if parent[2] == NO_CHILD:
                    parent[2] = index
                else:
                    parent[3] = index
                    pending.pop()

            if symbol is None:
                pending.append(index)

        if not raw:
            raise MalformedStreamError("Пустой обход дерева")
        if pending:
            raise MalformedStreamError(f"Дерево обрезано: {len(pending)} узлов без потомков")

        tree = cls((TreeNode(*r) for r in raw), 0)
        tree.validate()
        return tree

# -------------------------------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> TreeNode:
        return self.nodes[index]

    @property
    def root_node(self) -> TreeNode:
        return self.nodes[self.root]

    @property
    def weight(self) -> int:
        return self.root_node.weight

    @property
    def is_single_leaf(self) -> bool:
        return self.root_node.is_leaf

    def iter_preorder(self) -> Iterator[TreeNode]:
        """Прямой обход: узел, левое поддерево, правое поддерево."""
        stack = [self.root]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)

    def leaves(self) -> List[TreeNode]:
        """Листья слева направо."""
        return [node for node in self.iter_preorder() if node.is_leaf]

    def structure(self) -> List[Tuple[int, Optional[str]]]:
        """Прямой обход в виде [(вес, символ)], не зависит от раскладки арены."""
        return [(node.weight, node.symbol) for node in self.iter_preorder()]

    def depth(self) -> int:
        """Максимальная глубина листа (длина самого длинного кода)."""
        deepest = 0
        stack = [(self.root, 0)]
        while stack:
            index, d = stack.pop()
            node = self.nodes[index]
            if node.is_leaf:
                deepest = max(deepest, d)
            else:
                stack.append((node.left, d + 1))
                stack.append((node.right, d + 1))
        return deepest

    def __eq__(self, other) -> bool:
        if not isinstance(other, HuffmanTree):
            return NotImplemented
        return self.structure() == other.structure()

    def __repr__(self) -> str:
        return f"HuffmanTree(nodes={len(self.nodes)}, weight={self.weight})"

    def __str__(self) -> str:
        """Вложенное представление: { freq: 4, left: {...}, right: {...} }"""
        out = []
        stack: list = [self.root]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                out.append(item)
                continue
            node = self.nodes[item]
            if node.is_leaf:
                out.append(f"{{ freq: {node.weight}, ch: {node.symbol!r} }}")
            else:
                out.append(f"{{ freq: {node.weight}, left: ")
                stack.extend([" }", node.right, ", right: ", node.left])
        return "".join(out)

# -------------------------------------------------------------------------------------------------

    def validate(self) -> None:
        """Проверяет структурные инварианты дерева.

        - корень и все ссылки указывают внутрь арены
        - каждый узел достижим из корня ровно один раз (нет общих узлов и циклов)
        - узел либо чистый лист, либо чистый внутренний узел
        - вес внутреннего узла равен сумме весов потомков
        - символы листьев уникальны

        Raises:
            MalformedStreamError: при нарушении любого инварианта.
        """
        count = len(self.nodes)
        if not 0 <= self.root < count:
            raise MalformedStreamError(f"Корень {self.root} вне арены из {count} узлов")

        seen = set()
        symbols = set()
        stack = [self.root]
        while stack:
            index = stack.pop()
            if not 0 <= index < count:
                raise MalformedStreamError(f"Ссылка на несуществующий узел {index}")
            if index in seen:
                raise MalformedStreamError(f"Узел {index} достижим дважды")
            seen.add(index)

            node = self.nodes[index]
            if node.weight < 0:
                raise MalformedStreamError(f"Отрицательный вес узла {index}")

            if node.is_leaf:
                if node.symbol in symbols:
                    raise MalformedStreamError(f"Повтор символа {node.symbol!r}")
                symbols.add(node.symbol)
            elif node.is_internal:
                left, right = node.left, node.right
                if not (0 <= left < count and 0 <= right < count):
                    raise MalformedStreamError(f"Ссылка на несуществующий узел из {index}")
                if node.weight != self.nodes[left].weight + self.nodes[right].weight:
                    raise MalformedStreamError(f"Вес узла {index} не равен сумме весов потомков")
                stack.append(right)
                stack.append(left)
            else:
                raise MalformedStreamError(f"Узел {index} не является ни листом, ни внутренним узлом")

        if len(seen) != count:
            raise MalformedStreamError(f"Недостижимых узлов: {count - len(seen)}")

# =================================================================================================================

def build_code_table(tree: HuffmanTree) -> Dict[str, str]:
    """Строит кодовую таблицу обходом дерева в глубину.

    Переход влево добавляет '0', вправо - '1'. Единственный лист-корень
    получает код "0", чтобы каждый символ занимал хотя бы один бит.

    Raises:
        MalformedStreamError: если узел не является ни листом, ни внутренним.

    Returns:
        Dict[str, str]: {символ: код}
    """
    if tree.is_single_leaf:
        return {tree.root_node.symbol: "0"}

    codes: Dict[str, str] = {}
    stack = [(tree.root, "")]
    while stack:
        index, code = stack.pop()
        node = tree.nodes[index]
        if node.is_leaf:
            codes[node.symbol] = code
        elif node.is_internal:
            stack.append((node.right, code + "1"))
            stack.append((node.left, code + "0"))
        else:
            raise MalformedStreamError(f"Нарушен инвариант узла {index}: {node}")

    return codes
