# Huffman_Formats.py
"""
Форматы буферов кодека Хаффмана: сериализованное дерево и битовая нагрузка.

Буфер дерева (TreeHeader + Body):
0..3     Signature (4 bytes)          ASCII "HFTR"
4..5     Version                      uint16
6        BytesOrder                   uint8 (0 - LE, иначе BE)
7        Reserved                     uint8
8..11    NodeCount                    uint32
12..15   BodyCrc32                    uint32
16..     Body                         узлы в прямом обходе

Запись узла:
    tag uint8 (0 - внутренний, 1 - лист), weight uint64,
    только для листа: длина символа uint8 + символ в UTF-8.

Буфер нагрузки (PayloadHeader + Data):
0..3     Signature (4 bytes)          ASCII "HFPL"
4..5     Version                      uint16
6        BytesOrder                   uint8
7        Padding                      uint8 (незначимые биты последнего байта)
8..15    BitCount                     uint64
16..19   DataCrc32                    uint32
20..     Data                         биты, старшие первыми

Примечания:
- Пустое дерево (NodeCount == 0) кодирует пустой текст.
- Биты дополнения обязаны быть нулевыми.
"""
# =================================================================================================================

from __future__ import annotations
import logging
import struct
import zlib
from dataclasses import dataclass
from typing import List, Optional, Tuple

from Errors import DeserializationError, MalformedStreamError
from Tree import HuffmanTree
from utils import bits_to_bytes, bytes_to_bits, padding_bits

# =================================================================================================================

log = logging.getLogger(__name__)

# lims
MAX_SYMBOL_BYTES        = 4
MAX_NODES               = 2 * 0x110000 - 1     # полное дерево над всем алфавитом Unicode
MAX_PADDING             = 7

VERSION                 = 1

# =================================================================================================

# Tree header constants
T_SIGNATURE             = b"HFTR"
T_HEADER_SIZE           = 16

# Offsets
T_OFF_SIGNATURE         = 0 # char[4]
T_OFF_VERSION           = 4 # uint16
T_OFF_BYTESORDER        = 6 # uint8
T_OFF_RESERVED          = 7 # uint8
T_OFF_NODECOUNT         = 8 # uint32
T_OFF_BODYCRC32         = 12 # uint32

TAG_INTERNAL            = 0
TAG_LEAF                = 1
NODE_FIXED_SIZE         = 9 # tag + weight

# =================================================================================================

# Payload header constants
P_SIGNATURE             = b"HFPL"
P_HEADER_SIZE           = 20

# Offsets
P_OFF_SIGNATURE         = 0 # char[4]
P_OFF_VERSION           = 4 # uint16
P_OFF_BYTESORDER        = 6 # uint8
P_OFF_PADDING           = 7 # uint8
P_OFF_BITCOUNT          = 8 # uint64
P_OFF_DATACRC32         = 16 # uint32

# =================================================================================================================

# Helpers for endian prefix
def _endian_prefix(bytes_order_flag: int) -> str:
    return "<" if bytes_order_flag == 0 else ">"

def _unpack(format, blob, offset):
    return struct.unpack_from(format, blob, offset)[0]

def _pack(format, blob, offset, data):
    struct.pack_into(format, blob, offset, data)

def _crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF

# =================================================================================================================

@dataclass
class TreeHeader:
    version: int                = VERSION
    bytes_order: int            = 0  # 0 -> LE, else BE
    node_count: int             = 0
    body_crc32: int             = 0

    def to_bytes(self) -> bytes:
        """Сериализует заголовок дерева в T_HEADER_SIZE байт."""
        buf = bytearray(T_HEADER_SIZE)
        buf[T_OFF_SIGNATURE:T_OFF_SIGNATURE + len(T_SIGNATURE)] = T_SIGNATURE

        prefix = _endian_prefix(self.bytes_order)
        _pack(f"{prefix}H", buf, T_OFF_VERSION, self.version)
        _pack("B", buf, T_OFF_BYTESORDER, self.bytes_order & 0xFF)
        _pack(f"{prefix}I", buf, T_OFF_NODECOUNT, self.node_count)
        _pack(f"{prefix}I", buf, T_OFF_BODYCRC32, self.body_crc32)
        return bytes(buf)

    @classmethod
    def from_bytes(cls, data: bytes) -> "TreeHeader":
        """Парсит заголовок буфера дерева."""
        if len(data) < T_HEADER_SIZE:
            raise DeserializationError(f"Tree buffer too small: {len(data)} bytes")
        if data[T_OFF_SIGNATURE:T_OFF_SIGNATURE + len(T_SIGNATURE)] != T_SIGNATURE:
            raise DeserializationError("Неверная сигнатура буфера дерева")

        bytes_order = data[T_OFF_BYTESORDER]
        prefix = _endian_prefix(bytes_order)

        H = cls(
            version         = _unpack(f"{prefix}H", data, T_OFF_VERSION),
            bytes_order     = bytes_order,
            node_count      = _unpack(f"{prefix}I", data, T_OFF_NODECOUNT),
            body_crc32      = _unpack(f"{prefix}I", data, T_OFF_BODYCRC32),
        )
        H.validate_header(data[T_OFF_RESERVED])
        return H

    def validate_header(self, reserved: int = 0):
        if self.version != VERSION:
            raise DeserializationError(f"Неподдерживаемая версия буфера дерева: {self.version}")
        if self.bytes_order > 1:
            raise DeserializationError(f"Неизвестный порядок байтов: {self.bytes_order}")
        if reserved != 0:
            raise DeserializationError("Обнаружен мусор в зарезервированной зоне")
        if self.node_count > MAX_NODES or (self.node_count and self.node_count % 2 == 0):
            # полное двоичное дерево всегда содержит нечётное число узлов
            raise DeserializationError(f"Недопустимое количество узлов: {self.node_count}")

# =================================================================================================================

@dataclass
class PayloadHeader:
    version: int                = VERSION
    bytes_order: int            = 0
    padding: int                = 0
    bit_count: int              = 0
    data_crc32: int             = 0

    def to_bytes(self) -> bytes:
        """Сериализует заголовок нагрузки в P_HEADER_SIZE байт."""
        buf = bytearray(P_HEADER_SIZE)
        buf[P_OFF_SIGNATURE:P_OFF_SIGNATURE + len(P_SIGNATURE)] = P_SIGNATURE

        prefix = _endian_prefix(self.bytes_order)
        _pack(f"{prefix}H", buf, P_OFF_VERSION, self.version)
        _pack("B", buf, P_OFF_BYTESORDER, self.bytes_order & 0xFF)
        _pack("B", buf, P_OFF_PADDING, self.padding & 0xFF)
        _pack(f"{prefix}Q", buf, P_OFF_BITCOUNT, self.bit_count)
        _pack(f"{prefix}I", buf, P_OFF_DATACRC32, self.data_crc32)
        return bytes(buf)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PayloadHeader":
        """Парсит заголовок буфера нагрузки."""
        if len(data) < P_HEADER_SIZE:
            raise DeserializationError(f"Payload buffer too small: {len(data)} bytes")
        if data[P_OFF_SIGNATURE:P_OFF_SIGNATURE + len(P_SIGNATURE)] != P_SIGNATURE:
            raise DeserializationError("Неверная сигнатура буфера нагрузки")

        bytes_order = data[P_OFF_BYTESORDER]
        prefix = _endian_prefix(bytes_order)

        H = cls(
            version         = _unpack(f"{prefix}H", data, P_OFF_VERSION),
            bytes_order     = bytes_order,
            padding         = data[P_OFF_PADDING],
            bit_count       = _unpack(f"{prefix}Q", data, P_OFF_BITCOUNT),
            data_crc32      = _unpack(f"{prefix}I", data, P_OFF_DATACRC32),
        )
        H.validate_header()
        return H

    def validate_header(self):
        if self.version != VERSION:
            raise DeserializationError(f"Неподдерживаемая версия буфера нагрузки: {self.version}")
        if self.bytes_order > 1:
            raise DeserializationError(f"Неизвестный порядок байтов: {self.bytes_order}")
        if self.padding > MAX_PADDING or self.padding != padding_bits(self.bit_count):
            raise DeserializationError(
                f"Padding {self.padding} не соответствует количеству бит {self.bit_count}")

    @property
    def data_size(self) -> int:
        return (self.bit_count + 7) // 8

# =================================================================================================================

def serialize_tree(tree: Optional[HuffmanTree], bytes_order: int = 0) -> bytes:
    """Сериализует дерево в прямом обходе.

    Args:
        tree (HuffmanTree | None): Дерево, None - пустое дерево пустого текста.
        bytes_order (int): 0 - little endian, 1 - big endian.

    Returns:
        bytes: Заголовок + тело с записями узлов.
    """
    prefix = _endian_prefix(bytes_order)
    body = bytearray()
    node_count = 0

    if tree is not None:
        for node in tree.iter_preorder():
            if node.is_leaf:
                sym_b = node.symbol.encode("utf-8", "surrogatepass")
                body += struct.pack(f"{prefix}BQB", TAG_LEAF, node.weight, len(sym_b))
                body += sym_b
            else:
                body += struct.pack(f"{prefix}BQ", TAG_INTERNAL, node.weight)
            node_count += 1

    header = TreeHeader(
        bytes_order     = bytes_order,
        node_count      = node_count,
        body_crc32      = _crc32(bytes(body)),
    )
    log.debug("serialized tree: %d nodes, %d body bytes", node_count, len(body))
    return header.to_bytes() + bytes(body)

def _read_nodes(body: bytes, node_count: int, prefix: str) -> List[Tuple[int, Optional[str]]]:
    """Разбирает записи узлов тела буфера дерева."""
    records = []
    offset = 0
    for i in range(node_count):
        if offset + NODE_FIXED_SIZE > len(body):
            raise DeserializationError(f"Unexpected end of tree body at node {i}")
        tag, weight = struct.unpack_from(f"{prefix}BQ", body, offset)
        offset += NODE_FIXED_SIZE

        if tag == TAG_INTERNAL:
            records.append((weight, None))
        elif tag == TAG_LEAF:
            if offset >= len(body):
                raise DeserializationError(f"Unexpected end of tree body at node {i}")
            sym_len = body[offset]
            offset += 1
            if not 1 <= sym_len <= MAX_SYMBOL_BYTES or offset + sym_len > len(body):
                raise DeserializationError(f"Неверная длина символа листа {i}: {sym_len}")
            try:
                symbol = body[offset:offset + sym_len].decode("utf-8", "surrogatepass")
            except UnicodeDecodeError as e:
                raise DeserializationError(f"Некорректный символ листа {i}") from e
            if len(symbol) != 1:
                raise DeserializationError(f"Лист {i} содержит {len(symbol)} символов")
            offset += sym_len
            records.append((weight, symbol))
        else:
            raise DeserializationError(f"Неизвестный тег узла {i}: {tag}")

    if offset != len(body):
        raise DeserializationError(f"Лишние байты в теле дерева: {len(body) - offset}")
    return records

def deserialize_tree(data: bytes) -> Optional[HuffmanTree]:
    """Восстанавливает дерево из буфера serialize_tree.

    Returns:
        HuffmanTree | None: None для пустого дерева.

    Raises:
        DeserializationError: повреждённый или обрезанный буфер.
    """
    header = TreeHeader.from_bytes(data)
    body = bytes(data[T_HEADER_SIZE:])

    if _crc32(body) != header.body_crc32:
        raise DeserializationError(
            f"Tree CRC mismatch: stored={header.body_crc32:#010x}, computed={_crc32(body):#010x}")

    records = _read_nodes(body, header.node_count, _endian_prefix(header.bytes_order))
    if not records:
        return None

    try:
        return HuffmanTree.from_preorder(records)
    except MalformedStreamError as e:
        raise DeserializationError(f"Некорректная структура дерева: {e}") from e

# =================================================================================================================

def serialize_payload(bits: str, bytes_order: int = 0) -> bytes:
    """Упаковывает битовую строку с точным количеством бит в заголовке.

    Args:
        bits (str): Строка из '0' и '1'.
        bytes_order (int): 0 - little endian, 1 - big endian.

    Raises:
        MalformedStreamError: если строка содержит символы кроме '0' и '1'.

    Returns:
        bytes: Заголовок + упакованные биты.
    """
    data = bits_to_bytes(bits)
    header = PayloadHeader(
        bytes_order     = bytes_order,
        padding         = padding_bits(len(bits)),
        bit_count       = len(bits),
        data_crc32      = _crc32(data),
    )
    log.debug("serialized payload: %d bits, %d bytes", len(bits), len(data))
    return header.to_bytes() + data

def deserialize_payload(data: bytes) -> str:
    """Распаковывает буфер serialize_payload в битовую строку.

    Raises:
        DeserializationError: повреждённый или обрезанный буфер.
    """
    header = PayloadHeader.from_bytes(data)
    packed = bytes(data[P_HEADER_SIZE:])

    if len(packed) != header.data_size:
        raise DeserializationError(
            f"Payload size mismatch: expected {header.data_size} bytes, got {len(packed)}")
    if _crc32(packed) != header.data_crc32:
        raise DeserializationError(
            f"Payload CRC mismatch: stored={header.data_crc32:#010x}, computed={_crc32(packed):#010x}")
    if header.padding and packed[-1] & ((1 << header.padding) - 1):
        raise DeserializationError("Ненулевые биты дополнения")

    return bytes_to_bits(packed, header.bit_count)
