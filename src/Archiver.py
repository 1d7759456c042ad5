# Archiver.py
"""
Файл-контейнер для одного закодированного текста: буфер дерева + буфер нагрузки.

Структура:
0..7     Signature (8 bytes)          ASCII "HUFTXT" + zeros
8..9     Version                      uint16
10       BytesOrder                   uint8
11       Reserved                     uint8
12..15   TreeSize                     uint32
16..23   PayloadSize                  uint64
24..27   HeaderCrc32                  uint32
28..31   Reserved
32..     TreeSection, PayloadSection

Примечания:
- HeaderCrc32 считается по 32 байтам заголовка при обнулённом поле HeaderCrc32.
- Секции несут собственные CRC32 (см. Huffman_Formats).
"""
# =================================================================================================================

from __future__ import annotations
import logging
import os
import tempfile
import zlib
from dataclasses import dataclass
from typing import Tuple

from Errors import DeserializationError
from Huffman import decode
from Huffman_Formats import _endian_prefix, _pack, _unpack

# =================================================================================================================

log = logging.getLogger(__name__)

H_SIGNATURE             = b"HUFTXT" + b"\x00" * 2
VERSION                 = 1
HEADER_SIZE             = 32
MAX_TREE_SIZE           = 0xFFFFFFFF

# Offsets
H_OFF_SIGNATURE         = 0 # char[8]
H_OFF_VERSION           = 8 # uint16
H_OFF_BYTESORDER        = 10 # uint8
H_OFF_RESERVED1         = 11 # uint8
H_OFF_TREESIZE          = 12 # uint32
H_OFF_PAYLOADSIZE       = 16 # uint64
H_OFF_HEADERCRC32       = 24 # uint32
H_OFF_RESERVED2         = 28 # up to 32

RESERVED_SIZE           = 1 + HEADER_SIZE - H_OFF_RESERVED2

# =================================================================================================================

@dataclass
class ContainerHeader:
    version: int                = VERSION
    bytes_order: int            = 0  # 0 -> LE, else BE
    tree_size: int              = 0
    payload_size: int           = 0
    header_crc32: int           = 0
    reserved: bytes             = b"\x00" * RESERVED_SIZE   # байт 11 + байты 28..31

    def to_bytes(self) -> bytes:
        """Сериализует заголовок в HEADER_SIZE байт."""
        if self.tree_size > MAX_TREE_SIZE:
            raise ValueError(f"Tree section too large: {self.tree_size} bytes")
        if len(self.reserved) != RESERVED_SIZE:
            raise ValueError(f"Reserved area must be exactly {RESERVED_SIZE} bytes")

        buf = bytearray(HEADER_SIZE)
        buf[H_OFF_SIGNATURE:H_OFF_SIGNATURE + len(H_SIGNATURE)] = H_SIGNATURE

        prefix = _endian_prefix(self.bytes_order)
        _pack(f"{prefix}H", buf, H_OFF_VERSION, self.version)
        _pack("B", buf, H_OFF_BYTESORDER, self.bytes_order & 0xFF)
        _pack(f"{prefix}I", buf, H_OFF_TREESIZE, self.tree_size)
        _pack(f"{prefix}Q", buf, H_OFF_PAYLOADSIZE, self.payload_size)
        _pack(f"{prefix}I", buf, H_OFF_HEADERCRC32, self.header_crc32)

        # reserved переносится как есть, чтобы CRC покрывал все 32 байта
        buf[H_OFF_RESERVED1] = self.reserved[0]
        buf[H_OFF_RESERVED2:HEADER_SIZE] = self.reserved[1:]
        return bytes(buf)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ContainerHeader":
        if len(data) < HEADER_SIZE:
            raise DeserializationError(f"File too small to be valid {H_SIGNATURE!r} container")
        if data[H_OFF_SIGNATURE:H_OFF_SIGNATURE + len(H_SIGNATURE)] != H_SIGNATURE:
            raise DeserializationError("File signature is differs from the container")

        bytes_order = data[H_OFF_BYTESORDER]
        prefix = _endian_prefix(bytes_order)

        H = cls(
            version         = _unpack(f"{prefix}H", data, H_OFF_VERSION),
            bytes_order     = bytes_order,
            tree_size       = _unpack(f"{prefix}I", data, H_OFF_TREESIZE),
            payload_size    = _unpack(f"{prefix}Q", data, H_OFF_PAYLOADSIZE),
            header_crc32    = _unpack(f"{prefix}I", data, H_OFF_HEADERCRC32),
            reserved        = bytes(data[H_OFF_RESERVED1:H_OFF_RESERVED1 + 1])
                              + bytes(data[H_OFF_RESERVED2:HEADER_SIZE]),
        )
        H.validate_header()
        return H

    def validate_header(self):
        if self.version != VERSION:
            raise DeserializationError(f"Неподдерживаемая версия контейнера: {self.version}")

        if self.bytes_order > 1:
            raise DeserializationError(f"Неизвестный порядок байтов: {self.bytes_order}")

        if self.reserved != b"\x00" * RESERVED_SIZE:
            raise DeserializationError("Обнаружен мусор в зарезервированной зоне")

    def compute_header_crc32(self) -> int:
        """Вычисляет CRC32 по заголовку (поле HeaderCrc32 = 0 при вычислении)."""
        b = bytearray(self.to_bytes())
        b[H_OFF_HEADERCRC32:H_OFF_HEADERCRC32 + 4] = b"\x00\x00\x00\x00"
        return zlib.crc32(bytes(b)) & 0xFFFFFFFF

    def validate_crc32(self) -> bool:
        stored = self.header_crc32
        computed = self.compute_header_crc32()
        if stored != computed:
            raise DeserializationError(f"Header CRC mismatch: stored={stored:#010x}, computed={computed:#010x}")
        return True

    @property
    def total_size(self) -> int:
        return HEADER_SIZE + self.tree_size + self.payload_size

# =================================================================================================================

class ArchiveWriter:
    """
    ArchiveWriter: атомарно записывает контейнер с одним закодированным текстом.
    """
    def __init__(self, path: str, bytes_order: int = 0):
        self.path = path
        self.header = ContainerHeader(bytes_order=bytes_order & 0xFF)

    def write(self, tree_bytes: bytes, payload_bytes: bytes) -> ContainerHeader:
        """Собирает заголовок и секции и записывает весь контейнер атомарно.

        Args:
            tree_bytes (bytes): Буфер serialize_tree.
            payload_bytes (bytes): Буфер serialize_payload.

        Returns:
            ContainerHeader: Записанный заголовок.
        """
        self.header.tree_size = len(tree_bytes)
        self.header.payload_size = len(payload_bytes)

        # Для вычисления header_crc32 поле header_crc32 должно быть 0
        self.header.header_crc32 = 0
        self.header.header_crc32 = self.header.compute_header_crc32()
        header_blob = self.header.to_bytes()

        # Atomic write to disk
        dir_path = os.path.dirname(os.path.abspath(self.path))   # Обрезка названия файла
        name = os.path.basename(self.path)                      # Выделение названия файла
        os.makedirs(dir_path, exist_ok=True)                    # Создать директорию, если нет.

        fd, tmp = tempfile.mkstemp(dir=dir_path, prefix=name + ".tmp_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(header_blob)
                f.write(tree_bytes)
                f.write(payload_bytes)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

        log.debug("container written: %s (%d bytes)", self.path, self.header.total_size)
        return self.header

class ArchiveReader:
    """
    ArchiveReader: читает заголовок контейнера и выдаёт секции дерева и нагрузки.
    """
    def __init__(self, path: str):
        self.path = path
        self.header: ContainerHeader

    def open(self) -> ContainerHeader:
        """Открывает контейнер, проверяет сигнатуру, CRC32 заголовка и размер файла.

        Returns:
            ContainerHeader: заголовок контейнера
        """
        with open(self.path, "rb") as f:
            head = f.read(HEADER_SIZE)

        self.header = ContainerHeader.from_bytes(head)
        self.header.validate_crc32()

        size = os.path.getsize(self.path)
        if size != self.header.total_size:
            raise DeserializationError(
                f"Container size mismatch: header says {self.header.total_size}, file has {size}")
        return self.header

    def read_sections(self) -> Tuple[bytes, bytes]:
        """Читает секции контейнера.

        Returns:
            tuple:
            - tree_bytes (bytes): Буфер дерева.
            - payload_bytes (bytes): Буфер нагрузки.
        """
        if not hasattr(self, "header"):
            self.open()

        with open(self.path, "rb") as f:
            f.seek(HEADER_SIZE)
            tree_bytes = f.read(self.header.tree_size)
            payload_bytes = f.read(self.header.payload_size)

        if len(tree_bytes) != self.header.tree_size or len(payload_bytes) != self.header.payload_size:
            raise DeserializationError("Unexpected EOF while reading container sections")
        return tree_bytes, payload_bytes

    def verify(self) -> bool:
        """Проверяет контейнер целиком: заголовок, CRC32 секций и пробное декодирование.

        Raises:
            HuffmanError: при любом повреждении.
        """
        tree_bytes, payload_bytes = self.read_sections()
        decode(tree_bytes, payload_bytes)
        return True

# End of module
