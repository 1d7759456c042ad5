
import argparse

from Archiver import ArchiveReader
from Huffman import Huffman
from Tree import build_code_table

# =================================================================================================================

def init() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Text compressor with Huffman codes"
    )
    sub = parser.add_subparsers(dest="cmd")

    # ------------------------------------------------------------
    # encode
    # ------------------------------------------------------------
    p = sub.add_parser("encode", help="Сжать текстовый файл")
    p.add_argument("-i", "--input", required=True)
    p.add_argument("-o", "--output", required=True)
    p.add_argument("--bytes-order", default="little", choices=["little", "big"])
    p.add_argument("--verbose", action="store_true")
    p.add_argument("--stats", action="store_true")

    # ------------------------------------------------------------
    # decode
    # ------------------------------------------------------------
    u = sub.add_parser("decode", help="Распаковать текстовый файл")
    u.add_argument("-i", "--input", required=True)
    u.add_argument("-o", "--output", required=True)
    u.add_argument("--verbose", action="store_true")

    # ------------------------------------------------------------
    # info
    # ------------------------------------------------------------
    t = sub.add_parser("info", help="Показать дерево и кодовую таблицу")
    t.add_argument("-i", "--input", required=True)
    t.add_argument("--verbose", action="store_true")

    # ------------------------------------------------------------
    # verify
    # ------------------------------------------------------------
    v = sub.add_parser("verify", help="Проверить CRC и декодируемость")
    v.add_argument("-i", "--input", required=True)
    v.add_argument("--verbose", action="store_true")

    return parser

# =================================================================================================================

def info_mode(args):
    """Печатает заголовок, дерево и кодовую таблицу контейнера."""
    print("[info] Analyzing:", args.input)
    reader = ArchiveReader(args.input)
    reader.open()

    print("Container header:")
    print(reader.header)

    tree_bytes, payload_bytes = reader.read_sections()
    huffman = Huffman()
    text = huffman.unpack(tree_bytes, payload_bytes)

    print(f"\nSymbols: {len(text)}, payload bits: {len(huffman.bits)}")
    if huffman.tree is None:
        print("Tree: <empty>")
        return

    print("Tree:", huffman.tree)
    print("\nCodes:")
    codes = build_code_table(huffman.tree)
    for sym, code in sorted(codes.items(), key=lambda x: (len(x[1]), x[1])):
        print(f" • {sym!r:>8} {code}")

def verify_mode(args):
    """Проверяет контейнер без записи результата."""
    print("[verify]", args.input)
    reader = ArchiveReader(args.input)
    reader.open()
    print("CRC:", reader.verify())

# =================================================================================================================

def bytes_order_to_flag(order: str) -> int:
    return 0 if order == "little" else 1
