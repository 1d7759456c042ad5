"""
CLI encoder:
Usage example:
  py src/main.py encode -i book.txt -o book.huf --stats --verbose
  py src/main.py decode -i book.huf -o book.txt
  py src/main.py info -i book.huf
  py src/main.py verify -i book.huf
"""

# =================================================================================================================

import logging
import os
import sys

import cli

from Errors import HuffmanError
from Huffman import Huffman
from Archiver import ArchiveReader, ArchiveWriter

# =================================================================================================================

def encode_archive(args):
    """Сжимает текстовый файл в контейнер."""
    if args.verbose:
        print("[encode] input file:", args.input)

    with open(args.input, "r", encoding="utf-8", newline="") as f:
        text = f.read()

    huffman = Huffman(cli.bytes_order_to_flag(args.bytes_order))
    tree_bytes, payload_bytes = huffman.pack(text)

    writer = ArchiveWriter(args.output, huffman.bytes_order)
    header = writer.write(tree_bytes, payload_bytes)

    if args.stats:
        stats = huffman.stats()
        print("\n=== Statistics ===")
        print(f"• {os.path.basename(args.input)}: {os.path.getsize(args.input)} bytes → {header.total_size} bytes")
        print(f"  Symbols:         {stats['symbols']}")
        print(f"  Alphabet:        {stats['alphabet']}")
        print(f"  Payload bits:    {stats['bits']}")
        print(f"  Avg code length: {stats['avg_code_length']:.3f}")
        print(f"  Max code length: {stats['max_code_length']}")
    print("Container saved to:", args.output)

def decode_archive(args):
    """Распаковывает контейнер в текстовый файл."""
    print("[decode] Reading container:", args.input)

    reader = ArchiveReader(args.input)
    reader.open()
    if args.verbose:
        print("Header:", reader.header)

    tree_bytes, payload_bytes = reader.read_sections()
    text = Huffman().unpack(tree_bytes, payload_bytes)

    out_dir = os.path.dirname(os.path.abspath(args.output))
    os.makedirs(out_dir, exist_ok=True)
    with open(args.output, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    print(" → Saved to", args.output)

# =================================================================================================================

COMMANDS = {
    "encode": encode_archive,
    "decode": decode_archive,
    "info":   cli.info_mode,
    "verify": cli.verify_mode,
}

def main(argv=None) -> int:

    parser = cli.init()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        COMMANDS[args.cmd](args)
    except (HuffmanError, OSError, UnicodeError) as e:
        print(f"[ERROR] {e}")
        return 1
    return 0

# =================================================================================================================

if __name__ == "__main__":
    sys.exit(main())
