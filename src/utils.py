from collections import Counter
from typing import Iterable

from Errors import MalformedStreamError

def count_frequencies(text: Iterable[str]) -> Counter:
    """Подсчитывает частоты символов входного текста.

    Ключи сохраняют порядок первого появления символа в тексте,
    на этом порядке основано детерминированное разрешение равных весов.

    Args:
        text (str): Входной текст (может быть пустым).

    Returns:
        Counter: {символ: количество вхождений}

    Пример:
        Вход: "aaab"
        Выход: Counter({'a': 3, 'b': 1})
    """
    return Counter(text)

def validate_bits(bits: str) -> None:
    """Проверяет, что строка состоит только из символов '0' и '1'.

    Raises:
        MalformedStreamError: если встречен любой другой символ.
    """
    stripped = bits.replace("0", "").replace("1", "")
    if stripped:
        pos = next(i for i, bit in enumerate(bits) if bit not in "01")
        raise MalformedStreamError(f"Недопустимый бит {bits[pos]!r} в позиции {pos}")

def bits_to_bytes(bits: str) -> bytes:
    """Преобразует битовую строку в массив байтов (big-endian внутри байта).

    Последний байт дополняется нулевыми младшими битами.

    Args:
        bits (str): Строка из '0' и '1'.

    Returns:
        bytes: Упакованные байты.
    """
    validate_bits(bits)
    out = bytearray((len(bits) + 7) // 8)   # буфер с целым числом байт в большую сторону
    for i, bit in enumerate(bits):
        if bit == "1":
            byte_id = i // 8                # счетчик байтов
            bit_id = 7 - (i % 8)            # счетчик битов
            out[byte_id] |= (1 << bit_id)

    return bytes(out)

def bytes_to_bits(data: bytes, total_bits: int) -> str:
    """Распаковывает первые total_bits бит из массива байтов.

    Args:
        data (bytes): Упакованные данные.
        total_bits (int): Количество значимых бит.

    Returns:
        str: Битовая строка длины total_bits.
    """
    bits = "".join(format(byte, "08b") for byte in data)
    return bits[:total_bits]

def padding_bits(total_bits: int) -> int:
    """Количество незначимых бит в последнем байте (0..7)."""
    return (-total_bits) % 8
