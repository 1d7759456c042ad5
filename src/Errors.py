"""Типизированные ошибки кодека Хаффмана.

Все ошибки локальные и восстановимые: они пробрасываются непосредственному
вызывающему коду и никогда не завершают процесс.
"""

class HuffmanError(Exception):
    """Базовая ошибка кодека."""

class EmptyInputError(HuffmanError, ValueError):
    """Попытка построить дерево по пустой таблице частот."""

class UnknownSymbolError(HuffmanError, LookupError):
    """Символ текста отсутствует в кодовой таблице."""

class MalformedStreamError(HuffmanError, ValueError):
    """Битовый поток не может быть декодирован по данному дереву."""

class DeserializationError(HuffmanError, ValueError):
    """Повреждённый или обрезанный байтовый буфер."""
