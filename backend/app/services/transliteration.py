"""
Latin to Cyrillic transliteration for search queries.

Users often type medicine names in Latin letters while the stock sheets use
Russian spelling. Longer sequences are substituted first ("shch" before "sh"
before "s"), in a single pass so produced Cyrillic is never rewritten.
"""

import re

TRANSLIT_MAP = {
    # Lowercase
    'a': 'а', 'b': 'б', 'v': 'в', 'g': 'г', 'd': 'д', 'e': 'е', 'yo': 'ё',
    'zh': 'ж', 'z': 'з', 'i': 'и', 'y': 'й', 'k': 'к', 'l': 'л', 'm': 'м',
    'n': 'н', 'o': 'о', 'p': 'п', 'r': 'р', 's': 'с', 't': 'т', 'u': 'у',
    'f': 'ф', 'h': 'х', 'ts': 'ц', 'ch': 'ч', 'sh': 'ш', 'shch': 'щ',
    'yu': 'ю', 'ya': 'я',
    'x': 'кс', 'w': 'в', 'q': 'к', 'c': 'к',
    # Uppercase
    'A': 'А', 'B': 'Б', 'V': 'В', 'G': 'Г', 'D': 'Д', 'E': 'Е', 'Yo': 'Ё',
    'Zh': 'Ж', 'Z': 'З', 'I': 'И', 'Y': 'Й', 'K': 'К', 'L': 'Л', 'M': 'М',
    'N': 'Н', 'O': 'О', 'P': 'П', 'R': 'Р', 'S': 'С', 'T': 'Т', 'U': 'У',
    'F': 'Ф', 'H': 'Х', 'Ts': 'Ц', 'Ch': 'Ч', 'Sh': 'Ш', 'Shch': 'Щ',
    'Yu': 'Ю', 'Ya': 'Я',
    'X': 'Кс', 'W': 'В', 'Q': 'К', 'C': 'К',
}

# Alternation is tried left to right, so longest keys go first
_TRANSLIT_RE = re.compile(
    "|".join(re.escape(key) for key in sorted(TRANSLIT_MAP, key=len, reverse=True))
)


def translit_to_russian(text: str) -> str:
    """
    Transliterate Latin letters to Russian Cyrillic.

    Example:
        >>> translit_to_russian("Shchuka")
        'Щука'
        >>> translit_to_russian("paratsetamol")
        'парацетамол'
    """
    if not text:
        return ""
    return _TRANSLIT_RE.sub(lambda m: TRANSLIT_MAP[m.group(0)], text)
