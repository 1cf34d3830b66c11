"""Tests for app/services/transliteration.py"""
import pytest

from app.services.transliteration import translit_to_russian


@pytest.mark.parametrize("latin,cyrillic", [
    ("paratsetamol", "парацетамол"),
    ("Paratsetamol", "Парацетамол"),
    ("analgin", "аналгин"),
    ("shch", "щ"),
    ("Shchuka", "Щука"),
    ("sh", "ш"),
    ("s", "с"),
    ("zhuk", "жук"),
    ("yabloko", "яблоко"),
    ("Yunona", "Юнона"),
    ("xarbin", "ксарбин"),
])
def test_transliteration(latin, cyrillic):
    assert translit_to_russian(latin) == cyrillic


def test_longest_sequence_wins():
    # "shch" must not be read as "sh" + "ch"
    assert translit_to_russian("borshch") == "борщ"
    assert translit_to_russian("tsitramon") == "цитрамон"


def test_cyrillic_and_digits_pass_through():
    assert translit_to_russian("Аскорил 200") == "Аскорил 200"
    assert translit_to_russian("ibuprofen 400mg") == "ибупрофен 400мг"


def test_empty():
    assert translit_to_russian("") == ""
    assert translit_to_russian(None) == ""
