"""
Keyword-based medicine categorisation.

Deterministic: categories are checked in the order below and the first one
with a keyword contained in the lower-cased name wins. "клотримазол" is listed
under both Dermatalogiya and Ginekologiya, so it always lands in the former.
"""
from typing import Sequence, Tuple

DEFAULT_CATEGORY = "Boshqa"
DEFAULT_DESCRIPTION = "Shifo-dori vositasi"

CATEGORY_KEYWORDS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("Antibiotik", ("азитромицин", "амоксициллин", "цефтриаксон", "ципрофлоксацин", "левофлоксацин", "доксициклин", "эритромицин")),
    ("Og'riq qoldiruvchi", ("анальгин", "парацетамол", "ибупрофен", "кетопрофен", "диклофенак", "нимесулид", "кеторол")),
    ("Kardio", ("амлодипин", "эналаприл", "лозартан", "валсартан", "бисопролол", "метопролол", "амлесса", "аторвастатин")),
    ("Diabet", ("метформин", "глибенкламид", "гликлазид", "инсулин", "глимепирид")),
    ("Shamolash", ("аскорил", "амброксол", "бромгексин", "мукалтин", "гербион", "синекод", "лазолван")),
    ("Qorin", ("омепразол", "ранитидин", "мезим", "панкреатин", "эспумизан", "смекта", "линекс", "фестал")),
    ("Allergiya", ("супрастин", "лоратадин", "цетиризин", "тавегил", "зодак", "кларитин")),
    ("Vitamin", ("аевит", "компливит", "мультитабс", "витрум", "центрум", "кальций", "магний")),
    ("Nerv tizimi", ("фенозепам", "адаптол", "глицин", "афобазол", "ново-пассит", "персен")),
    ("Antivirus", ("арбидол", "кагоцел", "циклоферон", "ингавирин", "анаферон")),
    ("Dermatalogiya", ("акридерм", "тридерм", "клотримазол", "синтомицин", "левомеколь")),
    ("Oftalmologiya", ("альбуцид", "тобрекс", "визин", "систейн", "тауфон")),
    ("Ginekologiya", ("утрожестан", "дюфастон", "тержинан", "клотримазол", "пимафуцин")),
)

CATEGORY_DESCRIPTIONS = {
    "Antibiotik": "Bakterial infeksiyalarni davolash uchun",
    "Og'riq qoldiruvchi": "Og'riq va yallig'lanishni kamaytiradi",
    "Kardio": "Yurak-qon tomir kasalliklarini davolash",
    "Diabet": "Qandli diabet davolash uchun",
    "Shamolash": "Yo'tal va bronxitni davolash",
    "Qorin": "Oshqozon-ichak tizimi kasalliklari uchun",
    "Allergiya": "Allergik reaktsiyalarni kamaytiradi",
    "Vitamin": "Organizm uchun zarur vitaminlar",
    "Nerv tizimi": "Asab tizimi va stressni davolash",
    "Antivirus": "Virus infeksiyalarini davolash",
    "Dermatalogiya": "Teri kasalliklarini davolash",
    "Oftalmologiya": "Ko'z kasalliklarini davolash",
    "Ginekologiya": "Ayollar salomatligi uchun",
}


def classify(name: str) -> str:
    """Return the first category whose keyword occurs in `name`, else "Boshqa"."""
    lowered = (name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def describe(category: str) -> str:
    return CATEGORY_DESCRIPTIONS.get(category, DEFAULT_DESCRIPTION)
