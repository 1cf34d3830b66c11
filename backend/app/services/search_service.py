"""
Medicine search across all branches.

Substring match on the stored name, tried with the query as typed and with
its Latin->Cyrillic transliteration, so "paratsetamol" finds "Парацетамол".
"""
import html
import logging
from dataclasses import dataclass
from itertools import groupby
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.medicine import Medicine
from app.models.setting import Setting
from app.services.transliteration import translit_to_russian

logger = logging.getLogger(__name__)


LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """LIKE pattern matching `text` literally anywhere in the value."""
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"


def default_branch_name(pharmacy_id: int) -> str:
    return f"Dorixona {pharmacy_id}"


@dataclass
class SearchHit:
    medicine: Medicine
    branch_name: str


def search_medicines(db: Session, query: str, limit: Optional[int] = None) -> List[SearchHit]:
    """
    Return matches ordered by branch then name, at most SEARCH_RESULT_LIMIT.

    An empty list (not an error) when nothing matches or the query is blank.
    """
    query = (query or "").strip()
    if not query:
        return []
    limit = limit or settings.SEARCH_RESULT_LIMIT
    translit = translit_to_russian(query)

    rows = (
        db.query(Medicine, Setting.value)
        .outerjoin(
            Setting,
            and_(Setting.pharmacy_id == Medicine.pharmacy_id, Setting.key == "name"),
        )
        .filter(
            or_(
                Medicine.name.ilike(contains_pattern(query), escape=LIKE_ESCAPE),
                Medicine.name.ilike(contains_pattern(translit), escape=LIKE_ESCAPE),
            )
        )
        .order_by(Medicine.pharmacy_id, Medicine.name)
        .limit(limit)
        .all()
    )
    logger.info(f"[SEARCH] '{query}' / '{translit}': {len(rows)} hits")

    return [
        SearchHit(medicine=med, branch_name=branch_name or default_branch_name(med.pharmacy_id))
        for med, branch_name in rows
    ]


def render_hit(hit: SearchHit) -> str:
    med = hit.medicine
    lines = [
        f"💊 <b>{html.escape(med.name)}</b>",
        f"🧮 Miqdor: <b>{med.count}</b> dona",
        f"💰 Narx: <b>{med.price}</b> so'm",
        f"📞 Telefon: <code>{html.escape(med.phone or '')}</code>",
        f"📍 Manzil: {html.escape(med.address or '')}",
    ]
    if med.category:
        lines.append(f"🏷 Kategoriya: {html.escape(med.category)}")
    if med.description:
        lines.append(f"ℹ️ {html.escape(med.description)}")
    return "\n".join(lines)


def render_results(hits: List[SearchHit]) -> str:
    """Group hits under one header per branch (hits arrive ordered by branch)."""
    blocks = []
    for (_, branch_name), branch_hits in groupby(
        hits, key=lambda h: (h.medicine.pharmacy_id, h.branch_name)
    ):
        items = "\n\n".join(render_hit(hit) for hit in branch_hits)
        blocks.append(f"🏪 <b>{html.escape(branch_name)}</b>\n\n{items}")
    return "\n\n".join(blocks)
