"""
Derived fields of the full enrichment tier
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from plenario.models.domain import (
    ExpenseCategory, ExpenseHistoryItem, LegislativeVote, PresenceStats,
    TimelineItem, Travel, YearStats,
)
from plenario.services.normalization import format_date
from plenario.services.simulated import (
    COMMISSION_EVENT_TYPES, PLENARY_EVENT_TYPES, SimulatedDataProvider,
)

logger = logging.getLogger(__name__)

OTHERS_LABEL = "Outros"
AIR_TRAVEL_TYPES = ("PASSAGEM AÉREA", "Emissão Bilhete Aéreo", "PASSAGENS AÉREAS")
AIRLINE_MARKERS = ("AÉREA", "TAM", "GOL", "AZUL", "LATAM")

# List fields checked by has_meaningful_data
MEANINGFUL_LISTS = ("expenses_breakdown", "voting_history", "speeches", "agenda", "bills")

# Per-field list limits for documents written to the remote cache
REMOTE_LIST_LIMITS = {
    "expenses_breakdown": 6,
    "expenses_history": 10,
    "voting_history": 50,
    "speeches": 10,
    "fronts": 30,
    "bills": 20,
    "reported_bills": 20,
    "agenda": 10,
    "staff": 30,
    "travels": 10,
    "timeline": 20,
    "roles": 30,
    "occupations": 20,
}


def expense_breakdown(expenses: Iterable[Dict[str, Any]], top_n: int = 5) -> Tuple[float, List[ExpenseCategory]]:
    """
    Group expenses by type.

    Categories are sorted by value, descending. Beyond the top_n categories
    the remainder is folded into a single "Outros" entry. Percentages are
    unrounded so they always sum to 100.
    """
    by_type: Dict[str, float] = defaultdict(float)
    for expense in expenses:
        value = float(expense.get("value") or 0)
        if value > 0:
            by_type[expense.get("type") or OTHERS_LABEL] += value

    total = sum(by_type.values())
    if total <= 0:
        return 0.0, []

    ranked = sorted(by_type.items(), key=lambda item: item[1], reverse=True)
    top, rest = ranked[:top_n], ranked[top_n:]
    if rest:
        top.append((OTHERS_LABEL, sum(value for _, value in rest)))

    return total, [
        ExpenseCategory(type=name, value=round(value, 2), percent=value / total * 100)
        for name, value in top
    ]


def expense_history(yearly_spending: Dict[int, float]) -> List[ExpenseHistoryItem]:
    return [
        ExpenseHistoryItem(year=year, value=round(value, 2), label=str(year))
        for year, value in sorted(yearly_spending.items())
    ]


def normalize_vote(raw: Optional[str]) -> str:
    """Map a vote or orientation to SIM, NAO or ABST"""
    lowered = (raw or "").lower()
    if "sim" in lowered:
        return "SIM"
    if "não" in lowered or "nao" in lowered:
        return "NAO"
    return "ABST"


def party_fidelity(
    votes: List[Dict[str, Any]],
    orientations: Dict[str, Dict[str, str]],
    party: str,
) -> Tuple[Optional[float], List[LegislativeVote]]:
    """
    Share of votes that followed the party orientation.

    Only votes where both the member's vote and the party orientation are SIM
    or NAO count; abstentions, obstructions and free votes ("Liberado") are
    left out. Returns (score or None when nothing counted, annotated votes).
    """
    party_key = (party or "").strip().upper()
    matches = counted = 0
    annotated = []

    for vote in votes:
        orientation = (orientations.get(str(vote.get("id"))) or {}).get(party_key)
        record = LegislativeVote(
            id=str(vote.get("id")),
            date=vote.get("date") or "",
            description=vote.get("description") or "",
            vote=vote.get("vote") or "",
            party_orientation=orientation,
        )

        member, line = normalize_vote(record.vote), normalize_vote(orientation)
        if orientation and member != "ABST" and line != "ABST":
            counted += 1
            record.is_rebel = member != line
            if not record.is_rebel:
                matches += 1
        annotated.append(record)

    score = round(matches / counted * 100, 1) if counted else None
    return score, annotated


def yearly_presence(
    events_by_year: Dict[int, List[Dict[str, Any]]],
    provider: SimulatedDataProvider,
) -> Tuple[Dict[int, Dict[str, PresenceStats]], PresenceStats, PresenceStats]:
    """Per-year plenary/commission presence plus mandate totals"""
    yearly: Dict[int, Dict[str, PresenceStats]] = {}
    for year, events in events_by_year.items():
        kinds = [e.get("descricaoTipo") or "" for e in events]
        plenary_total = sum(1 for k in kinds if any(t in k for t in PLENARY_EVENT_TYPES))
        commission_total = sum(1 for k in kinds if any(t in k for t in COMMISSION_EVENT_TYPES))
        yearly[year] = {
            "plenary": provider.plenary(plenary_total),
            "commissions": provider.commissions(commission_total),
        }

    return yearly, _sum_presence(y["plenary"] for y in yearly.values()), _sum_presence(
        y["commissions"] for y in yearly.values()
    )


def _sum_presence(items: Iterable[PresenceStats]) -> PresenceStats:
    total = present = unjustified = 0
    for item in items:
        total += item.total
        present += item.present
        unjustified += item.unjustified
    return PresenceStats(
        total=total,
        present=present,
        unjustified=unjustified,
        percentage=round(present / total * 100) if total else 0,
    )


def yearly_stats(
    start_year: int,
    current_year: int,
    presence: Dict[int, Dict[str, PresenceStats]],
    spending: Dict[int, float],
    projects: Dict[int, int],
) -> Dict[int, YearStats]:
    """One YearStats per year from start_year through current_year, zero-filled"""
    stats = {}
    for year in range(start_year, current_year + 1):
        plenary = presence.get(year, {}).get("plenary") or PresenceStats()
        commissions = presence.get(year, {}).get("commissions") or PresenceStats()
        stats[year] = YearStats(
            year=year,
            attendance_pct=plenary.percentage,
            total_sessions=plenary.total,
            present_sessions=plenary.present,
            absent_sessions=plenary.unjustified,
            projects=projects.get(year, 0),
            spending=round(spending.get(year, 0.0), 2),
            plenary=plenary,
            commissions=commissions,
        )
    return stats


def travels(expenses: Iterable[Dict[str, Any]], limit: int = 10) -> List[Travel]:
    result = []
    for expense in expenses:
        if expense.get("type") not in AIR_TRAVEL_TYPES:
            continue
        supplier = expense.get("supplier") or ""
        destiny = "Voo Comercial" if any(m in supplier.upper() for m in AIRLINE_MARKERS) else supplier or None
        result.append(Travel(
            date=expense.get("date"),
            destiny=destiny,
            reason=expense.get("type"),
            value=float(expense.get("value") or 0),
        ))
        if len(result) >= limit:
            break
    return result


def expense_timeline(expenses: Iterable[Dict[str, Any]], limit: int = 10) -> List[TimelineItem]:
    """Most recent expenses, newest first"""
    dated = sorted(
        (e for e in expenses if e.get("date")),
        key=lambda e: e["date"],
        reverse=True,
    )[:limit]
    return [
        TimelineItem(
            id=f"exp-{e.get('document_id')}",
            date=e["date"],
            type="despesa",
            title="Despesa de Gabinete",
            description=f"{e.get('type')}: {e.get('supplier') or ''}".rstrip(": "),
            value=f"R$ {float(e.get('value') or 0):.2f}",
            link=e.get("url"),
        )
        for e in dated
    ]


def vote_timeline(votes: Iterable[LegislativeVote], title: str) -> List[TimelineItem]:
    return [
        TimelineItem(
            id=v.id,
            date=format_date(v.date) or v.date,
            type="voto",
            title=title,
            description=v.description,
            status=v.vote,
        )
        for v in votes
    ]


def has_meaningful_data(document: Optional[Dict[str, Any]]) -> bool:
    """A profile document counts as a cache hit only if it carries real full-tier data"""
    if not document:
        return False
    if any(document.get(field) for field in MEANINGFUL_LISTS):
        return True
    stats = document.get("stats") or {}
    return (stats.get("spending") or 0) > 0 or (stats.get("total_sessions") or 0) > 0


def cap_for_remote(document: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a profile document with list fields truncated to REMOTE_LIST_LIMITS"""
    capped = dict(document)
    for field, limit in REMOTE_LIST_LIMITS.items():
        value = capped.get(field)
        if isinstance(value, list) and len(value) > limit:
            capped[field] = value[:limit]
    return capped
