"""
Domain models for parliamentarians, feed items and cache envelopes
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter


class Chamber(str, Enum):
    CAMARA = "camara"
    SENADO = "senado"


class FeedItemType(str, Enum):
    VOTE = "vote"
    EXPENSE = "expense"
    EVENT = "event"


class CacheEntry(BaseModel):
    """Envelope stored by the durable cache; timestamp is epoch seconds"""
    data: Any = None
    timestamp: float


class Mandate(BaseModel):
    start: str
    end: str


class Cabinet(BaseModel):
    room: Optional[str] = None
    floor: Optional[str] = None
    building: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class PresenceStats(BaseModel):
    total: int = 0
    present: int = 0
    justified: int = 0
    unjustified: int = 0
    percentage: int = 0


class Stats(BaseModel):
    attendance_pct: int = 0
    total_sessions: int = 0
    present_sessions: int = 0
    absent_sessions: int = 0
    plenary: PresenceStats = Field(default_factory=PresenceStats)
    commissions: PresenceStats = Field(default_factory=PresenceStats)
    presence_simulated: bool = False
    projects: int = 0
    spending: float = 0.0
    party_fidelity: Optional[float] = Field(None, description="Share of votes following the party orientation (0-100)")


class YearStats(BaseModel):
    year: int
    attendance_pct: int = 0
    total_sessions: int = 0
    present_sessions: int = 0
    absent_sessions: int = 0
    projects: int = 0
    spending: float = 0.0
    plenary: PresenceStats = Field(default_factory=PresenceStats)
    commissions: PresenceStats = Field(default_factory=PresenceStats)


class ExpenseCategory(BaseModel):
    type: str
    value: float
    percent: float


class ExpenseHistoryItem(BaseModel):
    year: int
    value: float
    label: str


class LegislativeVote(BaseModel):
    id: str
    date: str
    description: str
    vote: str
    party_orientation: Optional[str] = None
    is_rebel: Optional[bool] = None


class Speech(BaseModel):
    date: str
    summary: str
    transcription: Optional[str] = None
    type: str = "Discurso"
    external_link: Optional[str] = None


class Front(BaseModel):
    id: int
    title: str
    external_link: Optional[str] = None


class Bill(BaseModel):
    id: int
    title: str
    type: str
    description: str = ""
    status: str = "Tramitação"
    external_link: Optional[str] = None


class Relatoria(BaseModel):
    id: str
    bill_title: str
    bill_type: str
    date: Optional[str] = None
    commission: Optional[str] = None
    external_link: Optional[str] = None


class Role(BaseModel):
    id: str
    name: str
    acronym: Optional[str] = None
    title: Optional[str] = None
    type: str = "Órgão"
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Occupation(BaseModel):
    title: str
    entity: Optional[str] = None
    state: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class Secretary(BaseModel):
    name: str
    role: Optional[str] = None
    group: str = "Secretário Parlamentar"
    start: Optional[str] = None


class Travel(BaseModel):
    date: Optional[str] = None
    destiny: Optional[str] = None
    reason: str
    value: float


class LegislativeEvent(BaseModel):
    id: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    title: str
    description: str
    location: str
    status: Optional[str] = None
    type: Optional[str] = None


class TimelineItem(BaseModel):
    id: str
    date: str
    type: str
    title: str
    description: Optional[str] = None
    value: Optional[str] = None
    status: Optional[str] = None
    link: Optional[str] = None


class Asset(BaseModel):
    type: str
    value: str
    description: str


class Party(BaseModel):
    id: int
    sigla: str
    nome: str
    uri: str = ""
    ideology: str = "Centro"


class Politician(BaseModel):
    """Parliamentarian: minimal profile plus the optional enrichment envelope"""

    # Minimal profile, always present
    id: int
    name: str
    role: str
    chamber: Chamber = Chamber.CAMARA
    party: str = ""
    state: str = ""
    photo: Optional[str] = None
    email: Optional[str] = None
    sex: Optional[str] = None
    mandate: Mandate = Field(default_factory=lambda: Mandate(start="01/02/2023", end="01/02/2027"))
    stats: Stats = Field(default_factory=Stats)
    external_link: Optional[str] = None
    has_api_integration: bool = True

    # Fast tier
    civil_name: Optional[str] = None
    birth_date: Optional[str] = None
    birth_city: Optional[str] = None
    birth_state: Optional[str] = None
    education: Optional[str] = None
    profession: Optional[str] = None
    bio: Optional[str] = None
    cabinet: Optional[Cabinet] = None
    socials: Optional[List[str]] = None
    roles: Optional[List[Role]] = None
    occupations: Optional[List[Occupation]] = None

    # Full tier
    yearly_stats: Optional[Dict[int, YearStats]] = None
    expenses_breakdown: Optional[List[ExpenseCategory]] = None
    expenses_history: Optional[List[ExpenseHistoryItem]] = None
    voting_history: Optional[List[LegislativeVote]] = None
    speeches: Optional[List[Speech]] = None
    fronts: Optional[List[Front]] = None
    bills: Optional[List[Bill]] = None
    reported_bills: Optional[List[Relatoria]] = None
    agenda: Optional[List[LegislativeEvent]] = None
    staff: Optional[List[Secretary]] = None
    travels: Optional[List[Travel]] = None
    timeline: Optional[List[TimelineItem]] = None
    assets: Optional[List[Asset]] = None


class FeedItem(BaseModel):
    """Normalized timeline record"""
    id: int
    type: FeedItemType
    title: str
    date: str = Field(..., description="dd/mm/YYYY")
    description: str = ""
    status: str = ""
    source_url: str
    category: str = "activity"
    related_entity_id: Optional[int] = None


class EducationalArticle(BaseModel):
    title: str
    text: str
    topic: str
    legislation: Optional[str] = None
    impact: Optional[str] = None


FAST_FIELDS = (
    "sex", "role", "civil_name", "birth_date", "birth_city", "birth_state",
    "education", "profession", "bio", "cabinet", "socials", "roles", "occupations",
)

FULL_FIELDS = (
    "stats", "yearly_stats", "expenses_breakdown", "expenses_history", "voting_history",
    "speeches", "fronts", "bills", "reported_bills", "agenda", "staff", "travels",
    "timeline", "assets",
)


def merge_politician(base: Politician, update: Dict[str, Any]) -> Politician:
    """Overlay enrichment fields on a politician; None values never erase existing data"""
    merged = base.model_dump()
    for key, value in update.items():
        if key == "id" or key not in Politician.model_fields or value is None:
            continue
        merged[key] = value
    return Politician.model_validate(merged)


_json_adapter = TypeAdapter(Any)


def to_document(value: Any) -> Any:
    """Models nested anywhere in value -> plain JSON-compatible data"""
    return _json_adapter.dump_python(value, mode="json")
