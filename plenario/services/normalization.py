"""
Text and domain normalization shared by the upstream clients
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from plenario.models.domain import Party

ABBREVIATIONS = {
    'pec': 'Proposta de Emenda à Constituição (PEC)',
    'pl': 'Projeto de Lei (PL)',
    'mpv': 'Medida Provisória (MP)',
    'cpi': 'Comissão de Inquérito (CPI)',
    'plp': 'Projeto de Lei Complementar',
    'req': 'Requerimento',
    'pib': 'PIB',
    'inss': 'INSS',
    'sus': 'SUS',
    'cpf': 'CPF',
    'cnpj': 'CNPJ',
}

_ABBREVIATION_RE = re.compile(r'\b(' + '|'.join(ABBREVIATIONS) + r')\b', re.IGNORECASE)

PARTY_METADATA: Dict[str, Dict[str, str]] = {
    'PT': {'nome': 'Partido dos Trabalhadores', 'ideology': 'Esquerda'},
    'PL': {'nome': 'Partido Liberal', 'ideology': 'Direita'},
    'PP': {'nome': 'Progressistas', 'ideology': 'Centro'},
    'MDB': {'nome': 'Movimento Democrático Brasileiro', 'ideology': 'Centro'},
    'PSD': {'nome': 'Partido Social Democrático', 'ideology': 'Centro'},
    'REPUBLICANOS': {'nome': 'Republicanos', 'ideology': 'Direita'},
    'UNIÃO': {'nome': 'União Brasil', 'ideology': 'Direita'},
    'PSB': {'nome': 'Partido Socialista Brasileiro', 'ideology': 'Esquerda'},
    'PDT': {'nome': 'Partido Democrático Trabalhista', 'ideology': 'Esquerda'},
    'PSOL': {'nome': 'Partido Socialismo e Liberdade', 'ideology': 'Esquerda'},
    'PODE': {'nome': 'Podemos', 'ideology': 'Centro'},
    'AVANTE': {'nome': 'Avante', 'ideology': 'Centro'},
    'PCdoB': {'nome': 'Partido Comunista do Brasil', 'ideology': 'Esquerda'},
    'CIDADANIA': {'nome': 'Cidadania', 'ideology': 'Centro'},
    'SOLIDARIEDADE': {'nome': 'Solidariedade', 'ideology': 'Centro'},
    'NOVO': {'nome': 'Partido Novo', 'ideology': 'Direita'},
    'REDE': {'nome': 'Rede Sustentabilidade', 'ideology': 'Esquerda'},
    'PV': {'nome': 'Partido Verde', 'ideology': 'Esquerda'},
    'PSDB': {'nome': 'Partido da Social Democracia Brasileira', 'ideology': 'Centro'},
    'AGIR': {'nome': 'Agir', 'ideology': 'Centro'},
    'PMB': {'nome': 'Partido da Mulher Brasileira', 'ideology': 'Centro'},
    'PRD': {'nome': 'Partido da Renovação Democrática', 'ideology': 'Direita'},
}

# Checked in order; first match wins
CATEGORY_KEYWORDS = (
    ('education', ('educação', 'escola', 'ensino', 'fundeb')),
    ('health', ('saúde', 'sus', 'médico', 'hospital', 'vacina')),
    ('economy', ('economia', 'tribut', 'imposto', 'dinheiro', 'orçamento', 'fiscal')),
    ('security', ('segurança', 'polícia', 'crime', 'pena', 'armas')),
    ('work', ('trabalho', 'emprego', 'salário', 'clt')),
    ('environment', ('ambiente', 'floresta', 'animais', 'clima', 'água')),
    ('justice', ('justiça', 'lei', 'direito', 'código', 'constituição')),
)


def format_text(text: Optional[str]) -> str:
    """Sentence-case upstream text and expand common legislative abbreviations"""
    if not text:
        return ''
    formatted = text[0].upper() + text[1:].lower()
    return _ABBREVIATION_RE.sub(lambda m: ABBREVIATIONS[m.group(1).lower()], formatted)


def gendered_role(role: str, sex: Optional[str]) -> str:
    """Return the role title matching the holder's sex ('F' or 'M')"""
    if not sex:
        return role

    female = sex.strip().upper() == 'F'
    lowered = role.lower()

    if 'deputad' in lowered:
        return 'Deputada Federal' if female else 'Deputado Federal'
    if 'senad' in lowered:
        return 'Senadora' if female else 'Senador'
    if 'governad' in lowered:
        return 'Governadora' if female else 'Governador'
    if 'president' in lowered:
        return 'Presidenta' if female else 'Presidente'
    return role


def detect_category(text: Optional[str]) -> str:
    lowered = (text or '').lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return 'activity'


def get_ideology(sigla: Optional[str]) -> str:
    key = (sigla or '').strip().upper()
    for name, meta in PARTY_METADATA.items():
        if name.upper() == key:
            return meta['ideology']
    return 'Centro'


def static_parties() -> List[Party]:
    return [
        Party(id=1000 + index, sigla=sigla, nome=meta['nome'], ideology=meta['ideology'])
        for index, (sigla, meta) in enumerate(PARTY_METADATA.items())
    ]


def force_list(value: Any) -> List[Any]:
    """The senate API returns a bare object when a collection has one element"""
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def format_date(value: Optional[str]) -> Optional[str]:
    """ISO date or datetime -> dd/mm/YYYY; unparseable values pass through"""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value[:19]).strftime('%d/%m/%Y')
    except ValueError:
        return value


def format_time(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value[:19]).strftime('%H:%M')
    except ValueError:
        return None


def parse_feed_date(value: Optional[str]) -> datetime:
    """dd/mm/YYYY -> datetime; missing or malformed dates sort last"""
    try:
        return datetime.strptime(value or '', '%d/%m/%Y')
    except ValueError:
        return datetime.min


def format_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return name
    return ' '.join(part.capitalize() for part in name.split())
