"""
Placeholder statistics for data the open-data APIs do not publish yet
"""

import logging
import math

from plenario.models.domain import PresenceStats

logger = logging.getLogger(__name__)

PLENARY_EVENT_TYPES = ("Sessão Deliberativa",)
COMMISSION_EVENT_TYPES = ("Reunião Deliberativa", "Reunião de Comissão", "Audiência Pública")


class SimulatedDataProvider:
    """Estimates attendance from event counts.

    The chamber API lists the events a deputy was convoked to, not the
    attendance register, so presence is a fixed ratio of the event count.
    Disabled, it reports totals only and zero presence.
    """

    plenary_ratio = 0.95
    commission_ratio = 0.90

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        if enabled:
            logger.info("Simulated presence statistics enabled")

    def presence(self, total: int, ratio: float) -> PresenceStats:
        if not self.enabled or total <= 0:
            return PresenceStats(total=max(total, 0))

        present = math.floor(total * ratio)
        return PresenceStats(
            total=total,
            present=present,
            justified=0,
            unjustified=total - present,
            percentage=round(present / total * 100),
        )

    def plenary(self, total: int) -> PresenceStats:
        return self.presence(total, self.plenary_ratio)

    def commissions(self, total: int) -> PresenceStats:
        return self.presence(total, self.commission_ratio)
