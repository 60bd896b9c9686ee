from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.event_id_map import EventIdMap
from sports_sync.db.models.core.event_weather import EventWeather
from sports_sync.db.models.core.fantasy_projection import FantasyProjection
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.round_score import RoundScore
from sports_sync.db.models.core.venue import Venue
from sports_sync.db.models.ingestion.raw_payload import RawPayload
from sports_sync.db.models.sync.sync_step_run import SyncStepRun

__all__ = [
    "Event",
    "EventIdMap",
    "EventWeather",
    "FantasyProjection",
    "Performance",
    "Player",
    "RawPayload",
    "RoundScore",
    "SyncStepRun",
    "Venue",
]
