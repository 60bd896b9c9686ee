from __future__ import annotations

from sqlalchemy.orm import Session

from sports_sync.db.models.core.venue import Venue
from sports_sync.db.repos.base import BaseRepository


class VenueRepository(BaseRepository[Venue]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Venue)
