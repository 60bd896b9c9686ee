from __future__ import annotations

from datetime import date

import httpx

from sports_sync.ingestion.providers.base.client import BaseHttpClient
from sports_sync.ingestion.providers.espn.adapter import EspnAdapter
from sports_sync.ingestion.providers.espn.client import EspnClient

SCOREBOARD = {
    "id": "401703504",
    "competitions": [
        {
            "competitors": [
                {
                    "id": "9478",
                    "order": 1,
                    "score": "-11",
                    "athlete": {"fullName": "Scottie Scheffler"},
                    "linescores": [
                        {
                            "period": 1,
                            "value": 66,
                            "linescores": [
                                {"period": 1, "value": 3, "scoreType": {"displayValue": "-1"}},
                                {"period": 2, "value": 5, "scoreType": {"displayValue": "E"}},
                                {"period": 3, "value": 4},
                            ],
                        }
                    ],
                },
                {"order": 2, "score": "-9", "athlete": {}},
            ]
        }
    ],
}


def _adapter(handler) -> EspnAdapter:
    transport = httpx.MockTransport(handler)
    return EspnAdapter(
        EspnClient(
            http=BaseHttpClient(
                base_url="https://site.api.espn.com/apis/site/v2/sports/golf/pga",
                transport=transport,
            ),
            athlete_http=BaseHttpClient(
                base_url="https://site.web.api.espn.com/apis/common/v3/sports/golf/pga",
                transport=transport,
            ),
        )
    )


def test_scorecard_parses_rounds_and_holes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/scoreboard/401703504")
        return httpx.Response(200, json=SCOREBOARD)

    result = _adapter(handler).fetch_scorecard("401703504")

    assert result.ok
    assert result.skipped == 1
    (competitor,) = result.items
    assert competitor.provider_player_id == "9478"
    assert competitor.name == "Scottie Scheffler"
    assert competitor.position == 1
    assert competitor.total_to_par == -11

    (first_round,) = competitor.rounds
    assert (first_round.round_number, first_round.strokes) == (1, 66)
    birdie, par, no_type = first_round.holes
    assert (birdie.hole, birdie.strokes, birdie.par, birdie.to_par) == (1, 3, 4, -1)
    assert (par.par, par.to_par) == (5, 0)
    assert (no_type.par, no_type.to_par) == (None, None)


def test_scorecard_without_competitions_is_empty_not_an_error() -> None:
    result = _adapter(lambda request: httpx.Response(200, json={"id": "1"})).fetch_scorecard("1")

    assert result.ok
    assert result.items == []


def test_athlete_bio_fields() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "site.web.api.espn.com"
        assert request.url.path.endswith("/athletes/9478")
        athlete = {
            "dateOfBirth": "1996-06-21T07:00Z",
            "displayBirthPlace": "Ridgewood, NJ",
            "displayHeight": "6' 3\"",
            "displayWeight": "200 lbs",
            "college": {"name": "Texas"},
            "headshot": {"href": "https://a.espncdn.com/i/headshots/golf/players/full/9478.png"},
            "turnedPro": 2018,
        }
        return httpx.Response(200, json={"athlete": athlete})

    result = _adapter(handler).fetch_athlete_bio("9478")

    assert result.ok
    (bio,) = result.items
    assert bio.birth_date == date(1996, 6, 21)
    assert bio.birth_place == "Ridgewood, NJ"
    assert bio.college == "Texas"
    assert bio.weight == 200
    assert bio.turned_pro == 2018
    assert bio.headshot_url is not None


def test_calendar_requires_events_list() -> None:
    result = _adapter(lambda request: httpx.Response(200, json={"leagues": []})).fetch_calendar(
        2025
    )

    assert result.items == []
    assert result.error is not None
    assert "ExtractionError" in result.error
