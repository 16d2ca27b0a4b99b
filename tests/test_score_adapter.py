"""
ESPN scoreboard adapter: parsing, fetch failures and status progression
"""
import asyncio

import httpx

from api.crud.game_crud import advance_status, set_numbers
from models.game import GameStatus
from schemas.score import GameState, QuarterScore
from services.espn_service import (
    EspnScoreService, advance_game_status, cumulative_quarter_scores, parse_scoreboard,
    refresh_game_score
)

EVENT_ID = "401671999"


def scoreboard(state="in", period=2, home_score="14", away_score="10", event_id=EVENT_ID):
    return {
        "events": [
            {"id": "1", "competitions": [{}]},
            {
                "id": event_id,
                "competitions": [{
                    "status": {
                        "type": {"state": state},
                        "period": period,
                        "displayClock": "7:21",
                    },
                    "competitors": [
                        {
                            "homeAway": "home",
                            "score": home_score,
                            "team": {"abbreviation": "SEA", "logo": "https://a.espncdn.com/sea.png"},
                            "linescores": [{"value": 7}, {"value": 7}],
                        },
                        {
                            "homeAway": "away",
                            "score": away_score,
                            "team": {"abbreviation": "NE", "logo": "https://a.espncdn.com/ne.png"},
                            "linescores": [{"value": 3}, {"value": 7}],
                        },
                    ],
                    "situation": {
                        "lastPlay": {"text": "Pass complete for 12 yards"},
                        "shortDownDistanceText": "2nd & 5",
                        "possession": "SEA",
                    },
                }],
            },
        ]
    }


def mock_service(handler):
    return EspnScoreService(
        scoreboard_url="https://espn.test/scoreboard",
        timeout=1,
        transport=httpx.MockTransport(handler),
    )


class TestParseScoreboard:

    def test_parses_live_event(self):
        snapshot = parse_scoreboard(scoreboard(), EVENT_ID)

        assert snapshot.game_state == GameState.IN
        assert snapshot.period == 2
        assert snapshot.display_clock == "7:21"
        assert (snapshot.home_score, snapshot.away_score) == (14, 10)
        assert (snapshot.home_team, snapshot.away_team) == ("SEA", "NE")
        assert snapshot.last_play == "Pass complete for 12 yards"
        assert snapshot.down == "2nd & 5"
        assert snapshot.possession == "SEA"

    def test_quarter_scores_are_cumulative(self):
        snapshot = parse_scoreboard(scoreboard(), EVENT_ID)
        assert snapshot.quarter_scores == [QuarterScore(home=7, away=3), QuarterScore(home=14, away=10)]

    def test_cumulative_quarter_scores_ignores_unpaired_periods(self):
        scores = cumulative_quarter_scores([{"value": 3}, {"value": 0}, {"value": 6}], [{"value": "7"}, {"value": 0}])
        assert scores == [QuarterScore(home=3, away=7), QuarterScore(home=3, away=7)]

    def test_decimal_formatted_scores(self):
        snapshot = parse_scoreboard(scoreboard(home_score="14.0", away_score=10.0), EVENT_ID)
        assert (snapshot.home_score, snapshot.away_score) == (14, 10)

    def test_missing_event(self):
        assert parse_scoreboard(scoreboard(), "nope") is None

    def test_malformed_payloads(self):
        assert parse_scoreboard({}, EVENT_ID) is None
        assert parse_scoreboard([], EVENT_ID) is None
        assert parse_scoreboard({"events": [{"id": EVENT_ID, "competitions": []}]}, EVENT_ID) is None
        assert parse_scoreboard(scoreboard(state="halftime"), EVENT_ID) is None
        assert parse_scoreboard(scoreboard(home_score="abc"), EVENT_ID) is None


class TestFetchScore:

    def test_fetch_ok(self):
        service = mock_service(lambda request: httpx.Response(200, json=scoreboard()))
        snapshot = asyncio.run(service.fetch_score(EVENT_ID))
        assert snapshot.home_score == 14

    def test_http_error_means_no_score(self):
        service = mock_service(lambda request: httpx.Response(503, text="down"))
        assert asyncio.run(service.fetch_score(EVENT_ID)) is None

    def test_timeout_means_no_score(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert asyncio.run(mock_service(handler).fetch_score(EVENT_ID)) is None

    def test_invalid_json_means_no_score(self):
        service = mock_service(lambda request: httpx.Response(200, text="<html>"))
        assert asyncio.run(service.fetch_score(EVENT_ID)) is None

    def test_no_event_id(self):
        service = mock_service(lambda request: httpx.Response(200, json=scoreboard()))
        assert asyncio.run(service.fetch_score(None)) is None


class TestStatusProgression:

    def test_in_progress_moves_to_live(self, db, game):
        snapshot = parse_scoreboard(scoreboard(state="in"), EVENT_ID)
        assert advance_game_status(db, game, snapshot) is True
        assert game.status == GameStatus.LIVE

    def test_post_moves_to_final(self, db, game):
        snapshot = parse_scoreboard(scoreboard(state="post"), EVENT_ID)
        advance_game_status(db, game, snapshot)
        assert game.status == GameStatus.FINAL

    def test_never_moves_backward(self, db, game):
        advance_status(db, game.id, GameStatus.FINAL, [GameStatus.SELLING])
        db.refresh(game)

        snapshot = parse_scoreboard(scoreboard(state="in"), EVENT_ID)
        assert advance_game_status(db, game, snapshot) is False
        db.refresh(game)
        assert game.status == GameStatus.FINAL

    def test_pre_game_leaves_status(self, db, game):
        snapshot = parse_scoreboard(scoreboard(state="pre"), EVENT_ID)
        assert advance_game_status(db, game, snapshot) is False
        assert game.status == GameStatus.SELLING

    def test_refresh_reports_leading_cell(self, db, game):
        set_numbers(db, game.id, [7, 3, 0, 9, 5, 1, 8, 4, 6, 2], [4, 8, 1, 6, 0, 9, 3, 7, 2, 5])
        db.refresh(game)
        service = mock_service(lambda request: httpx.Response(200, json=scoreboard(home_score="17", away_score="7")))

        response = asyncio.run(refresh_game_score(db, game, service))

        assert response.error is None
        assert response.game_status == "live"
        assert (response.leading_cell.row_index, response.leading_cell.col_index) == (0, 7)
        assert response.leading_cell.user_id is None

    def test_refresh_without_score(self, db, game):
        service = mock_service(lambda request: httpx.Response(500))

        response = asyncio.run(refresh_game_score(db, game, service))

        assert response.score is None
        assert response.error == "Score unavailable"
        assert response.game_status == "selling"
