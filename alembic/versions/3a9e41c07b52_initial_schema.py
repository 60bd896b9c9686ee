"""Initial schema

Revision ID: 3a9e41c07b52
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3a9e41c07b52"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SPORT = sa.Enum("GOLF", "NFL", name="sportenum")
EVENT_STATUS = sa.Enum("UPCOMING", "IN_PROGRESS", "COMPLETED", name="eventstatusenum")
PERFORMANCE_STATUS = sa.Enum("ACTIVE", "CUT", "WD", "DQ", name="performancestatusenum")
DFS_PLATFORM = sa.Enum("DRAFTKINGS", "FANDUEL", name="dfsplatformenum")
STEP_STATUS = sa.Enum("RUNNING", "SUCCEEDED", "FAILED", name="stepstatusenum")
PROVIDER = sa.Enum(
    "DATAGOLF", "ESPN", "OWGR", "PGATOUR", "NFLVERSE", "OPEN_METEO", name="providerenum"
)


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _provenance() -> list[sa.Column]:
    return [
        sa.Column("source_provider", sa.String(length=32), nullable=True),
        sa.Column("source_ingested_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _floats(*names: str) -> list[sa.Column]:
    return [sa.Column(name, sa.Float(), nullable=True) for name in names]


def _ints(*names: str) -> list[sa.Column]:
    return [sa.Column(name, sa.Integer(), nullable=True) for name in names]


def upgrade() -> None:
    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("name_norm", sa.String(length=160), nullable=False),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("latitude", sa.Numeric(), nullable=True),
        sa.Column("longitude", sa.Numeric(), nullable=True),
        sa.Column("timezone", sa.String(), nullable=True),
        sa.Column("par", sa.Integer(), nullable=True),
        sa.Column("yardage", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name_norm", "city", name="uq_venues_name_norm_city"),
    )
    op.create_index("ix_venues_lat_lon", "venues", ["latitude", "longitude"], unique=False)

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sport", SPORT, nullable=False),
        sa.Column("datagolf_id", sa.String(length=32), nullable=True),
        sa.Column("espn_id", sa.String(length=32), nullable=True),
        sa.Column("pgatour_id", sa.String(length=32), nullable=True),
        sa.Column("owgr_id", sa.String(length=32), nullable=True),
        sa.Column("gsis_id", sa.String(length=32), nullable=True),
        sa.Column("draftkings_id", sa.String(length=32), nullable=True),
        sa.Column("fanduel_id", sa.String(length=32), nullable=True),
        sa.Column("yahoo_id", sa.String(length=32), nullable=True),
        sa.Column("sleeper_id", sa.String(length=32), nullable=True),
        sa.Column("pfr_id", sa.String(length=32), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("first_name", sa.String(length=60), nullable=True),
        sa.Column("last_name", sa.String(length=60), nullable=True),
        sa.Column("name_norm", sa.String(length=120), nullable=False),
        sa.Column("country", sa.String(length=64), nullable=True),
        sa.Column("country_code", sa.String(length=8), nullable=True),
        sa.Column("primary_tour", sa.String(length=32), nullable=True),
        sa.Column("is_amateur", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("datagolf_rank", sa.Integer(), nullable=True),
        sa.Column("datagolf_skill", sa.Float(), nullable=True),
        sa.Column("owgr_rank", sa.Integer(), nullable=True),
        sa.Column("owgr_points", sa.Float(), nullable=True),
        *_floats(
            "sg_total",
            "sg_putting",
            "sg_approach",
            "sg_off_tee",
            "sg_around_green",
            "sg_tee_to_green",
            "scoring_avg",
            "driving_distance",
            "driving_accuracy",
            "gir",
            "scrambling",
            "putts_per_round",
            "sand_saves",
        ),
        sa.Column("events", sa.Integer(), server_default="0", nullable=False),
        sa.Column("cuts_made", sa.Integer(), server_default="0", nullable=False),
        sa.Column("wins", sa.Integer(), server_default="0", nullable=False),
        sa.Column("top5s", sa.Integer(), server_default="0", nullable=False),
        sa.Column("top10s", sa.Integer(), server_default="0", nullable=False),
        sa.Column("top25s", sa.Integer(), server_default="0", nullable=False),
        sa.Column("earnings", sa.Float(), nullable=True),
        sa.Column("position", sa.String(length=8), nullable=True),
        sa.Column("team_abbr", sa.String(length=8), nullable=True),
        sa.Column("jersey_number", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("birth_place", sa.String(length=120), nullable=True),
        sa.Column("college", sa.String(length=120), nullable=True),
        sa.Column("height", sa.String(length=16), nullable=True),
        sa.Column("weight", sa.Integer(), nullable=True),
        sa.Column("headshot_url", sa.String(), nullable=True),
        sa.Column("turned_pro", sa.Integer(), nullable=True),
        *_timestamps(),
        *_provenance(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("datagolf_id"),
        sa.UniqueConstraint("espn_id"),
        sa.UniqueConstraint("pgatour_id"),
        sa.UniqueConstraint("owgr_id"),
        sa.UniqueConstraint("gsis_id"),
        sa.UniqueConstraint("draftkings_id"),
        sa.UniqueConstraint("fanduel_id"),
        sa.UniqueConstraint("yahoo_id"),
        sa.UniqueConstraint("sleeper_id"),
        sa.UniqueConstraint("pfr_id"),
    )
    op.create_index("ix_players_name_norm", "players", ["name_norm"], unique=False)
    op.create_index("ix_players_sport", "players", ["sport"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sport", SPORT, nullable=False),
        sa.Column("datagolf_id", sa.String(length=32), nullable=True),
        sa.Column("espn_event_id", sa.String(length=32), nullable=True),
        sa.Column("nflverse_game_id", sa.String(length=32), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("name_norm", sa.String(length=160), nullable=False),
        sa.Column("short_name", sa.String(length=80), nullable=True),
        sa.Column("tour", sa.String(length=32), nullable=True),
        sa.Column("course_name", sa.String(length=160), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", EVENT_STATUS, nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=True),
        sa.Column("purse", sa.Float(), nullable=True),
        sa.Column("is_major", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_signature", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_playoff", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("field_size", sa.Integer(), nullable=True),
        sa.Column("venue_id", sa.Integer(), nullable=True),
        sa.Column("season", sa.Integer(), nullable=True),
        sa.Column("week", sa.Integer(), nullable=True),
        sa.Column("game_type", sa.String(length=8), nullable=True),
        sa.Column("home_team_abbr", sa.String(length=8), nullable=True),
        sa.Column("away_team_abbr", sa.String(length=8), nullable=True),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        *_timestamps(),
        *_provenance(),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("datagolf_id"),
        sa.UniqueConstraint("espn_event_id"),
        sa.UniqueConstraint("nflverse_game_id"),
    )
    op.create_index(
        "ix_events_sport_start_time", "events", ["sport", "start_time"], unique=False
    )
    op.create_index(
        "ix_events_status_start_time", "events", ["status", "start_time"], unique=False
    )
    op.create_index("ix_events_name_norm", "events", ["name_norm"], unique=False)
    op.create_index("ix_events_season_week", "events", ["season", "week"], unique=False)

    op.create_table(
        "event_id_maps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider", PROVIDER, nullable=False),
        sa.Column("provider_event_key", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("event_name", sa.String(length=160), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "provider", "provider_event_key", name="uq_event_id_maps_provider_key"
        ),
    )
    op.create_index("ix_event_id_maps_event", "event_id_maps", ["event_id"], unique=False)

    op.create_table(
        "performances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("status", PERFORMANCE_STATUS, nullable=False),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.Column("position_tied", sa.Boolean(), nullable=True),
        *_ints(
            "total_to_par",
            "today_to_par",
            "thru",
            "current_round",
            "round1",
            "round2",
            "round3",
            "round4",
        ),
        *_floats(
            "win_probability",
            "top5_probability",
            "top10_probability",
            "top20_probability",
            "make_cut_probability",
            "sg_total",
            "sg_putting",
            "sg_approach",
            "sg_off_tee",
            "sg_around_green",
            "sg_tee_to_green",
            "earnings",
            "fantasy_points",
        ),
        sa.Column("team_abbr", sa.String(length=8), nullable=True),
        *_ints("pass_attempts", "pass_completions"),
        *_floats("pass_yards"),
        *_ints("pass_tds", "interceptions", "rush_attempts"),
        *_floats("rush_yards"),
        *_ints("rush_tds", "fumbles_lost", "targets", "receptions"),
        *_floats("rec_yards"),
        *_ints("rec_tds"),
        *_floats("fantasy_points_std", "fantasy_points_ppr", "fantasy_points_half"),
        *_timestamps(),
        *_provenance(),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "player_id", name="uq_performances_event_player"),
    )
    op.create_index("ix_performances_player", "performances", ["player_id"], unique=False)

    op.create_table(
        "round_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("strokes", sa.Integer(), nullable=True),
        sa.Column("tee_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("holes", _json(), nullable=True),
        *_ints("eagles", "birdies", "pars", "bogeys", "double_bogeys", "worse_than_double"),
        *_timestamps(),
        *_provenance(),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id", "player_id", "round_number", name="uq_round_scores_event_player_round"
        ),
    )

    op.create_table(
        "fantasy_projections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("platform", DFS_PLATFORM, nullable=False),
        sa.Column("salary", sa.Integer(), nullable=True),
        sa.Column("projected_points", sa.Float(), nullable=True),
        sa.Column("projected_ownership", sa.Float(), nullable=True),
        *_timestamps(),
        *_provenance(),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id",
            "player_id",
            "platform",
            name="uq_fantasy_projections_event_player_platform",
        ),
    )

    op.create_table(
        "event_weather",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("forecast_date", sa.Date(), nullable=False),
        *_floats("temp_high", "temp_low", "wind_speed", "wind_gust"),
        sa.Column("wind_direction", sa.String(length=4), nullable=True),
        sa.Column("precipitation", sa.Float(), nullable=True),
        sa.Column("conditions", sa.String(length=40), nullable=True),
        sa.Column("difficulty_impact", sa.Float(), nullable=True),
        sa.Column("hourly", _json(), nullable=True),
        *_timestamps(),
        *_provenance(),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "round_number", name="uq_event_weather_event_round"),
    )

    op.create_table(
        "raw_payloads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("data_type", sa.String(length=64), nullable=False),
        sa.Column("event_ref", sa.String(length=64), nullable=True),
        sa.Column("payload", _json(), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=True),
        sa.Column(
            "ingested_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_raw_payloads_lookup",
        "raw_payloads",
        ["provider", "data_type", "event_ref", "ingested_at"],
        unique=False,
    )
    op.create_index("ix_raw_payloads_ingested_at", "raw_payloads", ["ingested_at"], unique=False)

    op.create_table(
        "sync_step_runs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.String(length=36), nullable=False),
        sa.Column("pipeline", sa.String(length=64), nullable=False),
        sa.Column("step", sa.String(length=64), nullable=False),
        sa.Column("status", STEP_STATUS, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created", sa.Integer(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.Column("skipped", sa.Integer(), nullable=False),
        sa.Column("errors", _json(), nullable=True),
        sa.Column("details", _json(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sync_step_runs_run", "sync_step_runs", ["run_id"], unique=False)
    op.create_index(
        "ix_sync_step_runs_step_started",
        "sync_step_runs",
        ["step", "started_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_sync_step_runs_step_started", table_name="sync_step_runs")
    op.drop_index("ix_sync_step_runs_run", table_name="sync_step_runs")
    op.drop_table("sync_step_runs")
    op.drop_index("ix_raw_payloads_ingested_at", table_name="raw_payloads")
    op.drop_index("ix_raw_payloads_lookup", table_name="raw_payloads")
    op.drop_table("raw_payloads")
    op.drop_table("event_weather")
    op.drop_table("fantasy_projections")
    op.drop_table("round_scores")
    op.drop_index("ix_performances_player", table_name="performances")
    op.drop_table("performances")
    op.drop_index("ix_event_id_maps_event", table_name="event_id_maps")
    op.drop_table("event_id_maps")
    op.drop_index("ix_events_season_week", table_name="events")
    op.drop_index("ix_events_name_norm", table_name="events")
    op.drop_index("ix_events_status_start_time", table_name="events")
    op.drop_index("ix_events_sport_start_time", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_players_sport", table_name="players")
    op.drop_index("ix_players_name_norm", table_name="players")
    op.drop_table("players")
    op.drop_index("ix_venues_lat_lon", table_name="venues")
    op.drop_table("venues")

    bind = op.get_bind()
    for enum in (PROVIDER, STEP_STATUS, DFS_PLATFORM, PERFORMANCE_STATUS, EVENT_STATUS, SPORT):
        enum.drop(bind, checkfirst=True)
