"""Tests for coercion of external payloads into tracker documents."""

import math

import pytest

from soullink_sync.domain.models import TEAM_CAPACITY, TrackerDocument, VariableRival
from soullink_sync.domain.sanitizer import coerce


MALFORMED_PAYLOADS = [
    None,
    42,
    "not a document",
    [1, 2, 3],
    {},
    {"playerNames": "Ash"},
    {"playerNames": []},
    {"playerNames": [1, None, "Brock", "Gary"]},
    {"team": "full", "box": None, "graveyard": 7},
    {"team": [None, 3, {"id": "x"}, {"id": 2.5, "route": 9}]},
    {"levelCaps": [None, {"done": "yes"}, {"id": True, "level": 12.0}]},
    {"rivalCaps": [{"rival": {"name": "X"}}, "bad"]},
    {"stats": {"runs": "three", "best": math.nan, "deaths": {"player1": 2}}},
    {"stats": {"deaths": [1, 2, 3, 4], "sumDeaths": [None], "top4Items": "many"}},
    {"rules": [1, "Nuzlocke", None]},
    {"hardcoreModeEnabled": 0, "rivalCensorEnabled": "", "runStartedAt": "yesterday"},
    {"team": [{"id": 10 ** 400, "route": "Route 1"}, {"id": 10 ** 400}], "levelCaps": [{"level": 10 ** 400}]},
]


@pytest.mark.unit
class TestCoerceTotality:
    """Any input produces a valid document."""

    @pytest.mark.parametrize("raw", MALFORMED_PAYLOADS)
    def test_never_raises(self, raw, two_player_doc):
        result = coerce(raw, two_player_doc)
        assert isinstance(result, TrackerDocument)
        assert 1 <= result.player_count <= 3

    @pytest.mark.parametrize("raw", MALFORMED_PAYLOADS)
    def test_idempotent(self, raw, two_player_doc):
        once = coerce(raw, two_player_doc)
        assert coerce(once, two_player_doc) == once
        assert coerce(once.to_payload(), two_player_doc) == once

    @pytest.mark.parametrize("raw", MALFORMED_PAYLOADS)
    def test_player_arrays_aligned(self, raw, two_player_doc):
        result = coerce(raw, two_player_doc)
        count = result.player_count
        assert len(result.stats.deaths) == count
        assert len(result.stats.sum_deaths) == count
        assert len(result.stats.top4_items) == count
        for pair in result.team + result.box + result.graveyard:
            assert len(pair.members) == count

    def test_integer_ids_beyond_float_range(self, two_player_doc):
        huge = 10 ** 400
        result = coerce({"team": [{"id": huge, "route": "Route 1"}, {"id": huge}]}, two_player_doc)
        assert result.team[0].id == huge
        assert result.team[1].id == huge + 1

    def test_non_object_returns_fallback_copy(self, two_player_doc):
        result = coerce("garbage", two_player_doc)
        assert result == two_player_doc
        assert result is not two_player_doc

    def test_valid_document_round_trips_unchanged(self, two_player_doc):
        assert coerce(two_player_doc.to_payload(), two_player_doc) == two_player_doc


@pytest.mark.unit
class TestCoerceFields:
    """Field-level repair rules."""

    def test_missing_fields_taken_from_fallback(self, two_player_doc):
        result = coerce({"playerNames": ["Red", "Blue"]}, two_player_doc)
        assert result.players == ["Red", "Blue"]
        assert result.level_caps == two_player_doc.level_caps
        assert result.rules == two_player_doc.rules
        assert result.run_started_at == two_player_doc.run_started_at

    def test_player_names_truncated_to_three(self, two_player_doc):
        result = coerce({"playerNames": ["A", "B", "C", "D"]}, two_player_doc)
        assert result.players == ["A", "B", "C"]

    def test_non_string_player_name_uses_fallback_name(self, two_player_doc):
        result = coerce({"playerNames": [None, "Brock"]}, two_player_doc)
        assert result.players == ["Ash", "Brock"]

    def test_stats_padded_to_player_count(self, two_player_doc):
        raw = {"playerNames": ["A", "B", "C"], "stats": {"deaths": [4]}}
        result = coerce(raw, two_player_doc)
        assert result.stats.deaths == [4, 0, 0]

    def test_stats_truncated_to_player_count(self, two_player_doc):
        result = coerce({"stats": {"deaths": [1, 2, 3]}}, two_player_doc)
        assert result.stats.deaths == [1, 2]

    def test_non_numeric_stat_entry_uses_fallback(self, two_player_doc):
        fallback = two_player_doc.model_copy(deep=True)
        fallback.stats.deaths = [5, 6]
        result = coerce({"stats": {"deaths": ["x", True]}}, fallback)
        assert result.stats.deaths == [5, 6]

    def test_team_truncated_to_capacity(self, two_player_doc):
        team = [{"id": i, "route": f"Route {i}"} for i in range(1, 10)]
        result = coerce({"team": team}, two_player_doc)
        assert len(result.team) == TEAM_CAPACITY
        assert [pair.id for pair in result.team] == [1, 2, 3, 4, 5, 6]

    def test_duplicate_and_missing_pair_ids_reassigned(self, two_player_doc):
        box = [{"id": 4}, {"id": 4}, {"route": "Route 1"}, {"id": "7"}]
        result = coerce({"box": box}, two_player_doc)
        ids = [pair.id for pair in result.box]
        assert ids[0] == 4
        assert len(set(ids)) == len(ids)
        assert all(pair_id > 4 for pair_id in ids[1:])

    def test_non_object_pair_becomes_hole(self, two_player_doc):
        result = coerce({"box": ["junk"]}, two_player_doc)
        assert len(result.box) == 1
        assert result.box[0].is_empty

    def test_numeric_level_becomes_string(self, two_player_doc):
        result = coerce({"levelCaps": [{"id": 1, "arena": "Gym 1", "level": 14}]}, two_player_doc)
        assert result.level_caps[0].level == "14"

    def test_level_cap_identity_from_fallback_by_position(self, two_player_doc):
        result = coerce({"levelCaps": [{"done": True}]}, two_player_doc)
        cap = result.level_caps[0]
        assert cap.done is True
        assert cap.id == two_player_doc.level_caps[0].id
        assert cap.arena == two_player_doc.level_caps[0].arena

    def test_extra_level_caps_get_positional_ids(self, two_player_doc):
        raw_caps = [cap.model_dump(by_alias=True) for cap in two_player_doc.level_caps]
        raw_caps.append({"arena": "Bonus"})
        result = coerce({"levelCaps": raw_caps}, two_player_doc)
        assert result.level_caps[-1].id == len(raw_caps)
        assert result.level_caps[-1].arena == "Bonus"

    def test_variable_rival_kept(self, two_player_doc):
        rival = {"name": "Brendan / May", "key": "bm", "options": {"male": "brendan", "female": "may"}}
        result = coerce({"rivalCaps": [{"id": 1, "rival": rival}]}, two_player_doc)
        assert isinstance(result.rival_caps[0].rival, VariableRival)
        assert result.rival_caps[0].rival.options.female == "may"

    def test_invalid_rival_falls_back(self, two_player_doc):
        result = coerce({"rivalCaps": [{"rival": {"name": "X"}}]}, two_player_doc)
        assert result.rival_caps[0].rival == two_player_doc.rival_caps[0].rival

    def test_flags_coerced_to_bool_when_present(self, two_player_doc):
        result = coerce({"hardcoreModeEnabled": 0, "rivalCensorEnabled": "yes"}, two_player_doc)
        assert result.hardcore_mode_enabled is False
        assert result.rival_censor_enabled is True
        assert result.legendary_tracker_enabled is two_player_doc.legendary_tracker_enabled

    def test_non_string_rules_blanked(self, two_player_doc):
        result = coerce({"rules": [1, "Nuzlocke"]}, two_player_doc)
        assert result.rules == ["", "Nuzlocke"]


@pytest.mark.unit
class TestLegacyPayloads:
    """Two-player documents written by older clients."""

    def test_legacy_player_name_keys(self, two_player_doc):
        result = coerce({"player1Name": "Red", "player2Name": "Blue"}, two_player_doc)
        assert result.players == ["Red", "Blue"]

    def test_legacy_pair_members(self, two_player_doc):
        raw = {
            "team": [
                {
                    "id": 1,
                    "route": "Route 1",
                    "player1": {"name": "Pidgey", "nickname": "Birb"},
                    "player2": {"name": "Rattata", "nickname": "Rat"},
                }
            ]
        }
        result = coerce(raw, two_player_doc)
        members = result.team[0].members
        assert [member.name for member in members] == ["Pidgey", "Rattata"]
        assert members[0].nickname == "Birb"

    def test_legacy_stats_keyed_by_player(self, two_player_doc):
        raw = {"stats": {"deaths": {"player1": 3, "player2": 1}, "sumDeaths": {"player1": 5}}}
        result = coerce(raw, two_player_doc)
        assert result.stats.deaths == [3, 1]
        assert result.stats.sum_deaths == [5, 0]
