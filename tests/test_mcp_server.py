"""
Tests for the MCP tool functions.

The tools are plain functions once registered, so they are called directly
against a planner over the test data directory.
"""

import pytest

from assault_planner import mcp_server
from assault_planner.planner import AssaultPlanner

BOSSES = ["Notorious Ice Weak", "Notorious Electric Weak", "Fire Weak"]


@pytest.fixture(autouse=True)
def planner(monkeypatch, data_dir):
    planner = AssaultPlanner.from_data_dir(data_dir)
    monkeypatch.setattr(mcp_server, "_planner", planner)
    return planner


class TestPlanTool:
    def test_plan(self):
        result = mcp_server.plan_deadly_assault(BOSSES, limit=2)

        assert isinstance(result, dict)
        assert result["bosses"] == BOSSES
        assert 0 < len(result["combinations"]) <= 2
        assert result["units_considered"] == 9
        assert result["lenient_bosses"] == []

        combo = result["combinations"][0]
        assert [a["boss"] for a in combo["assignments"]] == BOSSES
        assert all(len(a["team"]) == 3 for a in combo["assignments"])
        assert "elite_check" in combo

    def test_owned_units(self):
        result = mcp_server.plan_deadly_assault(BOSSES, owned_units=["Ellen", "Lycaon"])
        assert result["units_considered"] == 2
        assert result["combinations"] == []

    def test_configuration_errors_are_messages(self):
        assert "Exactly 3 bosses" in mcp_server.plan_deadly_assault(BOSSES[:2])
        message = mcp_server.plan_deadly_assault(["Fire Weak", "Ice Weak", "Nobody"])
        assert "Boss 'Nobody' not found" in message
        assert "Available bosses: Notorious Ice Weak" in message


class TestOtherTools:
    def test_rank_teams_for_boss(self):
        teams = mcp_server.rank_teams_for_boss("Ice Weak", limit=3)
        assert 0 < len(teams) <= 3
        assert teams[0]["rank"] == 1
        assert teams[0]["label"] == " / ".join(teams[0]["team"])

    def test_explain_team_score(self):
        result = mcp_server.explain_team_score(["Lycaon", "Ellen", "Soukaku"], "Ice Weak")
        assert result["status"] == "scored"
        assert result["value"] == 277

    def test_explain_errors(self):
        assert "not found" in mcp_server.explain_team_score(["Ellen", "Nobody"], "Ice Weak")
        assert "Boss 'Nobody'" in mcp_server.explain_team_score(["Ellen", "Lycaon"], "Nobody")

    def test_list_bosses(self):
        bosses = mcp_server.list_bosses()
        assert [b["name"] for b in bosses][-1] == "Stun Shill"
        assert bosses[-1]["shill"] == "stun"

    def test_list_units_filters(self):
        assert len(mcp_server.list_units()) == 9
        ice_support = mcp_server.list_units(role="support", element="ice")
        assert [u["name"] for u in ice_support] == ["Soukaku"]


def test_planner_created_lazily(monkeypatch, data_dir):
    monkeypatch.setattr(mcp_server, "_planner", None)
    monkeypatch.setenv("ASSAULT_DATA_DIR", str(data_dir))

    planner = mcp_server.get_planner()
    assert planner is mcp_server.get_planner()
    assert len(planner.catalog.units) == 9
