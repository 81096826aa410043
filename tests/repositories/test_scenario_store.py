"""Tests for InMemoryScenarioRepository."""

import pytest

from whatif.engine.errors import ScenarioNotFoundError
from whatif.models.scenario import ScenarioStatus, WhatIfScenario
from whatif.repositories.scenarios import InMemoryScenarioRepository


@pytest.fixture
def repo() -> InMemoryScenarioRepository:
    return InMemoryScenarioRepository()


def _scenario(standup_state, name: str = "S") -> WhatIfScenario:
    return WhatIfScenario(name=name, baseline_state=standup_state)


class TestInMemoryScenarioRepository:
    def test_save_and_get(self, repo, standup_state) -> None:
        scenario = _scenario(standup_state)
        repo.save(scenario)
        assert repo.get(scenario.id) is scenario
        assert repo.get("missing") is None

    def test_require_raises_for_unknown(self, repo) -> None:
        with pytest.raises(ScenarioNotFoundError) as exc_info:
            repo.require("missing")
        assert exc_info.value.scenario_id == "missing"
        assert str(exc_info.value) == "Scenario 'missing' not found"

    def test_list_keeps_insertion_order(self, repo, standup_state) -> None:
        first, second = _scenario(standup_state, "A"), _scenario(standup_state, "B")
        repo.save(first)
        repo.save(second)
        assert [s.name for s in repo.list_all()] == ["A", "B"]

    def test_save_replaces_same_id(self, repo, standup_state) -> None:
        scenario = _scenario(standup_state)
        repo.save(scenario)
        repo.save(scenario.model_copy(update={"name": "Renamed"}))
        assert [s.name for s in repo.list_all()] == ["Renamed"]

    def test_list_by_status(self, repo, standup_state) -> None:
        draft = _scenario(standup_state, "draft")
        archived = _scenario(standup_state, "archived")
        archived.status = ScenarioStatus.ARCHIVED
        repo.save(draft)
        repo.save(archived)
        assert repo.list_by_status(ScenarioStatus.ARCHIVED) == [archived]

    def test_delete(self, repo, standup_state) -> None:
        scenario = _scenario(standup_state)
        repo.save(scenario)
        repo.delete(scenario.id)
        assert repo.list_all() == []
        with pytest.raises(ScenarioNotFoundError):
            repo.delete(scenario.id)


class TestActiveScenario:
    def test_no_active_by_default(self, repo) -> None:
        assert repo.get_active() is None

    def test_set_and_clear(self, repo, standup_state) -> None:
        scenario = _scenario(standup_state)
        repo.save(scenario)
        repo.set_active(scenario.id)
        assert repo.get_active() is scenario
        repo.set_active(None)
        assert repo.get_active() is None

    def test_unknown_id_rejected(self, repo) -> None:
        with pytest.raises(ScenarioNotFoundError):
            repo.set_active("missing")

    def test_deleting_active_clears_pointer(self, repo, standup_state) -> None:
        scenario = _scenario(standup_state)
        repo.save(scenario)
        repo.set_active(scenario.id)
        repo.delete(scenario.id)
        assert repo.get_active() is None
