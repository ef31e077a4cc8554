"""
同步状态机与本地缓存测试
"""
import pytest

from deepwriting.client.cache import WorkspaceCache
from deepwriting.client.state import (
    Idle,
    LoadFailed,
    LoadSucceeded,
    Loading,
    Mutated,
    ProjectSelected,
    Ready,
    SaveFailed,
    SaveStarted,
    SaveSucceeded,
    Saving,
    can_save,
    transition,
)
from deepwriting.schemas.workspace import TitleItem


# ============ 状态机 ============

def test_select_and_load():
    state = transition(Idle(), ProjectSelected("p1"))
    assert state == Loading("p1")
    assert transition(state, LoadSucceeded("p1")) == Ready("p1", dirty=False)


def test_deselect_returns_to_idle():
    assert transition(Ready("p1", dirty=True), ProjectSelected(None)) == Idle()


def test_load_failure_becomes_ready_clean():
    assert transition(Loading("p1"), LoadFailed("p1")) == Ready("p1", dirty=False)


def test_stale_results_are_discarded():
    loading = Loading("p2")
    assert transition(loading, LoadSucceeded("p1")) == loading
    assert transition(loading, LoadFailed("p1")) == loading

    saving = Saving("p2", 3)
    assert transition(saving, SaveSucceeded("p1", 3)) == saving
    assert transition(saving, SaveFailed("p1")) == saving


def test_mutation_marks_dirty_only_when_ready():
    assert transition(Ready("p1"), Mutated()) == Ready("p1", dirty=True)
    assert transition(Loading("p1"), Mutated()) == Loading("p1")
    assert transition(Saving("p1", 1), Mutated()) == Saving("p1", 1)
    assert transition(Idle(), Mutated()) == Idle()


def test_save_only_starts_from_dirty_ready():
    assert transition(Ready("p1", dirty=True), SaveStarted("p1", 4)) == Saving("p1", 4)
    assert transition(Ready("p1", dirty=False), SaveStarted("p1", 4)) == Ready("p1", dirty=False)
    assert transition(Loading("p1"), SaveStarted("p1", 4)) == Loading("p1")
    assert not can_save(Loading("p1"))
    assert not can_save(Saving("p1", 1))
    assert can_save(Ready("p1", dirty=True))


def test_save_success_with_same_revision_is_clean():
    assert transition(Saving("p1", 4), SaveSucceeded("p1", 4)) == Ready("p1", dirty=False)


def test_save_success_after_new_edits_stays_dirty():
    assert transition(Saving("p1", 4), SaveSucceeded("p1", 6)) == Ready("p1", dirty=True)


def test_save_failure_stays_dirty():
    assert transition(Saving("p1", 4), SaveFailed("p1")) == Ready("p1", dirty=True)


def test_unknown_event_raises():
    with pytest.raises(TypeError):
        transition(Idle(), object())


# ============ 缓存 ============

@pytest.fixture
def cache():
    cache = WorkspaceCache()
    cache.select_project("p1")
    cache.apply_loaded("p1", {"title": "项目一"}, {"milestoneTab": "outline", "outline": "## 大纲"})
    return cache


def test_apply_loaded_sets_title_and_tab(cache):
    assert cache.project_title == "项目一"
    assert cache.active_tab == "outline"
    assert cache.state == Ready("p1", dirty=False)


def test_apply_loaded_discards_other_project(cache):
    cache.select_project("p2")

    assert cache.apply_loaded("p1", {"title": "旧"}, {"content": "旧正文"}) is False
    assert cache.snapshot.content == ""
    assert cache.state == Loading("p2")


def test_apply_loaded_discards_earlier_selection_of_same_project():
    cache = WorkspaceCache()
    cache.select_project("p1")
    first_generation = cache.load_generation
    cache.select_project("p2")
    cache.select_project("p1")

    assert cache.load_failed("p1", first_generation) is False
    assert cache.apply_loaded("p1", {}, {"outline": "旧大纲"}, first_generation) is False
    assert cache.state == Loading("p1")

    assert cache.apply_loaded("p1", {}, {"outline": "新大纲"}, cache.load_generation) is True
    cache.set_outline("本地修改")
    assert cache.apply_loaded("p1", {}, {"outline": "新大纲"}) is False
    assert cache.snapshot.outline == "本地修改"


def test_mutations_bump_revision_and_notify(cache):
    calls = []
    cache.subscribe(lambda: calls.append(cache.revision))
    start = cache.revision

    cache.set_outline("新大纲")
    cache.add_material("素材", "内容", importance=8)

    assert cache.revision == start + 2
    assert calls == [start + 1, start + 2]
    assert cache.is_dirty
    assert cache.snapshot.materials[0].importance == 5


def test_preset_and_custom_style_are_exclusive(cache):
    cache.set_custom_style_text("自定义")
    cache.set_selected_preset("luxun")
    assert cache.snapshot.style.custom_style_text == ""

    cache.set_custom_style_text("自定义")
    assert cache.snapshot.style.selected_preset is None


def test_target_word_count_clamped(cache):
    cache.set_target_word_count(100)
    assert cache.snapshot.requirements.target_word_count == 300
    cache.set_target_word_count(9000)
    assert cache.snapshot.requirements.target_word_count == 5000
    cache.set_target_word_count(None)
    assert cache.snapshot.requirements.target_word_count == 300


def test_style_levels_clamped(cache):
    cache.set_emotion_level(0)
    cache.set_professional_level(12)
    assert cache.snapshot.style.emotion_level == 1
    assert cache.snapshot.style.professional_level == 10


def test_material_importance_and_removal(cache):
    item = cache.add_material("素材", "内容")
    cache.set_material_importance(item.id, -3)
    assert cache.snapshot.materials[0].importance == 1

    cache.remove_material(item.id)
    assert cache.snapshot.materials == []


def test_set_titles_revalidates_selection(cache):
    cache.set_titles([TitleItem(id="1", title="甲"), TitleItem(id="2", title="乙")])
    cache.set_selected_title("2")

    cache.set_titles([TitleItem(id="2", title="乙二")])
    assert cache.snapshot.selected_title_id == "2"

    cache.set_titles([TitleItem(id="3", title="丙")])
    assert cache.snapshot.selected_title_id is None


def test_milestone_only_moves_forward(cache):
    revision = cache.revision
    cache.set_milestone_tab("materials")
    assert cache.snapshot.milestone_tab == "outline"
    assert cache.revision == revision

    cache.set_milestone_tab("content")
    assert cache.snapshot.milestone_tab == "content"
    assert cache.is_dirty


def test_active_tab_is_not_persisted_state(cache):
    cache.set_active_tab("materials")

    assert cache.active_tab == "materials"
    assert cache.snapshot.milestone_tab == "outline"
    assert not cache.is_dirty


def test_build_payload_uses_camel_case(cache):
    payload = cache.build_payload()

    assert payload["workspace"]["milestoneTab"] == "outline"
    assert "selectedTitleId" in payload["workspace"]
