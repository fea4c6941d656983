"""Tests for the onboarding wizard and the create-card draft."""

import pytest

from planboard.board.drafts import CardDraft
from planboard.board.gateway import ServiceGateway
from planboard.errors import PersistenceError, ValidationError
from planboard.onboarding import OnboardingWizard
from planboard.services import workflow_service


class RecordingStore:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def create_workflow(self, columns=None, preset=None):
        self.calls.append(columns)
        if self.error is not None:
            raise self.error
        return {"id": "wf", "revision": 1, "columns": [{"id": n, "name": n} for n in columns]}


class TestOnboardingWizard:

    def test_steps(self):
        wizard = OnboardingWizard(RecordingStore())
        assert wizard.step == "welcome"
        wizard.start()
        assert wizard.step == "select"
        wizard.select_preset("simple")
        wizard.submit()
        assert wizard.step == "done"

    def test_preset_columns(self):
        store = RecordingStore()
        wizard = OnboardingWizard(store)
        wizard.select_preset("basicCreator")
        wizard.submit()
        assert store.calls == [["Idea", "Script", "Record", "Edit", "Schedule"]]

    def test_unknown_preset(self):
        with pytest.raises(ValidationError):
            OnboardingWizard(RecordingStore()).select_preset("nope")

    def test_nothing_selected(self):
        store = RecordingStore()
        with pytest.raises(ValidationError) as exc:
            OnboardingWizard(store).submit()
        assert exc.value.code == "no_selection"
        assert store.calls == []

    def test_custom_needs_two_names(self):
        store = RecordingStore()
        wizard = OnboardingWizard(store)
        wizard.select_custom()
        wizard.set_custom_column(1, "Plan")
        assert wizard.custom_columns == ["", "Plan", ""]
        with pytest.raises(ValidationError) as exc:
            wizard.submit()
        assert exc.value.code == "too_few_columns"
        assert store.calls == []
        assert wizard.step == "welcome"

    def test_custom_filters_blanks(self):
        store = RecordingStore()
        wizard = OnboardingWizard(store)
        wizard.select_custom()
        wizard.set_custom_column(0, " Plan ")
        wizard.set_custom_column(2, "Ship")
        wizard.submit()
        assert store.calls == [["Plan", "Ship"]]

    def test_custom_column_limits(self):
        wizard = OnboardingWizard(RecordingStore())
        for _ in range(10):
            wizard.add_custom_column()
        assert len(wizard.custom_columns) == 7
        for _ in range(10):
            wizard.remove_custom_column(0)
        assert len(wizard.custom_columns) == 2

    def test_on_complete_receives_workflow(self):
        completed = []
        wizard = OnboardingWizard(RecordingStore(), on_complete=completed.append)
        wizard.select_preset("simple")
        wizard.submit()
        assert completed[0]["columns"][0]["name"] == "Starting Point"

    def test_store_failure(self):
        completed = []
        wizard = OnboardingWizard(
            RecordingStore(error=PersistenceError("db down")),
            on_complete=completed.append,
        )
        wizard.select_preset("simple")
        with pytest.raises(PersistenceError):
            wizard.submit()
        assert completed == []
        assert wizard.pending is False
        assert wizard.step != "done"

    def test_with_service_gateway(self, seed_data):
        wizard = OnboardingWizard(ServiceGateway(seed_data["user_id"]))
        wizard.select_preset("advanced")
        wizard.submit()
        wf = workflow_service.get_workflow(seed_data["user_id"])
        assert wf.column_names[-1] == "Published"
        assert len(wf.columns) == 6


IDEAS = [
    {
        "id": "idea-1",
        "title": "My idea",
        "raw_text": "Notes",
        "target_platform": "twitter",
        "linked_series_id": "series-1",
    },
    {
        "id": "idea-2",
        "title": "Bare",
        "raw_text": None,
        "target_platform": None,
        "linked_series_id": None,
    },
]


class TestCardDraft:

    def test_idea_prefill(self):
        draft = CardDraft("col", IDEAS)
        draft.select_idea("idea-1")
        assert draft.title == "My idea"
        assert draft.description == "Notes"
        assert draft.platforms == ["twitter"]
        assert draft.series_id == "series-1"

    def test_prefill_is_a_copy(self):
        draft = CardDraft("col", IDEAS)
        draft.select_idea("idea-1")
        draft.title = "Edited"
        assert IDEAS[0]["title"] == "My idea"

    def test_idea_without_platform_keeps_selection(self):
        draft = CardDraft("col", IDEAS)
        draft.toggle_platform("youtube")
        draft.select_idea("idea-2")
        assert draft.platforms == ["youtube"]
        assert draft.title == "Bare"

    def test_toggle_platform_clears_content_type(self):
        draft = CardDraft("col")
        draft.toggle_platform("youtube")
        draft.content_type = "Shorts"
        draft.toggle_platform("instagram")
        assert draft.content_type is None
        assert "Reel" in draft.available_content_types
        draft.toggle_platform("youtube")
        assert draft.platforms == ["instagram"]

    def test_unknown_platform(self):
        with pytest.raises(ValidationError):
            CardDraft("col").toggle_platform("myspace")

    def test_payload(self):
        draft = CardDraft("col", IDEAS)
        draft.select_idea("idea-1")
        payload = draft.to_payload()
        assert payload["idea_id"] == "idea-1"
        assert payload["column_id"] == "col"
        assert payload["content_type"] is None

    def test_title_required(self):
        draft = CardDraft("col")
        draft.toggle_platform("other")
        with pytest.raises(ValidationError) as exc:
            draft.to_payload()
        assert exc.value.code == "title_required"

    def test_reset_keeps_column(self):
        draft = CardDraft("col", IDEAS)
        draft.select_idea("idea-1")
        draft.reset()
        assert draft.title == ""
        assert draft.platforms == []
        assert draft.column_id == "col"
