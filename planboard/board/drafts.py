"""Form state of the create-card dialog.

Picking an idea copies its title, text, platform and series into the draft
once; editing the draft afterwards never touches the idea. Toggling a
platform clears the content type, since the allowed types depend on the
platforms.
"""

from planboard.errors import ValidationError
from planboard.presets import PLATFORMS, content_types_for_platforms


class CardDraft:
    def __init__(self, column_id, ideas=None):
        self.column_id = column_id
        self.ideas = list(ideas or [])
        self.title = ""
        self.description = ""
        self.idea_id = None
        self.platforms = []
        self.content_type = None
        self.series_id = None

    def select_idea(self, idea_id):
        """Prefill from one of the loaded ideas; None clears the selection."""
        if idea_id is None:
            self.idea_id = None
            return
        idea = next((i for i in self.ideas if i["id"] == idea_id), None)
        if idea is None:
            return
        self.idea_id = idea_id
        self.title = idea.get("title") or ""
        self.description = idea.get("raw_text") or ""
        if idea.get("linked_series_id"):
            self.series_id = idea["linked_series_id"]
        if idea.get("target_platform"):
            self.platforms = [idea["target_platform"]]

    def toggle_platform(self, platform):
        if platform not in PLATFORMS:
            raise ValidationError(f"Invalid platform '{platform}'.")
        if platform in self.platforms:
            self.platforms = [p for p in self.platforms if p != platform]
        else:
            self.platforms = self.platforms + [platform]
        self.content_type = None

    @property
    def available_content_types(self):
        return content_types_for_platforms(self.platforms)

    def validate(self):
        if not self.title.strip():
            raise ValidationError("Please enter a title.", code="title_required")
        if not self.platforms:
            raise ValidationError(
                "Please select at least one platform.", code="platforms_required"
            )
        if self.content_type and self.content_type not in self.available_content_types:
            raise ValidationError(f"Invalid content type '{self.content_type}'.")

    def to_payload(self):
        self.validate()
        return {
            "title": self.title.strip(),
            "description": self.description.strip() or None,
            "idea_id": self.idea_id,
            "platforms": list(self.platforms),
            "content_type": self.content_type or None,
            "series_id": self.series_id,
            "column_id": self.column_id,
        }

    def reset(self):
        self.__init__(self.column_id, self.ideas)
