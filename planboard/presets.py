"""Preset workflows and the platform / content-type vocabulary.

Presets seed a user's workflow during onboarding. Content types are
constrained by the platforms a card targets.
"""

PRESET_WORKFLOWS = {
    "simple": {
        "name": "Simple",
        "description": "Basic workflow for quick content creation",
        "columns": ["Starting Point", "Edited", "Done"],
    },
    "basicCreator": {
        "name": "Basic Creator",
        "description": "Standard content creation workflow",
        "columns": ["Idea", "Script", "Record", "Edit", "Schedule"],
    },
    "advanced": {
        "name": "Advanced",
        "description": "Detailed workflow stages",
        "columns": [
            "Script",
            "Record Audio",
            "Record Video",
            "Edit",
            "Schedule",
            "Published",
        ],
    },
}

PLATFORMS = ("youtube", "linkedin", "twitter", "tiktok", "instagram", "other")

CONTENT_TYPES = {
    "youtube": ["Shorts", "Long-form", "Live Stream"],
    "linkedin": ["Post", "Article", "Carousel", "Newsletter"],
    "twitter": ["Thread", "Single Tweet", "Spaces"],
    "tiktok": ["Short Video", "Live"],
    "instagram": ["Reel", "Post", "Story", "Carousel"],
    "other": ["Generic"],
}


def preset_columns(key):
    """Return a copy of a preset's column names, or None for unknown keys."""
    preset = PRESET_WORKFLOWS.get(key) if isinstance(key, str) else None
    if preset is None:
        return None
    return list(preset["columns"])


def content_types_for_platforms(platforms):
    """Union of content types for the given platforms, first-seen order."""
    seen = []
    for platform in platforms or []:
        for content_type in CONTENT_TYPES.get(platform, []):
            if content_type not in seen:
                seen.append(content_type)
    return seen
