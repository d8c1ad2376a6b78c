"""Languages and recognition models offered by the recognition service."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Language:
    """BCP-47 code plus a display name."""

    code: str
    name: str

    def __str__(self) -> str:
        return self.name


_MODELS_BY_CODE: dict[str, list[str]] = {
    "en-US": [
        "default",
        "latest_long",
        "latest_short",
        "command_and_search",
        "phone_call",
        "telephony",
        "telephony_short",
        "video",
        "medical_conversation",
        "medical_dictation",
    ],
    "en-GB": [
        "default",
        "latest_long",
        "latest_short",
        "command_and_search",
        "phone_call",
        "telephony",
        "telephony_short",
    ],
    "bg-BG": ["default", "latest_long", "latest_short", "command_and_search"],
}

SUPPORTED_LANGUAGES: list[Language] = sorted(
    [
        Language("en-US", "English (United States)"),
        Language("en-GB", "English (United Kingdom)"),
        Language("bg-BG", "Bulgarian (Bulgaria)"),
    ],
    key=lambda lang: lang.name,
)


def get_language(code: str) -> Language | None:
    """Look up a supported language by code."""
    for lang in SUPPORTED_LANGUAGES:
        if lang.code == code:
            return lang
    return None


def get_models(code: str) -> list[str]:
    """Recognition models for a language; unknown codes only get "default"."""
    return list(_MODELS_BY_CODE.get(code, ["default"]))
