from enum import Enum


class IndustryMode(str, Enum):
    PRODUCT_COMPANY = "Product company"
    SERVICE_COMPANY = "Service company"
    STARTUP = "Startup"
    MNC = "MNC"


DEFAULT_INDUSTRY_MODE = IndustryMode.PRODUCT_COMPANY

INDUSTRY_MODES = {
    IndustryMode.PRODUCT_COMPANY: {
        "label": "Product company",
        "interview_focus": "system design depth, ownership, and product impact",
    },
    IndustryMode.SERVICE_COMPANY: {
        "label": "Service company",
        "interview_focus": "fundamentals, client communication, and delivery under deadlines",
    },
    IndustryMode.STARTUP: {
        "label": "Startup",
        "interview_focus": "breadth, shipping speed, and pragmatic trade-offs",
    },
    IndustryMode.MNC: {
        "label": "MNC",
        "interview_focus": "process discipline, scale, and cross-team collaboration",
    },
}


def normalize_industry_mode(mode: str | None) -> IndustryMode:
    candidate = str(mode or "").strip()
    for item in IndustryMode:
        if item.value.lower() == candidate.lower():
            return item
    return DEFAULT_INDUSTRY_MODE


def list_industry_modes() -> list[dict[str, str]]:
    return [
        {
            "id": mode.value,
            "label": preset["label"],
            "interview_focus": preset["interview_focus"],
        }
        for mode, preset in INDUSTRY_MODES.items()
    ]
