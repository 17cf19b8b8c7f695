from __future__ import annotations
from dataclasses import dataclass
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.models.challenge import Challenge
from partysnap.services.challenges import add_challenges
from partysnap.services.errors import NotFound

# points / time_limit per difficulty tier
TIERS = {"easy": (15, 450), "medium": (25, 500), "hard": (35, 600)}


@dataclass(frozen=True)
class TemplateChallenge:
    title: str
    description: str
    alternative: str
    difficulty: str

    def as_new(self) -> dict:
        points, time_limit = TIERS[self.difficulty]
        return {
            "title": self.title,
            "description": f"{self.description}\n\n(Option B: {self.alternative})",
            "difficulty": self.difficulty,
            "points": points,
            "time_limit": time_limit,
            "is_special": False,
        }


@dataclass(frozen=True)
class TemplateCollection:
    key: str
    label: str
    challenges: tuple[TemplateChallenge, ...]


def _c(title, description, alternative, difficulty):
    return TemplateChallenge(title, description, alternative, difficulty)


TEMPLATES: dict[str, TemplateCollection] = {t.key: t for t in (
    TemplateCollection("baby_shower", "Baby Shower", (
        _c("Selfie with the mom-to-be", "Take a selfie with the mom-to-be smiling", "With someone wearing pink or blue", "easy"),
        _c("Baby colours", "Point at something in the baby's colour", "Something white", "easy"),
        _c("Proud grandparent", "Photo with a grandparent pulling a happy face", "With the oldest guest", "medium"),
        _c("Sweet table", "A creative shot of the dessert table", "The most colourful dish", "medium"),
        _c("Three generations", "One photo with three generations of the family", "Two generations", "hard"),
        _c("Big group", "A photo with at least 10 guests lined up", "The biggest group you can gather", "hard"),
    )),
    TemplateCollection("wedding", "Wedding", (
        _c("Selfie with the couple", "A quick selfie with the newlyweds", "A photo of them smiling from afar", "easy"),
        _c("Fancy shoes", "The nicest pair of shoes you can find", "Your own shoes", "easy"),
        _c("The rings", "Ask the couple to show their rings", "Your own hand", "medium"),
        _c("Best dressed", "Selfie with the best dressed guest", "The boldest accessory", "medium"),
        _c("Everyone", "Organise a photo with as many guests as possible", "At least 15 people", "hard"),
        _c("Both families", "Get both sets of parents in one photo", "Whoever is around", "hard"),
    )),
    TemplateCollection("birthday", "Birthday", (
        _c("Birthday selfie", "Selfie with the birthday person", "With whoever brought the cake", "easy"),
        _c("Candles", "Capture the candles before they are blown out", "Any light in the room", "easy"),
        _c("Oldest friend", "Photo with the birthday person's oldest friend", "With a family member", "medium"),
        _c("Gift pile", "A shot of the gift table", "The wrapping paper pile", "medium"),
        _c("Recreate a classic", "Recreate an old photo of the birthday person", "Copy their signature pose", "hard"),
        _c("Dance floor", "Get five people dancing in one frame", "Three people minimum", "hard"),
    )),
    TemplateCollection("casual", "Casual get-together", (
        _c("Hello host", "Selfie with the host", "With the first person you see", "easy"),
        _c("Drink of the night", "The most colourful drink around", "Your own glass", "easy"),
        _c("New friend", "Photo with someone you just met", "With someone you have not seen in years", "medium"),
        _c("Pet cameo", "A photo with the house pet", "Next to a picture of a pet", "medium"),
        _c("From above", "A group photo taken from up high", "Standing on a chair", "hard"),
        _c("Night out", "A group photo outside at night", "At the front door", "hard"),
    )),
)}


def get_template(key: str) -> TemplateCollection:
    t = TEMPLATES.get(key)
    if not t:
        raise NotFound(f"Unknown challenge template {key!r}")
    return t


async def apply_template(session: AsyncSession, event_id: UUID, key: str) -> list[Challenge]:
    """Seed an event's pool with a template collection; existing challenges are kept."""
    t = get_template(key)
    return await add_challenges(session, event_id, [c.as_new() for c in t.challenges])
