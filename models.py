"""Data model for extracted recipes."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Item:
    """A single ingredient or instruction line.

    Header items are sub-section labels ("For the sauce:") rather than
    something to buy or do.
    """
    text: str
    is_header: bool = False


@dataclass(frozen=True)
class RecipeDraft:
    """Ordered ingredients and instructions, in extraction order."""
    ingredients: list[Item] = field(default_factory=list)
    instructions: list[Item] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.ingredients and not self.instructions


@dataclass(frozen=True)
class SavedRecipe:
    """A draft stored in the cookbook."""
    id: str
    name: str
    date: str
    data: RecipeDraft


LOGIN_WALL_MESSAGE = "Instagram blocked the request. Please paste the caption text manually."


@dataclass(frozen=True)
class LoginWallNotice:
    """Returned instead of a draft when the page is behind a login wall."""
    message: str = LOGIN_WALL_MESSAGE
    source_url: str | None = None
