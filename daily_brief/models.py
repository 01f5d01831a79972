"""Data models for the Daily Brief job."""

from dataclasses import dataclass

BULLET_COUNT = 5
PLACEHOLDER_BULLET = "No additional news available."


@dataclass(frozen=True)
class HeadlineRecord:
    """A single headline taken from one feed item."""

    title: str
    description: str = ""

    def __post_init__(self):
        if not self.title.strip():
            raise ValueError("HeadlineRecord title must be non-empty")


@dataclass(frozen=True)
class BulletSummary:
    """Exactly five bullet statements, stored without their markers."""

    bullets: tuple[str, ...]

    def __post_init__(self):
        if len(self.bullets) != BULLET_COUNT:
            raise ValueError(
                f"BulletSummary needs {BULLET_COUNT} bullets, got {len(self.bullets)}"
            )
        if any(not bullet.strip() for bullet in self.bullets):
            raise ValueError("BulletSummary bullets must be non-empty")

    def render(self) -> str:
        """Render as dash-prefixed lines joined by newlines."""
        return "\n".join(f"- {bullet}" for bullet in self.bullets)
