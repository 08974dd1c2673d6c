"""SQLAlchemy models for Inkwell."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class GitHubSettings(Base):
    """A user's publishing target: repository coordinates plus App installation."""

    __tablename__ = "github_settings"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    repo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    branch: Mapped[str] = mapped_column(String(255), default="main", nullable=False)

    # Cleared when the App is uninstalled
    installation_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    @property
    def is_connected(self) -> bool:
        """True when every coordinate needed to publish is present."""
        return bool(self.owner and self.repo and self.branch and self.installation_id)

    def __repr__(self) -> str:
        return f"<GitHubSettings {self.user_id} -> {self.owner}/{self.repo}@{self.branch}>"
