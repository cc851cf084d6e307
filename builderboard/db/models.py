from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Integer, BigInteger, Boolean, JSON, ForeignKey, Index, UniqueConstraint


class Base(DeclarativeBase):
    pass


# Профили билдеров (кэш склеенных данных Talent + GitHub + OpenAI)
class Profile(Base):
    __tablename__ = "profiles"

    # UUID профиля в Talent Protocol
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    username: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    main_wallet: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    builder_score: Mapped[int] = mapped_column(Integer, default=0)
    human_checkmark: Mapped[bool] = mapped_column(Boolean, default=False)

    # GitHub
    github_username: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    github_user_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_commits: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_contributions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    crypto_commits: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    stars: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    forks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    repositories: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mantle_eco_commits: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # onchain
    weekly_active_contracts: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_transactions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    weekly_transactions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_fees: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    weekly_fees: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    builder_earnings: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # самый звёздный проект
    top_project_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    top_project_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    top_project_stars: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    top_project_language: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # последний проект
    recent_project_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recent_project_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recent_project_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recent_project_language: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recent_project_ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recent_project_pushed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_profiles_builder_score", "builder_score"),
    )


# Репозитории экосистемы Mantle
class MantleRepo(Base):
    __tablename__ = "mantle_repos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    github_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    name: Mapped[str] = mapped_column(Text)
    full_name: Mapped[str] = mapped_column(String(255))
    html_url: Mapped[str] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    stargazers_count: Mapped[int] = mapped_column(Integer, default=0, index=True)
    forks_count: Mapped[int] = mapped_column(Integer, default=0)
    pushed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    topics: Mapped[list] = mapped_column(JSON, default=list)

    owner_username: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_profile_id: Mapped[Optional[str]] = mapped_column(ForeignKey("profiles.id"), nullable=True, index=True)
    owner_builder_score: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("full_name", name="uq_mantle_repo_full_name"),
    )


class MantleContributor(Base):
    __tablename__ = "mantle_contributors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repo_id: Mapped[int] = mapped_column(ForeignKey("mantle_repos.id", ondelete="CASCADE"), index=True)

    login: Mapped[str] = mapped_column(String(255))
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contributions: Mapped[int] = mapped_column(Integer, default=0)
    html_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_contrib_repo_contributions", "repo_id", "contributions"),
    )
