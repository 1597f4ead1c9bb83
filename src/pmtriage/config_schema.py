"""Pydantic configuration schema for pmtriage.

This module defines the configuration schema that mirrors config.yaml structure.
Every section has defaults, so an empty file is a valid configuration.

Usage:
    from pmtriage.config_schema import AppConfig

    config = AppConfig(**yaml_data)
    classifier = TextClassifier(store, scoring=config.scoring)
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Current schema version - increment when adding new required fields
CURRENT_SCHEMA_VERSION = 1

# Fallback priority for rules whose priority cell is blank or non-numeric
LOWEST_PRIORITY = 999


class ScoringConfig(BaseModel):
    """Weights used by the text classifier."""

    model_config = ConfigDict(frozen=True)

    keyword_points: int = Field(
        default=100,
        ge=0,
        description="Points for a rule whose keywords appear as whole words",
    )
    sender_points: int = Field(
        default=200,
        ge=0,
        description="Points for a rule whose sender pattern matches a sender or recipient",
    )
    priority_base: int = Field(
        default=10,
        description="Matched rules earn (priority_base - priority) bonus points",
    )
    default_priority: int = Field(
        default=LOWEST_PRIORITY,
        description="Priority assigned to rules with a blank or non-numeric priority",
    )
    clamp_priority_bonus: bool = Field(
        default=False,
        description="Floor the priority bonus at zero instead of letting it go negative",
    )
    default_parent_id: str = Field(
        default="Random",
        description="Project suggested when no project rule scores above zero",
    )

    @field_validator("default_parent_id")
    @classmethod
    def validate_default_parent(cls, v: str) -> str:
        """Ensure the fallback project id is not blank."""
        if not v or not v.strip():
            raise ValueError("Default parent id cannot be empty")
        return v.strip()


class LinkingConfig(BaseModel):
    """Weights used to rank items linked to a message."""

    model_config = ConfigDict(frozen=True)

    reply_weight: int = Field(
        default=1000,
        ge=1,
        description="Weight when In-Reply-To hits the newest tracked message",
    )
    reply_position_step: int = Field(
        default=10,
        ge=0,
        description="Weight lost per tracked message between the hit and the newest",
    )
    message_id_weight: int = Field(
        default=500,
        ge=1,
        description="Weight when the message itself is already tracked by the item",
    )
    thread_weight: int = Field(
        default=100,
        ge=1,
        description="Weight when the conversation id is linked to the item",
    )

    @model_validator(mode="after")
    def validate_tier_order(self) -> "LinkingConfig":
        """Ensure reply hits outrank message-id hits, which outrank thread hits."""
        if not self.reply_weight > self.message_id_weight > self.thread_weight:
            raise ValueError(
                "Link weights must satisfy reply_weight > message_id_weight > thread_weight"
            )
        return self


class SourcesConfig(BaseModel):
    """Locations of the tabular rule and work-item sources."""

    model_config = ConfigDict(frozen=True)

    rules_path: str = Field(
        default="data/rules.csv",
        description="CSV file with classification rules (header row first)",
    )
    work_items_path: str = Field(
        default="data/work_items.csv",
        description="CSV file with work items (header row names the columns)",
    )
    closed_statuses: list[str] = Field(
        default=["Closed"],
        description="Statuses (case-insensitive) that remove an item from the open list",
    )

    @field_validator("rules_path", "work_items_path")
    @classmethod
    def validate_source_path(cls, v: str) -> str:
        """Ensure source paths are not empty and don't contain traversal."""
        if not v or not v.strip():
            raise ValueError("Source path cannot be empty")
        if ".." in v:
            raise ValueError("Source path cannot contain '..' (path traversal)")
        return v


class LoggingConfig(BaseModel):
    """Log output configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console-formatted ones",
    )


class AppConfig(BaseModel):
    """Root configuration schema for pmtriage.

    Instances are immutable and passed explicitly to the engines; there is no
    process-wide configuration state.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(
        default=CURRENT_SCHEMA_VERSION,
        ge=1,
        description="Config schema version for migration tracking",
    )
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    linking: LinkingConfig = Field(default_factory=LinkingConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
