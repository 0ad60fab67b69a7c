"""Tunable matching engine settings."""
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nexus.services.matching.contextual_scorer import ContextualWeights


class MatchingOptions(BaseModel):
    """Validated engine configuration, usually built from the Flask config."""

    model_config = ConfigDict(frozen=True)

    min_score: float = Field(default=0.3, ge=0.0, le=1.0)
    floor_score: float = Field(default=0.01, ge=0.0, le=1.0)
    default_limit: int = Field(default=5, ge=1)
    max_limit: int = Field(default=50, ge=1)
    candidate_pool_size: int = Field(default=100, ge=1)
    max_concurrency: int = Field(default=8, ge=1)
    embedding_timeout: float = Field(default=10.0, gt=0)
    request_timeout: Optional[float] = Field(default=30.0, gt=0)
    contextual_blend: float = Field(default=0.5, ge=0.0, le=1.0)
    use_embeddings: bool = True

    weight_sector: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_language: float = Field(default=0.25, ge=0.0, le=1.0)
    weight_format: float = Field(default=0.20, ge=0.0, le=1.0)
    weight_cultural: float = Field(default=0.20, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_consistency(self):
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit cannot exceed max_limit")
        total = self.weight_sector + self.weight_language + self.weight_format + self.weight_cultural
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Contextual weights must sum to 1.0, got {total:.3f}")
        return self

    @property
    def contextual_weights(self) -> ContextualWeights:
        return ContextualWeights(
            sector=self.weight_sector,
            language=self.weight_language,
            format=self.weight_format,
            cultural=self.weight_cultural,
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "MatchingOptions":
        """Build options from MATCH_* keys of a Flask config mapping."""
        values = {}
        for name in cls.model_fields:
            key = f"MATCH_{name.upper()}"
            if key in config and config[key] is not None:
                values[name] = config[key]
        return cls(**values)
