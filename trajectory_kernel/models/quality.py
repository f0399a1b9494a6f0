"""Quality-of-life dimensions, survival fundamentals and distribution."""

from pydantic import BaseModel, Field


class QualityOfLifeSystems(BaseModel):
    """
    Per-dimension quality of life.

    `material_abundance` and `energy_availability` run 0..2 (above 1.0 is
    abundance beyond present-day levels); every other dimension is 0..1.
    """

    material_abundance: float = Field(ge=0, le=2, default=1.0)
    energy_availability: float = Field(ge=0, le=2, default=1.0)
    healthcare_quality: float = Field(ge=0, le=1, default=0.7)
    disease_burden: float = Field(ge=0, le=1, default=0.3)
    mental_health: float = Field(ge=0, le=1, default=0.6)
    meaning_and_purpose: float = Field(ge=0, le=1, default=0.6)
    social_connection: float = Field(ge=0, le=1, default=0.6)
    community_strength: float = Field(ge=0, le=1, default=0.6)
    political_freedom: float = Field(ge=0, le=1, default=0.7)
    autonomy: float = Field(ge=0, le=1, default=0.7)
    physical_safety: float = Field(ge=0, le=1, default=0.7)
    information_integrity: float = Field(ge=0, le=1, default=0.6)
    ecosystem_health: float = Field(ge=0, le=1, default=0.6)
    cultural_vitality: float = Field(ge=0, le=1, default=0.6)


# Fields allowed to exceed 1.0
ABUNDANCE_FIELDS = ("material_abundance", "energy_availability")


class SurvivalFundamentals(BaseModel):
    food_security: float = Field(ge=0, le=1, default=0.85)
    water_security: float = Field(ge=0, le=1, default=0.8)
    thermal_habitability: float = Field(ge=0, le=1, default=0.9)
    shelter_security: float = Field(ge=0, le=1, default=0.8)

    def floors(self) -> dict:
        return {
            "food_security": self.food_security,
            "water_security": self.water_security,
            "thermal_habitability": self.thermal_habitability,
            "shelter_security": self.shelter_security,
        }


class Distribution(BaseModel):
    """Regional distribution of quality of life, supplied by the regional model."""

    gini: float = Field(ge=0, le=1, default=0.38)
    best_region_qol: float = Field(ge=0, le=1, default=0.8)
    worst_region_qol: float = Field(ge=0, le=1, default=0.35)
    crisis_affected_fraction: float = Field(ge=0, le=1, default=0.0)

    @property
    def is_dystopic_inequality(self) -> bool:
        """Rich regions thriving while poor regions suffer."""
        return (
            self.gini > 0.45
            and self.best_region_qol > 0.7
            and self.worst_region_qol < 0.3
            and self.best_region_qol - self.worst_region_qol > 0.5
        )

    @property
    def is_regional_dystopia(self) -> bool:
        return (
            self.crisis_affected_fraction > 0.30
            and self.best_region_qol - self.worst_region_qol > 0.4
            and self.best_region_qol > 0.6
        )
