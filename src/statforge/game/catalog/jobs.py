"""Job definitions for statforge."""

from pydantic import BaseModel, ConfigDict, Field

from .loader import Catalog


class JobDefinition(BaseModel):
    """
    Job definition loaded from YAML data.

    Attributes:
        id: Unique job identifier (e.g., "warrior")
        name: Display name
        description: Display text
        attribute_bonus: Deltas granted while the job is held. Primary keys are
            folded into base attributes on job change; other keys are layered
            on every recompute.
        growth_rates: Base primary gains per level up
        unlock_level: Minimum level to take the job
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique job identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Display text")
    attribute_bonus: dict[str, float] = Field(
        default_factory=dict, description="Attribute deltas granted by the job"
    )
    growth_rates: dict[str, int] = Field(
        default_factory=dict, description="Primary gains per level up"
    )
    unlock_level: int = Field(default=1, ge=1, description="Minimum level")


class JobCatalog(Catalog[JobDefinition]):
    """Lookup of job definitions by job ID."""

    root_key = "jobs"
    template = JobDefinition

    def get_job(self, job_id: str | None) -> JobDefinition | None:
        """Get a job definition by ID."""
        return self.get(job_id)
