"""Configuration schema — validates the capture settings."""

from pydantic import BaseModel, Field, field_validator

from prshots.schemas.pull_request import build_search_query


class Timings(BaseModel):
    """Stabilisation waits and caps used while preparing a page.

    All delays are in milliseconds. They are heuristics, not protocol
    guarantees — tests typically zero them out.
    """

    load_more_settle_ms: int = Field(1500, ge=0)
    resolved_settle_ms: int = Field(500, ge=0)
    screenshot_retry_ms: int = Field(1000, ge=0)
    job_retry_ms: int = Field(2000, ge=0)
    navigation_timeout_ms: int = Field(60_000, ge=0)

    max_expand_iterations: int = Field(10, gt=0)
    viewport_width: int = Field(1280, gt=0)
    viewport_height: int = Field(800, gt=0)


class CaptureConfig(BaseModel):
    """Everything a capture run needs, supplied out-of-band (YAML, env, CLI)."""

    # Required
    token: str
    owner: str
    repo: str
    author: str

    # Browser
    browser_endpoint: str = "http://localhost:9222"

    # Output
    output_directory: str = "./screenshots"

    # Scheduling
    batch_size: int = Field(20, ge=1)  # peak number of open pull-request jobs
    per_page: int = Field(40, ge=1, le=100)  # search API caps this at 100

    timings: Timings = Timings()

    @field_validator("token", "owner", "repo", "author")
    @classmethod
    def check_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @property
    def search_query(self) -> str:
        return build_search_query(self.owner, self.repo, self.author)
