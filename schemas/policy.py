"""Content policy passed explicitly into prompt composition."""

from pydantic import BaseModel, ConfigDict, Field

from config.settings import PolicySettings


class ContentPolicy(BaseModel):
    """Resolved flirtation / adult content flags for one request."""

    allow_flirtation: bool = Field(default=True)
    allow_adult_content: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)


def load_policy() -> ContentPolicy:
    """
    Read the policy flags from the environment. Called once per request, never cached.

    A flag is on only when its value is exactly "true"; any other value is off.
    """
    flags = PolicySettings()
    return ContentPolicy(
        allow_flirtation=flags.ALLOW_FLIRT == "true",
        allow_adult_content=flags.ALLOW_ADULT == "true",
    )
