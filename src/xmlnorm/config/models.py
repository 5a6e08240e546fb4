from pydantic import BaseModel, ConfigDict, Field


class NormalizerConfig(BaseModel):
    '''Switches of a normalization pass. Immutable once created.'''
    model_config = ConfigDict(frozen=True, extra="forbid")

    omit_whitespace: bool = Field(default=False, description="Drop character data that consists only of whitespace.")
    omit_comments: bool = Field(default=False, description="Drop XML comments.")
