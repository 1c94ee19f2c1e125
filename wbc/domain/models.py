from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
OUTPUT_SUFFIX = ".webp"

class ConversionJob(BaseModel):
    """One input image and the WebP file it is converted into."""
    model_config = ConfigDict(frozen=True)

    input_path: Path
    output_path: Path

class ConversionSettings(BaseModel):
    """Encoder settings and worker limit for a single batch run."""
    model_config = ConfigDict(frozen=True)

    quality: int = Field(default=80, ge=0, le=100)
    lossless: bool = False
    max_concurrency: int = Field(default=1, ge=1)

class BatchResult(BaseModel):
    """Outcome of one batch. Mutated only by the scheduler under its stats lock."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    total_files: int = Field(ge=0)
    completed_count: int = 0
    failed_count: int = 0
    first_error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.first_error is None and self.completed_count == self.total_files
