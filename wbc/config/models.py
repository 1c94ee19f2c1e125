import os
from typing import Optional
from pydantic import BaseModel, Field
from wbc.domain.models import ConversionSettings


def default_thread_count() -> int:
    """Twice the CPU count, or a single thread on a single-core machine."""
    cpus = os.cpu_count() or 1
    return cpus * 2 if cpus > 1 else 1


class GeneralConfig(BaseModel):
    threads: int = Field(default_factory=default_thread_count, gt=0)
    quality: int = Field(default=80, ge=0, le=100)
    lossless: bool = False
    log_path: Optional[str] = None
    debug: bool = False

    def to_settings(self) -> ConversionSettings:
        return ConversionSettings(
            quality=self.quality,
            lossless=self.lossless,
            max_concurrency=self.threads,
        )

class UiConfig(BaseModel):
    """UI display configuration."""
    enabled: bool = True
    refresh_per_second: int = Field(default=4, ge=1, le=30)
    recent_failures_max_items: int = Field(default=5, ge=1, le=20)

class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    ui: UiConfig = Field(default_factory=UiConfig)
    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
