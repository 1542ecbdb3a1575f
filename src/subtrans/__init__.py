from __future__ import annotations

from .config import SubTransConfig
from .pipeline import PipelineReport, SubTransPipeline

__all__ = ["SubTransConfig", "SubTransPipeline", "PipelineReport"]

__version__ = "0.1.0"
