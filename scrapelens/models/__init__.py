from scrapelens.models.base import Base
from scrapelens.models.record import INGEST_COLUMNS, Record
from scrapelens.models.runs import PipelineRun

__all__ = [
    "Base",
    "Record",
    "PipelineRun",
    "INGEST_COLUMNS",
]
