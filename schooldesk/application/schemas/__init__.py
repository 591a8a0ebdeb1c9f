from .record import RecordResponse, StatisticsResponse

__all__ = [
    "RecordResponse",
    "StatisticsResponse",
]
