from src.models.complaint import CamelModel, Complaint, ComplaintList, ComplaintSubmission
from src.models.dashboard import CategorySlice, Dashboard, SummaryStats, TrendPoint
from src.models.enums import ComplaintCategory, ComplaintStatus, Department, RoutingSource

__all__ = [
    "CamelModel",
    "CategorySlice",
    "Complaint",
    "ComplaintCategory",
    "ComplaintList",
    "ComplaintStatus",
    "ComplaintSubmission",
    "Dashboard",
    "Department",
    "RoutingSource",
    "SummaryStats",
    "TrendPoint",
]
