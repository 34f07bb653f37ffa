"""Constants shared by the aggregation layer."""

# History pages are always this size, both locally sliced and server-paged.
PAGE_SIZE = 30

# Sentinel for any display field the authority did not provide.
NOT_AVAILABLE = "NOT AVAILABLE"

CASE_STATUS_ACTIVE = "active"

PROVENANCE_PORTAL = "portal"
PROVENANCE_LOCAL = "local"

EXPORT_FORMATS = {
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "csv": "text/csv",
}
