from .models import (
    AggregateSummary,
    AppProtectionSubtype,
    AssignmentRecord,
    AssignmentType,
    CategoryCounts,
    EndpointSecurityFamily,
    FilteredAssignment,
    Group,
    RawAssignmentTarget,
    REPORT_COLUMNS,
    ResourceCategory,
    ResourceDescriptor,
    ScriptKind,
)
from .aggregator import RecordAggregator
from .context import RunContext
from .dispatcher import ResourceTypeDispatcher
from .filters import filter_assignments
from .groups import (
    AmbiguousGroupError,
    GroupNotFoundError,
    GroupResolutionError,
    GroupResolver,
)
from .platforms import (
    classify_platform,
    endpoint_security_category,
    platform_for,
)

__all__ = [
    "AggregateSummary",
    "AmbiguousGroupError",
    "AppProtectionSubtype",
    "AssignmentRecord",
    "AssignmentType",
    "CategoryCounts",
    "EndpointSecurityFamily",
    "FilteredAssignment",
    "Group",
    "GroupNotFoundError",
    "GroupResolutionError",
    "GroupResolver",
    "RawAssignmentTarget",
    "RecordAggregator",
    "REPORT_COLUMNS",
    "ResourceCategory",
    "ResourceDescriptor",
    "ResourceTypeDispatcher",
    "RunContext",
    "ScriptKind",
    "classify_platform",
    "endpoint_security_category",
    "filter_assignments",
    "platform_for",
]
