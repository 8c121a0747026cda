from figureshelf.models.catalog import (
    RELEASE_REGIONS,
    CatalogItem,
    CollectionSnapshot,
    Condition,
    FigureType,
    OwnershipRecord,
    Profile,
    WishlistRecord,
)
from figureshelf.models.failure import (
    ApiResponse,
    BackendError,
    DuplicateRecordError,
    ExternalServiceError,
    FailureDetail,
    FailureKind,
    ForbiddenError,
    InvalidInputError,
    KnownError,
    NotFoundError,
    OutcomeType,
    PartialMutationError,
)
from figureshelf.models.filters import (
    ALL,
    DisplayItem,
    DisplayPage,
    FilterState,
    SortDirection,
    SortKey,
    Visibility,
)

__all__ = [
    # Catalog and collection records
    "ALL",
    "RELEASE_REGIONS",
    "CatalogItem",
    "CollectionSnapshot",
    "Condition",
    "FigureType",
    "OwnershipRecord",
    "Profile",
    "WishlistRecord",
    # Filters and display
    "DisplayItem",
    "DisplayPage",
    "FilterState",
    "SortDirection",
    "SortKey",
    "Visibility",
    # Failures
    "ApiResponse",
    "BackendError",
    "DuplicateRecordError",
    "ExternalServiceError",
    "FailureDetail",
    "FailureKind",
    "ForbiddenError",
    "InvalidInputError",
    "KnownError",
    "NotFoundError",
    "OutcomeType",
    "PartialMutationError",
]
