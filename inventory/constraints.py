"""Constrained field types shared by the inventory requests."""
from typing import Annotated

from pydantic import Field, StringConstraints

MAX_PAGE_SIZE = 100
MAX_RECENT_COUNT = 100

EntityId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PageNumber = Annotated[int, Field(gt=0)]
PageSize = Annotated[int, Field(gt=0, le=MAX_PAGE_SIZE)]
RecentCount = Annotated[int, Field(gt=0, le=MAX_RECENT_COUNT)]
SearchTerm = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2)]
