"""
Pydantic data models for discovery results and batch rows.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# searchMethod tags that describe a failure rather than a finding
ERROR_METHODS = frozenset(
    {
        "dns_error",
        "bot_blocked",
        "timeout_error",
        "site_closed",
        "sns_not_supported",
        "not_found",
    }
)


class SearchResult(BaseModel):
    """The single output shape of one discovery run."""

    contact_url: Optional[str] = Field(
        None, description="Page believed to host or lead to the contact form"
    )
    actual_form_url: Optional[str] = Field(
        None, description="Resolved submission endpoint (may be a Google Form)"
    )
    found_keywords: List[str] = Field(
        default_factory=list, description="Signals or error messages behind the result"
    )
    search_method: str = Field(
        ..., description="Tag naming the strategy/sub-path that produced the result"
    )

    @classmethod
    def failure(cls, search_method: str, *keywords: str) -> "SearchResult":
        return cls(search_method=search_method, found_keywords=list(keywords))

    @property
    def found(self) -> bool:
        return self.contact_url is not None

    @property
    def is_error(self) -> bool:
        return self.search_method in ERROR_METHODS


class CompanyTarget(BaseModel):
    """One row of a batch: a homepage in, a contact URL (or reason) out."""

    # -- Input fields ------------------------------------------------------
    row_id: str = Field(..., description="Identifier of the row in the source table")
    homepage_url: str = Field(..., description="Company homepage URL")

    # -- Discovery fields --------------------------------------------------
    contact_url: Optional[str] = Field(
        None, description="Form URL when resolved, otherwise the contact page"
    )
    search_method: Optional[str] = Field(None, description="searchMethod tag")
    error_message: Optional[str] = Field(None, description="Failure reason")
    success: Optional[bool] = Field(None, description="Visual success marker")
    processed_at: Optional[datetime] = Field(
        None, description="Timestamp of discovery"
    )
