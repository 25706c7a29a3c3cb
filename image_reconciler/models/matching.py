"""Pydantic models for match decisions and duplicate flags"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from image_reconciler.models.catalog import ImageDescriptor


class MatchTier(str, Enum):
    """Matching strategies, in decreasing order of confidence"""

    EXACT = "exact"
    TOKEN_SUBSET = "token-subset"
    KEYWORD_CATEGORY = "keyword-category"
    NONE = "none"


class DecisionOutcome(str, Enum):
    """What the reconciler did with a catalog entry"""

    MATCHED = "matched"
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    ERROR = "error"


class MatchDecision(BaseModel):
    """Outcome of matching one catalog entry against the image index"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "catalogEntryId": "5",
                "entryPosition": 4,
                "entryName": "Apple Cider Vinegar",
                "chosenImage": {
                    "absolutePath": "/srv/site/sitephoto/New images/Apple Cider Vinegar.jpg",
                    "category": "New images",
                    "filename": "Apple Cider Vinegar.jpg",
                    "extension": ".jpg",
                },
                "imageRef": "/sitephoto/New images/Apple Cider Vinegar.jpg",
                "previousImage": "/images/products/G12.png",
                "tier": "exact",
                "score": 1.0,
                "rationale": "Exact name match with 'Apple Cider Vinegar.jpg'",
                "outcome": "matched",
            }
        },
    )

    catalog_entry_id: str = Field(..., description="Catalog entry identifier")
    entry_position: Optional[int] = Field(None, description="Position of the entry in the catalog file")
    entry_name: Optional[str] = Field(None, description="Display name of the entry")
    chosen_image: Optional[ImageDescriptor] = Field(None, description="Selected image")
    image_ref: Optional[str] = Field(None, description="Reference written to the catalog")
    previous_image: Optional[str] = Field(None, description="Primary image before the run")
    tier: MatchTier = Field(MatchTier.NONE, description="Tier that produced the decision")
    score: float = Field(0.0, ge=0.0, le=1.0, description="Confidence score")
    rationale: str = Field("", description="Human-readable explanation")
    outcome: DecisionOutcome = Field(DecisionOutcome.SKIPPED)

    @property
    def is_match(self) -> bool:
        return self.chosen_image is not None and self.outcome == DecisionOutcome.MATCHED


class DuplicateFlag(BaseModel):
    """A catalog entry flagged as a duplicate of a canonical entry"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "duplicateId": "10",
                "duplicatePosition": 7,
                "duplicateName": "Frozen Plantains",
                "canonicalId": "3",
                "canonicalName": "frozen plantains",
                "reason": "name",
                "groupKey": "frozen plantains",
            }
        },
    )

    duplicate_id: str = Field(..., description="Entry to remove")
    duplicate_position: int = Field(..., description="Catalog position of the entry to remove")
    duplicate_name: Optional[str] = Field(None)
    canonical_id: str = Field(..., description="Entry that is kept")
    canonical_name: Optional[str] = Field(None)
    reason: str = Field(..., description="'name' or 'image'")
    group_key: str = Field(..., description="Normalized name or resolved image path")


class DirectoryIssue(BaseModel):
    """An image directory that could not be scanned"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    directory: str = Field(..., description="Configured directory path")
    reason: str = Field(..., description="Why the directory was skipped")


class IndexCollision(BaseModel):
    """Two image files that registered the same lookup key"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str = Field(..., description="Colliding lookup key")
    kept: str = Field(..., description="First-seen file, retained")
    ignored: str = Field(..., description="Later file, not registered under the key")
