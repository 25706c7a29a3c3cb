"""Pydantic models for catalog entries and discovered images"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from image_reconciler.matching.normalizer import normalize


class CatalogEntry(BaseModel):
    """A single product record from the catalog file"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5",
                "name": "Apple Cider Vinegar",
                "image_refs": ["/images/products/G12.png"],
                "created_by": "manual-entry",
                "updated_by": None,
                "position": 4,
            }
        }
    )

    id: Optional[str] = Field(None, description="Stable product identifier")
    name: Optional[str] = Field(None, description="Display name")
    image_refs: List[str] = Field(
        default_factory=list, description="Image references, primary first"
    )
    created_by: Optional[str] = Field(None, description="Provenance tag of the creator")
    updated_by: Optional[str] = Field(None, description="Provenance tag of the last update")
    position: int = Field(0, description="Index of the record in the catalog file")
    record: Dict[str, Any] = Field(
        default_factory=dict,
        description="Source JSON object, unknown fields are written back untouched",
        repr=False,
    )

    @property
    def primary_image(self) -> Optional[str]:
        return self.image_refs[0] if self.image_refs else None

    @property
    def label(self) -> str:
        """Identifier used in reports, falls back to the catalog position"""
        return self.id if self.id is not None else f"#{self.position}"


class ImageDescriptor(BaseModel):
    """An image file discovered by a directory scan"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "absolute_path": "/srv/site/sitephoto/New images/Apple Cider Vinegar.jpg",
                "category": "New images",
                "filename": "Apple Cider Vinegar.jpg",
                "extension": ".jpg",
            }
        },
    )

    absolute_path: Path = Field(..., description="Absolute path of the image file")
    category: str = Field(..., description="Name of the directory holding the file")
    filename: str = Field(..., description="File name including extension")
    extension: str = Field(..., description="Lower-case extension with leading dot")

    @property
    def stem(self) -> str:
        return self.filename[: -len(self.extension)] if self.extension else self.filename

    @property
    def normalized_key(self) -> str:
        return normalize(self.stem)


class Catalog(BaseModel):
    """A loaded catalog file"""

    source_path: Path = Field(..., description="Path the catalog was read from")
    entries: List[CatalogEntry] = Field(default_factory=list)
    wrapper_key: Optional[str] = Field(
        None, description="Key holding the product array when the top level is an object"
    )
    wrapper: Dict[str, Any] = Field(
        default_factory=dict, description="Top-level object the array was read from"
    )
    issues: List[str] = Field(
        default_factory=list, description="Per-entry problems found while loading"
    )
