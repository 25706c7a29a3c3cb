"""Models for the reconciler config file"""

from pathlib import Path
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from image_reconciler.matching.normalizer import (
    DEFAULT_SHORT_TOKEN_LENGTH,
    DEFAULT_STOP_WORDS,
    normalize,
)


class KeywordRule(BaseModel):
    """Maps product-name keywords to the image categories worth searching"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "keywords": ["coffee", "espresso", "cappuccino", "latte"],
                "categories": ["Coffee"],
            }
        }
    )

    keywords: List[str] = Field(..., min_length=1, description="Name keywords")
    categories: List[str] = Field(..., min_length=1, description="Image category names")

    @field_validator("keywords")
    @classmethod
    def normalize_keywords(cls, value: List[str]) -> List[str]:
        keywords = [normalize(keyword) for keyword in value]
        return [keyword for keyword in keywords if keyword]


DEFAULT_KEYWORD_RULES: List[KeywordRule] = [
    KeywordRule(keywords=["coffee", "espresso", "cappuccino", "latte"], categories=["Coffee"]),
    KeywordRule(keywords=["juice", "smoothie", "drink", "beverage"], categories=["Juices", "Beverages"]),
    KeywordRule(keywords=["milk", "dairy", "cream"], categories=["Milk"]),
    KeywordRule(keywords=["candy", "sweet", "chocolate", "gummy"], categories=["Candy"]),
    KeywordRule(keywords=["cookie", "biscuit", "wafer"], categories=["Cookies"]),
    KeywordRule(keywords=["cracker", "crisp"], categories=["Crackers"]),
    KeywordRule(keywords=["nuts", "almond", "peanut", "walnut", "cashew"], categories=["Nuts"]),
    KeywordRule(keywords=["popcorn"], categories=["Popcorn"]),
    KeywordRule(keywords=["chips", "potato"], categories=["Potato Chips", "Snacks"]),
    KeywordRule(keywords=["protein", "energy"], categories=["Protein Bars"]),
    KeywordRule(keywords=["cereal", "breakfast", "granola"], categories=["Breakfast Cereal"]),
    KeywordRule(keywords=["oats", "oatmeal", "porridge"], categories=["Oats"]),
    KeywordRule(keywords=["beans", "legume", "lentil"], categories=["Beans"]),
    KeywordRule(keywords=["rice"], categories=["Rice"]),
    KeywordRule(keywords=["fresh", "produce", "vegetable", "fruit"], categories=["Fresh Foods"]),
    KeywordRule(
        keywords=["vitamin", "supplement", "medicine", "tablet", "capsule"],
        categories=["Pharmacy"],
    ),
]


class MatchingConfig(BaseModel):
    """Thresholds and tables used by the matcher"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "token_subset_threshold": 0.7,
                "keyword_threshold": 0.3,
                "short_token_length": 2,
                "stop_words": ["and", "the"],
                "keyword_rules": [{"keywords": ["coffee"], "categories": ["Coffee"]}],
            }
        }
    )

    token_subset_threshold: float = Field(
        0.70, ge=0.0, le=1.0, description="Minimum score for the token-subset tier"
    )
    keyword_threshold: float = Field(
        0.30, ge=0.0, le=1.0, description="Minimum score for the keyword-category tier"
    )
    short_token_length: int = Field(
        DEFAULT_SHORT_TOKEN_LENGTH,
        ge=0,
        description="Tokens this long or shorter are ignored",
    )
    stop_words: Set[str] = Field(
        default_factory=lambda: set(DEFAULT_STOP_WORDS),
        description="Connector words ignored by the tokenizer",
    )
    keyword_rules: List[KeywordRule] = Field(
        default_factory=lambda: [rule.model_copy() for rule in DEFAULT_KEYWORD_RULES],
        description="Keyword to category table",
    )

    def categories_for_name(self, normalized_name: str) -> Set[str]:
        """
        Collect the categories whose keywords appear in a normalized name.

        Args:
            normalized_name: Output of ``normalize`` for a product name

        Returns:
            Lower-case category names
        """
        categories: Set[str] = set()
        if not normalized_name:
            return categories

        for rule in self.keyword_rules:
            if any(keyword in normalized_name for keyword in rule.keywords):
                categories.update(category.lower() for category in rule.categories)

        return categories

    def keywords_by_category(self) -> Dict[str, List[str]]:
        """Keywords of every rule, grouped by lower-case category name"""
        grouped: Dict[str, List[str]] = {}
        for rule in self.keyword_rules:
            for category in rule.categories:
                bucket = grouped.setdefault(category.lower(), [])
                bucket.extend(k for k in rule.keywords if k not in bucket)
        return grouped


class CatalogFieldsConfig(BaseModel):
    """Names of the catalog record fields the reconciler reads and writes"""

    id_field: str = Field("id", description="Identifier field")
    name_field: str = Field("name", description="Display name field")
    primary_image_fields: List[str] = Field(
        default_factory=lambda: ["primaryImage", "image"],
        min_length=1,
        description="Primary image fields, first non-empty wins when reading",
    )
    alternate_images_field: Optional[str] = Field(
        "images", description="List of image references, None to ignore"
    )
    created_by_field: str = Field("createdBy")
    updated_by_field: str = Field("updatedBy")
    updated_at_field: Optional[str] = Field("updatedAt")


class ReconcilerConfig(BaseModel):
    """Complete reconciler configuration"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "public_roots": ["public", "."],
                "recursive": False,
                "remove_duplicates": True,
                "auto_generated_tags": ["unused-images-integrator"],
                "placeholder_pattern": "/images/products/[Gg]\\d+[a-z]*\\.png$",
            }
        }
    )

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    catalog_fields: CatalogFieldsConfig = Field(default_factory=CatalogFieldsConfig)
    auto_generated_tags: Set[str] = Field(
        default_factory=lambda: {"unused-images-integrator", "importer-bot"},
        description="Provenance tags of machine-created entries",
    )
    placeholder_pattern: Optional[str] = Field(
        None,
        description="Regex for placeholder image references treated as missing",
    )
    public_roots: List[Path] = Field(
        default_factory=lambda: [Path(".")],
        description="Directories image references are resolved against",
    )
    recursive: bool = Field(False, description="Scan image directories recursively")
    remove_duplicates: bool = Field(True, description="Drop duplicate entries on commit")
    backup_dir: Optional[Path] = Field(None, description="Defaults to the catalog directory")
    report_dir: Optional[Path] = Field(None, description="Defaults to the catalog directory")
    tool_tag: str = Field("image-reconciler", description="Provenance tag stamped on updates")
    max_workers: int = Field(4, ge=1, description="Threads used for the directory scan")
