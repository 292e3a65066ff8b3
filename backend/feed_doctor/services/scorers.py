"""
Rule-based dimension scorers.

Every scorer starts from 100, subtracts fixed penalties for each detected
problem and floors the result at 0. Penalties within one scorer are
independent and additive. Scorers are pure: they read only their field and
the optimization rules of their category, and return a ``DimensionScore``.

Optimization rules are filtered per dimension and reported through
``rules_considered``; their weight and penalty fields do not change scores.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from feed_doctor.schemas.feed_analysis import Issue, Suggestion

MAX_SCORE = 100

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 80
DESCRIPTION_MIN_LENGTH = 50
DESCRIPTION_SEO_LENGTH = 150
DESCRIPTION_STRUCTURE_LENGTH = 200
RECOMMENDED_IMAGE_COUNT = 3

# Three or more consecutive special characters, e.g. "!!!" or "$$$"
SPECIAL_CHAR_RUN = re.compile(r"[!@#$%^&*()]{3,}")


@dataclass
class DimensionScore:
    score: int = MAX_SCORE
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    rules_considered: int = 0

    def penalize(self, points: int):
        self.score = max(0, self.score - points)


def rules_for_category(rules: Optional[Iterable], category: str) -> list:
    """Active rules whose ``rule_category`` matches one scorer's dimension."""
    return [r for r in (rules or []) if getattr(r, "rule_category", None) == category]


def score_title(title: str, rules: Optional[Iterable] = None) -> DimensionScore:
    title = title or ""
    result = DimensionScore(rules_considered=len(rules_for_category(rules, "title")))

    if len(title) < TITLE_MIN_LENGTH:
        result.issues.append(Issue(
            type="title_too_short",
            severity="warning",
            message=f"Title is too short ({len(title)} chars). Recommended: 30-60 characters.",
            field="title",
        ))
        result.suggestions.append(Suggestion(
            type="title_length",
            message="Expand title with product features or brand name",
        ))
        result.penalize(15)
    elif len(title) > TITLE_MAX_LENGTH:
        result.issues.append(Issue(
            type="title_too_long",
            severity="info",
            message=f"Title is too long ({len(title)} chars). May be truncated in listings.",
            field="title",
        ))
        result.penalize(5)

    if SPECIAL_CHAR_RUN.search(title):
        result.issues.append(Issue(
            type="title_special_chars",
            severity="warning",
            message="Title contains excessive special characters",
            field="title",
        ))
        result.suggestions.append(Suggestion(
            type="title_cleanup",
            message="Remove unnecessary special characters",
            auto_fixable=True,
            fix_action="clean_special_chars",
        ))
        result.penalize(10)

    # A title without cased letters counts as single-case too
    if title == title.upper() or title == title.lower():
        result.issues.append(Issue(
            type="title_capitalization",
            severity="info",
            message="Title should use proper title case",
            field="title",
        ))
        result.suggestions.append(Suggestion(
            type="title_case",
            message="Convert to title case for better readability",
            auto_fixable=True,
            fix_action="convert_title_case",
        ))
        result.penalize(5)

    return result


def score_description(description: str, rules: Optional[Iterable] = None) -> DimensionScore:
    description = description or ""
    result = DimensionScore(rules_considered=len(rules_for_category(rules, "description")))

    if len(description) < DESCRIPTION_MIN_LENGTH:
        result.issues.append(Issue(
            type="description_missing",
            severity="error",
            message="Description is missing or too short. Minimum 150 characters recommended.",
            field="description",
        ))
        result.suggestions.append(Suggestion(
            type="description_needed",
            message="Add detailed product description with benefits and features",
        ))
        result.penalize(40)
    elif len(description) < DESCRIPTION_SEO_LENGTH:
        result.issues.append(Issue(
            type="description_short",
            severity="warning",
            message="Description is too short. Add more details for better SEO.",
            field="description",
        ))
        result.penalize(15)

    if len(description) > DESCRIPTION_STRUCTURE_LENGTH and "\n" not in description:
        result.issues.append(Issue(
            type="description_formatting",
            severity="info",
            message="Description should be structured with paragraphs",
            field="description",
        ))
        result.suggestions.append(Suggestion(
            type="description_format",
            message="Break description into readable paragraphs",
            auto_fixable=True,
            fix_action="add_paragraphs",
        ))
        result.penalize(10)

    return result


def score_images(images: Optional[Sequence[str]], rules: Optional[Iterable] = None) -> DimensionScore:
    images = images or []
    result = DimensionScore(rules_considered=len(rules_for_category(rules, "image")))

    if not images:
        result.issues.append(Issue(
            type="images_missing",
            severity="critical",
            message="Product has no images",
            field="images",
        ))
        result.suggestions.append(Suggestion(
            type="images_needed",
            message="Add at least 3 high-quality product images",
        ))
        result.penalize(50)
    elif len(images) < RECOMMENDED_IMAGE_COUNT:
        result.issues.append(Issue(
            type="images_insufficient",
            severity="warning",
            message=f"Only {len(images)} image(s). Recommended: 3-5 images",
            field="images",
        ))
        result.penalize(20)

    return result


def score_category(category_id: Optional[str], rules: Optional[Iterable] = None) -> DimensionScore:
    result = DimensionScore(rules_considered=len(rules_for_category(rules, "category")))

    if not category_id:
        result.issues.append(Issue(
            type="category_missing",
            severity="error",
            message="Product is not assigned to any category",
            field="category",
        ))
        result.suggestions.append(Suggestion(
            type="category_needed",
            message="Assign product to a specific category",
        ))
        result.penalize(30)

    return result


def score_price(price: Optional[float], rules: Optional[Iterable] = None) -> DimensionScore:
    result = DimensionScore(rules_considered=len(rules_for_category(rules, "price")))

    if price is None or price <= 0:
        result.issues.append(Issue(
            type="price_invalid",
            severity="critical",
            message="Price is missing or invalid",
            field="price",
        ))
        result.suggestions.append(Suggestion(
            type="price_needed",
            message="Set a valid price for the product",
        ))
        result.penalize(50)

    return result
