import re
from typing import Dict, Optional

from .models import (
    Color,
    NutrientLevel,
    OriginsAdjustment,
    PackagingAdjustment,
    ProductInfo,
    ProductionSystemAdjustment,
    RawProduct,
    Sdg12Info,
    SdgFactor,
)

PACKAGING_DATA_MISSING = "packaging_data_missing"
ORIGINS_UNKNOWN = "origins_are_100_percent_unknown"
NO_LABEL = "no_label"
UNKNOWN_ORIGIN = "en:unknown"
NOT_APPLICABLE = "N/A"

# Only these language prefixes are stripped; "de:", "it:" etc. pass through.
_LANG_PREFIX = re.compile(r"^(?:en|fr|es):")
_WORD_START = re.compile(r"(^|\s+)(\w)")

_GRADE_COLORS: Dict[str, Color] = {
    "a": "green",
    "b": "green",
    "c": "yellow",
    "d": "red",
    "e": "red",
}
_NUTRIENT_LEVELS = ("low", "moderate", "high")


def clean_label(label: Optional[str]) -> str:
    """
    Turn an upstream tag into display text, e.g. "en:organic-farming" -> "Organic Farming".
    """
    if not label:
        return ""
    text = _LANG_PREFIX.sub("", label).replace("-", " ")
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), text)


# ---------- SDG 12 factors ----------

def analyze_packaging(packaging: Optional[PackagingAdjustment]) -> SdgFactor:
    if packaging is None or packaging.warning == PACKAGING_DATA_MISSING:
        return SdgFactor(score="unknown", details="Packaging information is not available for this product.")

    # A negative adjustment means the materials are penalised upstream.
    non_recyclable = packaging.non_recyclable_and_non_biodegradable_materials
    if (packaging.value is not None and packaging.value < 0) or (non_recyclable is not None and non_recyclable > 0):
        return SdgFactor(score="bad", details="Contains non-recyclable or problematic materials.")

    return SdgFactor(
        score="good",
        details="Packaging materials appear to be recyclable or have a lower environmental impact.",
    )


def analyze_origins(origins: Optional[OriginsAdjustment]) -> SdgFactor:
    unknown = SdgFactor(
        score="unknown",
        details="The origin of the ingredients is unknown, which may hide a large transportation footprint.",
    )
    if origins is None or origins.warning == ORIGINS_UNKNOWN or origins.value is None:
        return unknown

    known = [
        clean_label(o.origin)
        for o in origins.aggregated_origins
        if o.origin and o.origin != UNKNOWN_ORIGIN
    ]
    known_text = ", ".join(known) or NOT_APPLICABLE

    if origins.value >= 0:
        return SdgFactor(
            score="good",
            details=f"Ingredients are sourced from sustainable locations. Known origins: {known_text}.",
        )

    # Normally covered by the unknown-origins warning above.
    return SdgFactor(score="bad", details="Ingredient origins have a negative environmental impact score.")


def analyze_production(production: Optional[ProductionSystemAdjustment]) -> SdgFactor:
    if production is None:
        return SdgFactor(score="unknown", details="Production method information is unavailable.")

    if production.labels:
        labels = ", ".join(clean_label(label) for label in production.labels)
        return SdgFactor(score="good", details=f"Certified with sustainable labels: {labels}.")

    if production.warning == NO_LABEL:
        return SdgFactor(
            score="average",
            details="This product does not carry any specific sustainability certifications.",
        )

    return SdgFactor(score="unknown", details="Could not determine the production method.")


# ---------- Overall grade ----------

def grade_to_color(grade: Optional[str]) -> Color:
    if not isinstance(grade, str):
        return "gray"
    return _GRADE_COLORS.get(grade.strip().lower(), "gray")


def display_grade(grade: Optional[str]) -> str:
    if not grade or not grade.strip():
        return "UNKNOWN"
    return grade.strip().upper()


def _nutrient_levels(raw: Optional[Dict[str, str]]) -> Optional[Dict[str, NutrientLevel]]:
    if not raw:
        return None
    return {name: level for name, level in raw.items() if level in _NUTRIENT_LEVELS}  # type: ignore[misc]


def build_product_info(barcode: str, product: RawProduct) -> ProductInfo:
    """
    Assemble the API result for one product. Never raises for a parsed
    RawProduct: every missing section degrades to an "unknown" factor.
    """
    adjustments = product.adjustments
    return ProductInfo(
        barcode=barcode,
        product_name=product.product_name or "Unknown Product",
        brand=product.brands or "Unknown Brand",
        image_url=product.image_front_url,
        ingredients_text=product.ingredients_text,
        allergens=list(product.allergens_hierarchy or []),
        eco_score_grade=display_grade(product.ecoscore_grade),
        color=grade_to_color(product.ecoscore_grade),
        sdg12_info=Sdg12Info(
            packaging=analyze_packaging(adjustments.packaging),
            ingredient_origins=analyze_origins(adjustments.origins_of_ingredients),
            production_method=analyze_production(adjustments.production_system),
        ),
        nutrient_levels=_nutrient_levels(product.nutrient_levels),
    )
