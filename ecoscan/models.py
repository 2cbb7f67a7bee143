import copy
import logging
from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

Score = Literal["good", "average", "bad", "unknown"]
Color = Literal["green", "yellow", "red", "gray"]
NutrientLevel = Literal["low", "moderate", "high"]

logger = logging.getLogger(__name__)


# ---------- Upstream (Open Food Facts) records ----------
# Every field is optional: the catalog schema is not under our control.

class UpstreamRecord(BaseModel):
    pass

class PackagingAdjustment(UpstreamRecord):
    value: Optional[float] = None
    warning: Optional[str] = None
    non_recyclable_and_non_biodegradable_materials: Optional[float] = None

class AggregatedOrigin(UpstreamRecord):
    origin: Optional[str] = None
    percent: Optional[float] = None

class OriginsAdjustment(UpstreamRecord):
    value: Optional[float] = None
    warning: Optional[str] = None
    aggregated_origins: List[AggregatedOrigin] = []

class ProductionSystemAdjustment(UpstreamRecord):
    value: Optional[float] = None
    warning: Optional[str] = None
    labels: List[str] = []

class Adjustments(UpstreamRecord):
    packaging: Optional[PackagingAdjustment] = None
    origins_of_ingredients: Optional[OriginsAdjustment] = None
    production_system: Optional[ProductionSystemAdjustment] = None

class EcoscoreData(UpstreamRecord):
    adjustments: Adjustments = Adjustments()

class RawProduct(UpstreamRecord):
    product_name: Optional[str] = None
    brands: Optional[str] = None
    quantity: Optional[str] = None
    image_front_url: Optional[str] = None
    ingredients_text: Optional[str] = None
    allergens_hierarchy: Optional[List[str]] = None
    nutrient_levels: Optional[Dict[str, str]] = None
    ecoscore_grade: Optional[str] = None
    ecoscore_data: Optional[EcoscoreData] = None

    @property
    def adjustments(self) -> Adjustments:
        if self.ecoscore_data is None:
            return Adjustments()
        return self.ecoscore_data.adjustments

    @classmethod
    def from_payload(cls, payload: Any) -> "RawProduct":
        """
        Lenient parse of an upstream product object. Fields that fail
        validation are dropped instead of failing the whole record. A broken
        adjustment sub-record is removed as a unit, except inside
        aggregated_origins where only the broken entry (or its unused
        percent) goes. Any other broken field is removed on its own.
        """
        data = copy.deepcopy(payload) if isinstance(payload, dict) else {}
        while True:
            try:
                return cls.model_validate(data)
            except ValidationError as exc:
                # One drop per pass: removing a list entry shifts later indices.
                for err in exc.errors():
                    path = _droppable_path(err["loc"])
                    if _drop_path(data, path):
                        logger.warning("Dropping malformed upstream field %s: %s", ".".join(map(str, path)), err["msg"])
                        break
                else:
                    logger.warning("Upstream product could not be parsed; using an empty record")
                    return cls()


def _droppable_path(loc: Tuple[Any, ...]) -> Tuple[Any, ...]:
    if loc[:2] == ("ecoscore_data", "adjustments"):
        if len(loc) >= 4 and loc[3] == "aggregated_origins":
            if len(loc) >= 6 and loc[5] != "origin":
                return loc[:6]
            return loc[:5]
        if len(loc) >= 3:
            return loc[:3]
    if len(loc) >= 2 and loc[0] == "ecoscore_data":
        return loc[:2]
    return loc[:1]

def _drop_path(data: Dict[str, Any], path: Tuple[Any, ...]) -> bool:
    if not path:
        return False
    node: Any = data
    for key in path[:-1]:
        if isinstance(node, dict) and key in node:
            node = node[key]
        elif isinstance(node, list) and isinstance(key, int) and 0 <= key < len(node):
            node = node[key]
        else:
            return False
    last = path[-1]
    if isinstance(node, dict) and last in node:
        del node[last]
        return True
    if isinstance(node, list) and isinstance(last, int) and 0 <= last < len(node):
        del node[last]
        return True
    return False


# ---------- API response ----------

class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

class SdgFactor(ApiModel):
    score: Score
    details: str = Field(min_length=1)

class Sdg12Info(ApiModel):
    packaging: SdgFactor
    ingredient_origins: SdgFactor
    production_method: SdgFactor

class ProductInfo(ApiModel):
    barcode: str
    product_name: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
    ingredients_text: Optional[str] = None
    allergens: List[str] = []
    eco_score_grade: str = "UNKNOWN"
    color: Color = "gray"
    sdg12_info: Sdg12Info = Field(alias="sdg12Info")
    nutrient_levels: Optional[Dict[str, NutrientLevel]] = None
