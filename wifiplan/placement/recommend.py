"""
Remediation recommendations from placement results.

recommend() is a pure mapping from (weak areas, confidence) to an ordered
set of remediation categories:

    no weak areas                          -> nothing to recommend
    >= 3 weak areas or confidence < 0.3    -> mesh / multi-unit system
    1-2 weak areas                         -> single range extender

The product catalog is consulted only to look up products per category;
products are copied into the result by value and the engine keeps no
catalog state between calls.
"""

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Protocol, Sequence, Tuple

from wifiplan.calibration.types import CalibrationPoint
from wifiplan.placement.optimizer import OptimizationResult

MESH_WEAK_AREA_COUNT = 3
LOW_CONFIDENCE = 0.3


class RemediationCategory(enum.Enum):
    """Product category that addresses a coverage problem."""

    ROUTER = "Router"
    RANGE_EXTENDER = "Extender"
    MESH_SYSTEM = "Mesh System"
    CABLE = "Cable"
    ACCESSORY = "Accessory"


class Severity(enum.IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(frozen=True)
class Product:
    """Catalog entry."""

    id: str
    name: str
    category: RemediationCategory
    price: float
    description: str = ""
    in_stock: bool = True


class ProductLookup(Protocol):
    """Anything that can list products of a category."""

    def products_for(self, category: RemediationCategory) -> Iterable[Product]:
        ...


class Catalog:
    """
    Immutable in-memory product catalog.

    Example:
        >>> catalog = Catalog.default()
        >>> [p.name for p in catalog.products_for(RemediationCategory.RANGE_EXTENDER)]
        ['Range Extender Pro']
    """

    def __init__(self, products: Iterable[Product]) -> None:
        by_category = {}
        for product in products:
            by_category.setdefault(product.category, []).append(product)
        self._by_category: Mapping[RemediationCategory, Tuple[Product, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in by_category.items()}
        )

    def products_for(self, category: RemediationCategory) -> Tuple[Product, ...]:
        return self._by_category.get(category, ())

    @classmethod
    def default(cls) -> "Catalog":
        """Small demo catalog."""
        return cls([
            Product("1", "WiFi 6 Router", RemediationCategory.ROUTER, 199.99,
                    "High-speed wireless router with WiFi 6 technology"),
            Product("2", "Range Extender Pro", RemediationCategory.RANGE_EXTENDER, 89.99,
                    "Extend your WiFi coverage to every corner"),
            Product("3", "Mesh System 3-Pack", RemediationCategory.MESH_SYSTEM, 399.99,
                    "Complete mesh network for large homes", in_stock=False),
            Product("4", "Ethernet Cable 50ft", RemediationCategory.CABLE, 29.99,
                    "Cat 6 ethernet cable for stable connections"),
        ])


@dataclass(frozen=True)
class RemediationEntry:
    """One recommended category with its severity and matching products."""

    category: RemediationCategory
    severity: Severity
    reason: str
    products: Tuple[Product, ...] = ()


@dataclass(frozen=True)
class RecommendationSet:
    """Ordered remediation entries, most severe first."""

    categories: Tuple[RemediationEntry, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.categories)

    @property
    def category_names(self) -> Tuple[RemediationCategory, ...]:
        return tuple(entry.category for entry in self.categories)


def recommend(
    weak_areas: Sequence[CalibrationPoint],
    confidence_score: float,
    catalog: Optional[ProductLookup] = None,
    in_stock_only: bool = False,
) -> RecommendationSet:
    """
    Map weak areas and result confidence to remediation categories.

    Args:
        weak_areas: Weak captures (OptimizationResult.weak_areas).
        confidence_score: OptimizationResult.confidence_score.
        catalog: Product lookup; None leaves products empty.
        in_stock_only: Drop out-of-stock products.

    Returns:
        RecommendationSet. Empty when there are no weak areas.

    Example:
        >>> rs = recommend(result.weak_areas, result.confidence_score, Catalog.default())
        >>> rs.category_names
        (<RemediationCategory.RANGE_EXTENDER: 'Extender'>,)
    """
    n_weak = len(weak_areas)
    if n_weak == 0:
        return RecommendationSet()

    if n_weak >= MESH_WEAK_AREA_COUNT or confidence_score < LOW_CONFIDENCE:
        category = RemediationCategory.MESH_SYSTEM
        severity = Severity.HIGH
        if n_weak >= MESH_WEAK_AREA_COUNT:
            reason = f"{n_weak} weak areas need a multi-unit system"
        else:
            reason = (f"Survey confidence {confidence_score:.2f} is low; a multi-unit "
                      "system covers the uncertainty")
    else:
        category = RemediationCategory.RANGE_EXTENDER
        severity = Severity.MEDIUM
        labels = ", ".join(p.label for p in weak_areas)
        reason = f"Weak signal at {labels}"

    products: Tuple[Product, ...] = ()
    if catalog is not None:
        products = tuple(
            p for p in catalog.products_for(category)
            if p.in_stock or not in_stock_only
        )

    return RecommendationSet(
        categories=(RemediationEntry(category, severity, reason, products),)
    )


def recommend_for(
    result: OptimizationResult,
    catalog: Optional[ProductLookup] = None,
    in_stock_only: bool = False,
) -> RecommendationSet:
    """recommend() applied to an OptimizationResult."""
    return recommend(result.weak_areas, result.confidence_score, catalog, in_stock_only)
