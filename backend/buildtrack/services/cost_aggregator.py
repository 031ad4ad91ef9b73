"""
CostAggregator — rolls material costs up into a priced Bill of Materials.

Rollup order:
  material line total  = qty × unit cost              (rounded, half-up)
  category total       = Σ line totals                (declared order)
  material total cost  = Σ category totals
  total project cost   = material total + labor + tax
  marked-up total      = total project cost + markup  (only when a markup is set)

Missing or malformed numbers count as zero and negatives are clamped to zero;
partially entered BOMs are normal and must still price. The only failure is a
BOM that is not there at all (MissingDataError).
"""
import logging
from typing import Optional, Tuple

from buildtrack.config import DEFAULT_POLICY, PricingPolicy
from buildtrack.models.project_schema import (
    Category,
    Material,
    PricedBOM,
    PricedCategory,
    PricedMarkedUpCosts,
    PricedMaterial,
    RawBOM,
)
from buildtrack.services.errors import MissingDataError
from buildtrack.services.numeric import (
    clamp_non_negative,
    round_currency,
    sum_currency,
    unwrap_or_zero,
)
from buildtrack.services.perf_monitor import timed
from buildtrack.services.validation import BOMInput, ProjectInput, coerce_bom, coerce_project

logger = logging.getLogger("buildtrack-cost")


def _amount(value: Optional[float]) -> float:
    """Resolve an optional monetary field: missing -> 0, negative -> 0, rounded."""
    return round_currency(clamp_non_negative(unwrap_or_zero(value)))


def _rate(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return clamp_non_negative(value)


class CostAggregator:
    """
    Prices a BOM under a given PricingPolicy.

    Stateless apart from the (frozen) policy, so one instance can be shared
    across threads and requests.
    """

    def __init__(self, policy: Optional[PricingPolicy] = None) -> None:
        self.policy: PricingPolicy = policy or DEFAULT_POLICY

    # ------------------------------------------------------------------
    # Line and category level
    # ------------------------------------------------------------------

    def price_material(self, material: Material) -> PricedMaterial:
        quantity = clamp_non_negative(unwrap_or_zero(material.quantity))
        unit_cost = clamp_non_negative(unwrap_or_zero(material.unit_cost))
        return PricedMaterial(
            description=material.description,
            quantity=quantity,
            unit=material.unit,
            unit_cost=unit_cost,
            line_total=round_currency(quantity * unit_cost),
        )

    def price_category(self, category: Category) -> PricedCategory:
        materials = tuple(self.price_material(m) for m in category.materials)
        return PricedCategory(
            name=category.name,
            materials=materials,
            category_total=sum_currency(m.line_total for m in materials),
        )

    # ------------------------------------------------------------------
    # Tax and markup
    # ------------------------------------------------------------------

    def resolve_tax(self, bom: RawBOM, material_total: float, labor_cost: float) -> Tuple[float, Optional[float]]:
        """
        Return (tax, tax_rate_applied).

        A tax rate on the BOM, or else on the policy, replaces the entered tax
        amount with rate × (materials + labor). Without a rate the entered
        amount is used as-is.
        """
        rate = _rate(bom.tax_rate)
        if rate is None:
            rate = _rate(self.policy.tax_rate)
        if rate is None:
            return _amount(bom.tax), None
        return round_currency(rate * sum_currency((material_total, labor_cost))), rate

    def resolve_markup(self, bom: RawBOM, total_project_cost: float) -> Optional[PricedMarkedUpCosts]:
        """
        Apply markup to the pre-markup total.

        Precedence: BOM rate, BOM fixed amount, policy rate, policy fixed
        amount. Returns None when no markup is configured anywhere.
        """
        rate, fixed = _rate(bom.markup_rate), _rate(bom.markup_amount)
        if rate is None and fixed is None:
            rate, fixed = _rate(self.policy.markup_rate), _rate(self.policy.markup_amount)

        if rate is not None:
            markup = round_currency(rate * total_project_cost)
        elif fixed is not None:
            markup = round_currency(fixed)
        else:
            return None

        return PricedMarkedUpCosts(
            markup_rate=rate,
            markup_amount=markup,
            total_project_cost=sum_currency((total_project_cost, markup)),
        )

    # ------------------------------------------------------------------
    # Full rollup
    # ------------------------------------------------------------------

    @timed
    def compute_bom(self, bom: BOMInput) -> PricedBOM:
        """
        Price a BOM document.

        Args:
            bom: RawBOM or a plain mapping (camelCase or legacy keys).

        Returns:
            PricedBOM with per-category totals, material total, pre-markup
            total and, when a markup applies, the marked-up totals block.

        Raises:
            MissingDataError: the BOM is absent or not a BOM document.
        """
        raw = coerce_bom(bom)

        categories = tuple(self.price_category(c) for c in raw.categories)
        material_total = sum_currency(c.category_total for c in categories)
        labor_cost = _amount(raw.labor_cost)
        tax, tax_rate = self.resolve_tax(raw, material_total, labor_cost)
        total_project_cost = sum_currency((material_total, labor_cost, tax))
        marked_up = self.resolve_markup(raw, total_project_cost)

        logger.debug(
            f"Priced BOM: {len(categories)} categories, materials {material_total:.2f}, "
            f"labor {labor_cost:.2f}, tax {tax:.2f}, total {total_project_cost:.2f}"
            + (f", marked up {marked_up.total_project_cost:.2f}" if marked_up else "")
        )

        return PricedBOM(
            project_details=raw.project_details,
            categories=categories,
            labor_cost=labor_cost,
            tax=tax,
            tax_rate=tax_rate,
            material_total_cost=material_total,
            total_project_cost=total_project_cost,
            marked_up_costs=marked_up,
        )

    def compute_project_bom(self, project: ProjectInput) -> PricedBOM:
        """Price ``project.bom``; MissingDataError when the project has no BOM."""
        proj = coerce_project(project)
        if proj.bom is None:
            logger.warning(
                f"Project {proj.id or '<unsaved>'} has no BOM",
                extra={"project_id": proj.id},
            )
            raise MissingDataError("bom", f"Project {proj.id or proj.name or '<unsaved>'} has no BOM")
        return self.compute_bom(proj.bom)


def compute_bom(bom: BOMInput, policy: Optional[PricingPolicy] = None) -> PricedBOM:
    """Functional entry point: ``CostAggregator(policy).compute_bom(bom)``."""
    return CostAggregator(policy).compute_bom(bom)


def compute_project_bom(project: ProjectInput, policy: Optional[PricingPolicy] = None) -> PricedBOM:
    return CostAggregator(policy).compute_project_bom(project)
