"""
Pricing policy — single source of truth for tax and markup defaults.

The aggregators never read the environment themselves; callers build a
``PricingPolicy`` (or use ``load_pricing_policy()``) and pass it in, so tests
can vary tax/markup without touching the engine.
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

# ── Defaults ──────────────────────────────────────────────────────────────────
# No tax rate: the BOM's own ``tax`` amount is used as entered.
_DEFAULT_TAX_RATE: Optional[float] = None
# No markup: ``markedUpCosts`` is only produced when a rate or amount is set.
_DEFAULT_MARKUP_RATE: Optional[float] = None
_DEFAULT_MARKUP_AMOUNT: Optional[float] = None
# Reported alongside totals for the presentation layer; never used in math.
_DEFAULT_CURRENCY: str = "PHP"

# ── Environment variable names ────────────────────────────────────────────────
ENV_TAX_RATE = "BUILDTRACK_TAX_RATE"
ENV_MARKUP_RATE = "BUILDTRACK_MARKUP_RATE"
ENV_MARKUP_AMOUNT = "BUILDTRACK_MARKUP_AMOUNT"
ENV_CURRENCY = "BUILDTRACK_CURRENCY"
ENV_LOG_LEVEL = "BUILDTRACK_LOG_LEVEL"
ENV_LOG_FORMAT = "BUILDTRACK_LOG_FORMAT"


class PricingPolicy(BaseModel):
    """Tax and markup policy applied on top of the material/labor rollup."""
    tax_rate: Optional[float] = Field(_DEFAULT_TAX_RATE, ge=0, description="e.g. 0.12 for 12% VAT")
    markup_rate: Optional[float] = Field(_DEFAULT_MARKUP_RATE, ge=0, description="e.g. 0.15 for 15%")
    markup_amount: Optional[float] = Field(_DEFAULT_MARKUP_AMOUNT, ge=0, description="Fixed markup")
    currency: str = _DEFAULT_CURRENCY

    model_config = {"frozen": True}


DEFAULT_POLICY = PricingPolicy()


def _read(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_pricing_policy(env: Optional[Mapping[str, str]] = None) -> PricingPolicy:
    """
    Build a PricingPolicy from environment variables.

    When ``env`` is None, the nearest ``.env`` above the working directory is
    loaded first (no-op if absent; existing variables win) and
    ``os.environ`` is read. Blank values count as unset. Malformed values raise
    pydantic's ValidationError: a bad policy is a deployment error, not data.
    """
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    return PricingPolicy(
        tax_rate=_read(env, ENV_TAX_RATE),
        markup_rate=_read(env, ENV_MARKUP_RATE),
        markup_amount=_read(env, ENV_MARKUP_AMOUNT),
        currency=_read(env, ENV_CURRENCY) or _DEFAULT_CURRENCY,
    )
