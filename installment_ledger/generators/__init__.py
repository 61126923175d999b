"""Demo data generators."""

from installment_ledger.generators.base import BaseGenerator
from installment_ledger.generators.portfolio import (
    GeneratedPortfolio,
    PaymentBehavior,
    PortfolioGenerator,
)

__all__ = ["BaseGenerator", "GeneratedPortfolio", "PaymentBehavior", "PortfolioGenerator"]
