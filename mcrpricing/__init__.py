"""
MCR Pricing — ценообразование токена по коэффициенту достаточности капитала.

Движок отслеживает пул капитала в нескольких валютах, вычисляет MCR%
(отношение стоимости фонда к требуемому капиталу) и продаёт токен по
ступенчатой монотонной кривой, интегрируя её по всей сумме платежа.
"""

from mcrpricing.config import EngineSettings
from mcrpricing.engine import PricingEngine

__all__ = [
    "EngineSettings",
    "PricingEngine",
]
