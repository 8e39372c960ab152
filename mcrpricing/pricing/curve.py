"""
Pricing Curve — ступенчатая кривая цены токена и её интеграл

Кривая задана в пространстве MCR% и разбита на ступени ширины growth_step
(базисные пункты). Ступень k покрывает [k * growth_step, (k + 1) * growth_step).
Внутри ступени цена постоянна и равна значению порождающей функции на
нижней границе ступени b_k:

    price_k = base_price + required_capital * (b_k / 10_000)^4 / scaling_factor

Порождающая функция непрерывна и строго возрастает по MCR%, поэтому:
- цена не убывает при росте MCR%
- цена на верхней границе ступени k (ceiling) совпадает с ценой нижней
  границы ступени k + 1 (floor): скачков между ступенями нет

Интеграл обходит кривую в пространстве стоимости фонда: граница ступени
k соответствует фонду ceil(k * growth_step * required_capital / 10_000).
Платёж потребляется траншами до границы каждой ступени по её цене, остаток
покупается в последней ступени. Благодаря этому одна большая покупка и
серия мелких дают одинаковое количество токенов (с точностью до одной
единицы округления на каждую дополнительную точку разбиения, и точно —
для сумм, выровненных по границам ступеней).

Модуль чистый: состояние не сохраняется.
"""

import logging
from typing import Final

from mcrpricing.core.domain.currency import (
    BASE_CURRENCY,
    from_base_amount,
    normalize_currency_code,
    to_base_amount,
)
from mcrpricing.core.domain.curve_parameters import CurveParameters
from mcrpricing.core.domain.mcr_state import MCRState
from mcrpricing.core.domain.purchase import PurchaseResult, StepBounds, Tranche
from mcrpricing.core.errors import PurchaseAborted, UnknownCurrency, ZeroPayment
from mcrpricing.core.math.fixed_point import (
    RATE_SCALE,
    RATIO_SCALE,
    WAD,
    FixedPointOverflow,
    ceil_div,
    checked_add,
    checked_mul,
    checked_pow,
    checked_sub,
    is_uint256,
    mul_div,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Степень порождающей функции по MCR%
PRICE_EXPONENT: Final[int] = 4


# =============================================================================
# CURRENCY RESOLUTION
# =============================================================================


def resolve_rate(
    state: MCRState,
    currency: str | bytes,
    base_currency: str = BASE_CURRENCY,
) -> int:
    """
    Курс валюты из снапшота состояния.

    Базовая валюта разрешается в RATE_SCALE, даже если отсутствует в снапшоте.

    Raises:
        UnknownCurrency: Код некорректен или отсутствует в снапшоте
    """
    try:
        code = normalize_currency_code(currency)
    except ValueError:
        raise UnknownCurrency(str(currency)) from None

    rate = state.rate_for(code)
    if rate is not None:
        return rate

    if code == base_currency:
        return RATE_SCALE

    raise UnknownCurrency(code)


# =============================================================================
# STEP GEOMETRY
# =============================================================================


def step_index_for_ratio(ratio_bp: int, params: CurveParameters) -> int:
    """Индекс ступени, содержащей MCR% (граница принадлежит верхней ступени)."""
    return ratio_bp // params.growth_step


def step_price(step_index: int, state: MCRState, params: CurveParameters) -> int:
    """
    Цена ступени в базовой валюте (wei за 1 токен).

    Raises:
        FixedPointOverflow: Переполнение при вычислении
    """
    lower_bp = checked_mul(step_index, params.growth_step)
    capital_term = mul_div(
        state.required_capital,
        checked_pow(lower_bp, PRICE_EXPONENT),
        checked_mul(RATIO_SCALE**PRICE_EXPONENT, params.scaling_factor),
    )
    return checked_add(params.base_price, capital_term)


def step_bounds(step_index: int, state: MCRState, params: CurveParameters) -> StepBounds:
    """
    Границы ступени и цены на них.

    ceiling_price ступени k равна floor_price ступени k + 1.
    """
    lower_bp = checked_mul(step_index, params.growth_step)
    return StepBounds(
        index=step_index,
        lower_ratio_bp=lower_bp,
        upper_ratio_bp=checked_add(lower_bp, params.growth_step),
        floor_price=step_price(step_index, state, params),
        ceiling_price=step_price(step_index + 1, state, params),
    )


def ratio_for_fund(fund_value: int, required_capital: int) -> int:
    """MCR% для стоимости фонда (округление вниз)."""
    return mul_div(fund_value, RATIO_SCALE, required_capital)


def _step_span(state: MCRState, params: CurveParameters) -> int:
    # Ширина ступени в единицах fund_value * RATIO_SCALE
    return checked_mul(params.growth_step, state.required_capital)


def step_index_for_fund(fund_value: int, state: MCRState, params: CurveParameters) -> int:
    """Индекс ступени, содержащей стоимость фонда."""
    return checked_mul(fund_value, RATIO_SCALE) // _step_span(state, params)


def fund_at_step_boundary(step_index: int, state: MCRState, params: CurveParameters) -> int:
    """Минимальная стоимость фонда, принадлежащая ступени step_index."""
    return ceil_div(checked_mul(step_index, _step_span(state, params)), RATIO_SCALE)


# =============================================================================
# SPOT PRICE
# =============================================================================


def spot_price(
    currency: str | bytes,
    state: MCRState,
    params: CurveParameters,
    base_currency: str = BASE_CURRENCY,
) -> int:
    """
    Спот-цена токена в валюте при MCR% состояния.

    Цена в валюте = цена в ETH / exchange rate, где exchange rate
    (стоимость единицы валюты в ETH) = RATE_SCALE / rate.

    Args:
        currency: Код валюты
        state: Текущее MCR состояние
        params: Снапшот параметров кривой
        base_currency: Базовая валюта пула

    Returns:
        Цена за 1 токен (wei валюты)

    Raises:
        UnknownCurrency: Валюта отсутствует в снапшоте
    """
    rate = resolve_rate(state, currency, base_currency)
    base_price = step_price(step_index_for_ratio(state.ratio_bp, params), state, params)
    return from_base_amount(base_price, rate)


# =============================================================================
# INTEGRAL
# =============================================================================


def _walk_curve(
    base_amount: int,
    state: MCRState,
    params: CurveParameters,
    max_steps: int | None,
) -> list[Tranche]:
    tranches: list[Tranche] = []
    position = state.fund_value
    remaining = base_amount

    while remaining > 0:
        if max_steps is not None and len(tranches) >= max_steps:
            raise PurchaseAborted(
                f"Purchase spans more than {max_steps} curve steps",
                reason="step_limit_exceeded",
            )

        step = step_index_for_fund(position, state, params)
        price = step_price(step, state, params)
        boundary = fund_at_step_boundary(step + 1, state, params)

        consumed = min(remaining, checked_sub(boundary, position))
        tokens = mul_div(consumed, WAD, price)
        tranches.append(
            Tranche(step_index=step, base_amount=consumed, price=price, tokens=tokens)
        )
        logger.debug(
            "tranche step=%d consumed=%d price=%d tokens=%d", step, consumed, price, tokens
        )

        position = checked_add(position, consumed)
        remaining -= consumed

    return tranches


def integrate(
    payment_amount: int,
    currency: str | bytes,
    state: MCRState,
    params: CurveParameters,
    max_steps: int | None = None,
    base_currency: str = BASE_CURRENCY,
) -> PurchaseResult:
    """
    Количество токенов за платёж с обходом ступеней кривой.

    Алгоритм:
    1. Конверсия платежа в базовую валюту по курсу снапшота
    2. Пока остаток выводит фонд за границу текущей ступени — транш до
       границы по цене ступени, переход к следующей ступени
    3. Остаток — по цене последней ступени
    4. new_fund_value = fund_value + base_amount, MCR% пересчитывается

    Args:
        payment_amount: Сумма платежа (wei валюты), > 0
        currency: Код валюты платежа
        state: Снапшот MCR состояния
        params: Снапшот параметров кривой
        max_steps: Максимум траншей (None — без ограничения)
        base_currency: Базовая валюта пула

    Returns:
        PurchaseResult (ничего не сохраняет)

    Raises:
        ZeroPayment: payment_amount <= 0 или округляется до нуля в базовой валюте
        UnknownCurrency: Валюта отсутствует в снапшоте
        PurchaseAborted: Переполнение fixed-point арифметики или лимит ступеней
    """
    if isinstance(payment_amount, bool) or not isinstance(payment_amount, int):
        raise ZeroPayment(
            f"payment_amount must be an integer, got {payment_amount!r}",
            reason="invalid_payment",
        )

    if payment_amount <= 0:
        raise ZeroPayment(f"payment_amount must be positive, got {payment_amount}")

    if not is_uint256(payment_amount):
        raise PurchaseAborted(
            "payment_amount exceeds uint256 range", reason="arithmetic_overflow"
        )

    rate = resolve_rate(state, currency, base_currency)
    code = normalize_currency_code(currency)

    try:
        base_amount = to_base_amount(payment_amount, rate)
        if base_amount == 0:
            raise ZeroPayment(
                f"payment {payment_amount} {code} rounds to zero in {base_currency}",
                reason="payment_below_resolution",
            )

        tranches = _walk_curve(base_amount, state, params, max_steps)

        minted = 0
        for tranche in tranches:
            minted = checked_add(minted, tranche.tokens)

        new_fund_value = checked_add(state.fund_value, base_amount)
        new_ratio_bp = ratio_for_fund(new_fund_value, state.required_capital)
    except FixedPointOverflow as e:
        raise PurchaseAborted(
            f"Fixed-point overflow while walking curve: {e}",
            reason="arithmetic_overflow",
        ) from e

    return PurchaseResult(
        minted_quantity=minted,
        new_fund_value=new_fund_value,
        new_ratio_bp=new_ratio_bp,
        currency=code,
        payment_amount=payment_amount,
        base_amount=base_amount,
        tranches=tuple(tranches),
    )
