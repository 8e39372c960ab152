"""
Интеграционные тесты PricingEngine

Проверяет:
1. Эталонные сценарии покупки (0.1 ETH, 100 ETH, серия покупок от MCR% 10.00)
2. Отчёты о капитале: словарь через контракт, устаревшие и некорректные отчёты
3. Калибровку кривой и InvalidParameter
4. Спот-цену, quote и текущую ступень
5. Допуск, manual halt, сборку через реестр модулей
6. Сохранение капитала и согласованность при конкурентных покупках
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import jsonschema
import pytest

from mcrpricing import EngineSettings, PricingEngine
from mcrpricing.capital import CapitalLedger, MCRStateHistory
from mcrpricing.collaborators import InMemoryMembership, InMemoryTokenLedger, StaticModuleRegistry
from mcrpricing.core.domain import ReportInput, StateOrigin
from mcrpricing.core.errors import (
    InvalidInput,
    InvalidParameter,
    NoCapitalState,
    NotEligible,
    StaleReport,
    UnknownCurrency,
    ZeroPayment,
)
from mcrpricing.core.math.fixed_point import WAD


# =============================================================================
# FIXTURES
# =============================================================================


def capital_report(**overrides):
    """Отчёт о капитале в формате внешнего источника."""
    report = {
        "ratio_bp": 9000,
        "required_capital": 100 * WAD,
        "fund_value": 90 * WAD,
        "currency_codes": ["0x455448", "0x444149"],
        "rates": [100, 15517],
        "effective_date": 20190219,
    }
    report.update(overrides)
    return report


@pytest.fixture
def membership():
    membership = InMemoryMembership(joining_fee=2 * 10**15)
    membership.pay_joining_fee("alice", 2 * 10**15)
    membership.kyc_verdict("alice", True)
    return membership


@pytest.fixture
def tokens():
    return InMemoryTokenLedger()


def make_engine(membership, tokens, report=None):
    engine = PricingEngine(membership=membership, minter=tokens)
    engine.report_capital_state(report or capital_report())
    engine.set_growth_step(2000)
    engine.set_scaling_factor(5203349)
    return engine


@pytest.fixture
def engine(membership, tokens):
    return make_engine(membership, tokens)


# =============================================================================
# ЭТАЛОННЫЕ СЦЕНАРИИ
# =============================================================================


class TestReferenceScenarios:
    """Эталонные покупки"""

    def test_small_purchase(self, engine, tokens) -> None:
        """0.1 ETH при MCR% 90.00 → ~5.13 токена"""
        minted = engine.purchase("alice", 10**17, "ETH")

        assert round(minted / WAD, 2) == 5.13
        assert tokens.balance_of("alice") == minted

    def test_large_purchase(self, engine) -> None:
        """100 ETH при MCR% 90.00 → ~5114.54 токена"""
        minted = engine.purchase("alice", 100 * WAD, "ETH")

        assert minted / WAD == pytest.approx(5114.54, rel=1e-3)
        assert engine.current_state.ratio_bp == 19000

    def test_large_vs_small(self, membership, tokens) -> None:
        """Цена 100 ETH покупки в пределах 1% от 1000 x 0.1 ETH"""
        small = make_engine(membership, tokens).purchase("alice", 10**17, "ETH")
        large = make_engine(membership, tokens).purchase("alice", 100 * WAD, "ETH")

        assert 0.99 * small * 1000 <= large <= small * 1000

    def test_rising_capital_ratio(self, membership, tokens) -> None:
        """15 покупок по 10 ETH от MCR% 10.00: спот-цена не убывает"""
        engine = make_engine(
            membership,
            tokens,
            capital_report(
                ratio_bp=1000,
                fund_value=10 * WAD,
                currency_codes=["ETH", "DAI"],
                rates=[100, 14800],
            ),
        )

        prices = []
        for _ in range(15):
            prices.append(engine.spot_price("ETH"))
            assert engine.purchase("alice", 10 * WAD, "ETH") > 0

        assert prices == sorted(prices)
        assert prices[-1] > prices[0]
        assert engine.current_state.ratio_bp == 16000
        assert len(engine.history) == 16

    def test_purchase_receipt(self, engine) -> None:
        """Полный результат покупки"""
        receipt = engine.purchase_receipt("alice", 30 * WAD, "ETH")

        assert receipt.currency == "ETH"
        assert receipt.steps_crossed == 1
        assert receipt.new_fund_value == 120 * WAD


# =============================================================================
# ОТЧЁТЫ О КАПИТАЛЕ
# =============================================================================


class TestCapitalReporting:
    """Тесты report_capital_state"""

    def test_report_from_mapping(self, engine) -> None:
        """Hex-коды и дата YYYYMMDD"""
        state = engine.current_state

        assert state.codes() == ("ETH", "DAI")
        assert state.rate_for("DAI") == 15517
        assert state.origin == StateOrigin.REPORT

    def test_report_model(self, engine) -> None:
        """ReportInput принимается напрямую"""
        report = ReportInput(**capital_report(ratio_bp=9500, fund_value=95 * WAD))
        state = engine.report_capital_state(report)

        assert engine.current_state is state
        assert state.ratio_bp == 9500

    def test_report_replaces_derived_state(self, engine) -> None:
        """Новый отчёт замещает состояние после покупки"""
        engine.purchase("alice", WAD, "ETH")
        engine.report_capital_state(capital_report(ratio_bp=8000, fund_value=80 * WAD))

        assert engine.current_state.fund_value == 80 * WAD
        assert engine.current_step().index == 4

    def test_report_updates_rates(self, engine) -> None:
        """Курсы ledger берутся из последнего отчёта"""
        engine.report_capital_state(capital_report(rates=[100, 20000]))
        assert engine.ledger.rate_of("DAI") == 20000

    def test_stale_report(self, engine) -> None:
        """Отчёт с более ранней датой"""
        with pytest.raises(StaleReport):
            engine.report_capital_state(capital_report(effective_date=20190218))
        assert len(engine.history) == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"rates": [100]},
            {"rates": [100, 0]},
            {"currency_codes": ["ETH", "ETH"]},
            {"currency_codes": [], "rates": []},
            {"required_capital": 0},
            {"effective_date": 20190231},
            {"unexpected": 1},
        ],
    )
    def test_invalid_report(self, engine, overrides) -> None:
        """Некорректный отчёт не меняет текущее состояние"""
        before = engine.current_state

        with pytest.raises(InvalidInput):
            engine.report_capital_state(capital_report(**overrides))

        assert engine.current_state is before

    def test_missing_field(self, engine) -> None:
        report = capital_report()
        del report["fund_value"]
        with pytest.raises(InvalidInput):
            engine.report_capital_state(report)


# =============================================================================
# КАЛИБРОВКА
# =============================================================================


class TestCalibration:
    """Тесты калибровки кривой"""

    @pytest.mark.parametrize("value", [0, -5, True, "10", 1.5, None])
    def test_invalid_growth_step(self, engine, value) -> None:
        before = engine.parameters
        with pytest.raises(InvalidParameter):
            engine.set_growth_step(value)
        assert engine.parameters == before

    @pytest.mark.parametrize("value", [0, -1, False])
    def test_invalid_scaling_factor(self, engine, value) -> None:
        with pytest.raises(InvalidParameter) as exc_info:
            engine.set_scaling_factor(value)
        assert exc_info.value.reason == "invalid_parameter"

    def test_calibration_changes_price(self, engine) -> None:
        """Меньший scaling factor — выше цена"""
        before = engine.spot_price("ETH")
        engine.set_scaling_factor(1000)
        assert engine.spot_price("ETH") > before

    def test_growth_step_changes_step(self, engine) -> None:
        """Ширина ступени меняет индекс текущей ступени"""
        engine.set_growth_step(1000)
        assert engine.current_step().index == 9

    def test_calibrate_mapping(self, engine) -> None:
        params = engine.calibrate({"growth_step": 1000, "scaling_factor": 42})

        assert params.growth_step == 1000
        assert params.scaling_factor == 42
        assert engine.parameters == params

    @pytest.mark.parametrize(
        "payload", [{}, {"foo": 1}, {"growth_step": 0}, {"growth_step": True}]
    )
    def test_calibrate_invalid_mapping(self, engine, payload) -> None:
        with pytest.raises(InvalidParameter):
            engine.calibrate(payload)

    def test_calibration_logged(self, engine, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="mcrpricing.engine"):
            engine.set_growth_step(1500)
        assert "growth_step=1500" in caplog.text


# =============================================================================
# ЦЕНА
# =============================================================================


class TestPricing:
    """Тесты спот-цены, quote и текущей ступени"""

    def test_spot_price_other_currency(self, engine) -> None:
        eth_price = engine.spot_price("ETH")
        assert engine.spot_price("DAI") == eth_price * 15517 // 100

    def test_unknown_currency(self, engine) -> None:
        with pytest.raises(UnknownCurrency):
            engine.spot_price("BTC")

    def test_no_capital_state(self, membership, tokens) -> None:
        engine = PricingEngine(membership=membership, minter=tokens)

        with pytest.raises(NoCapitalState):
            engine.spot_price("ETH")

        with pytest.raises(NoCapitalState):
            engine.purchase("alice", WAD, "ETH")

    def test_current_step(self, engine) -> None:
        step = engine.current_step()

        assert step.index == 4
        assert step.floor_price == engine.spot_price("ETH")
        assert step.lower_ratio_bp <= engine.current_state.ratio_bp < step.upper_ratio_bp

    def test_quote_does_not_commit(self, engine, tokens) -> None:
        quoted = engine.quote(WAD, "DAI")

        assert quoted.minted_quantity > 0
        assert tokens.total_supply == 0
        assert len(engine.history) == 1

    def test_quote_zero(self, engine) -> None:
        with pytest.raises(ZeroPayment):
            engine.quote(0, "ETH")


# =============================================================================
# ДОПУСК И ОСТАНОВКА
# =============================================================================


class TestAdmission:
    """Тесты допуска и manual halt"""

    def test_not_eligible(self, engine, tokens) -> None:
        with pytest.raises(NotEligible):
            engine.purchase("mallory", WAD, "ETH")
        assert tokens.total_supply == 0

    def test_halt_and_resume(self, engine, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="mcrpricing.engine"):
            engine.halt_purchases()
        assert engine.purchases_halted
        assert "purchases halted" in caplog.text

        with pytest.raises(NotEligible) as exc_info:
            engine.purchase("alice", WAD, "ETH")
        assert exc_info.value.reason == "purchases_halted"

        engine.resume_purchases()
        assert engine.purchase("alice", WAD, "ETH") > 0

    def test_from_registry(self, membership, tokens) -> None:
        registry = StaticModuleRegistry({"MR": membership, "TK": tokens})
        engine = PricingEngine.from_registry(registry)
        engine.report_capital_state(capital_report())

        minted = engine.purchase("alice", 10**17, "ETH")
        assert tokens.balance_of("alice") == minted

    def test_from_registry_missing_module(self, membership) -> None:
        with pytest.raises(InvalidInput):
            PricingEngine.from_registry(StaticModuleRegistry({"MR": membership}))

    def test_purchase_from_payload(self, engine) -> None:
        minted = engine.purchase_from_payload(
            {"payer": "alice", "payment_amount": 10**17, "currency": "0x455448"}
        )
        assert round(minted / WAD, 2) == 5.13

    def test_purchase_from_invalid_payload(self, engine) -> None:
        with pytest.raises(InvalidInput):
            engine.purchase_from_payload({"payer": "alice", "payment_amount": WAD})

    def test_from_registry_wrong_module_type(self, membership, tokens) -> None:
        """Модуль под кодом не реализует нужный протокол"""
        registry = StaticModuleRegistry({"MR": tokens, "TK": tokens})

        with pytest.raises(InvalidInput) as exc_info:
            PricingEngine.from_registry(registry)
        assert exc_info.value.reason == "unknown_module"

        registry = StaticModuleRegistry({"MR": membership, "TK": membership})
        with pytest.raises(InvalidInput) as exc_info:
            PricingEngine.from_registry(registry)
        assert exc_info.value.reason == "unknown_module"

    @pytest.mark.parametrize("amount", [True, False, 1.0, "1000"])
    def test_non_integer_payment(self, engine, tokens, amount) -> None:
        """bool, float и строка не принимаются как сумма платежа"""
        with pytest.raises(InvalidInput):
            engine.purchase("alice", amount, "ETH")

        assert tokens.total_supply == 0
        assert engine.ledger.balance_of("ETH") == 0
        assert len(engine.history) == 1

    def test_halt_flag_under_lock(self, engine) -> None:
        """Флаг остановки читается согласованно с halt/resume"""
        assert engine.purchases_halted is False
        engine.halt_purchases()
        assert engine.purchases_halted is True
        engine.resume_purchases()
        assert engine.purchases_halted is False


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================


class TestInjectedCollaborators:
    """Переданные в конструктор ledger и история используются как есть"""

    def test_empty_history_is_used(self, membership, tokens) -> None:
        """Пустая история не подменяется новой"""
        history = MCRStateHistory()
        engine = PricingEngine(membership=membership, minter=tokens, history=history)

        engine.report_capital_state(capital_report())
        engine.purchase("alice", WAD, "ETH")

        assert len(history) == 2
        assert history.current is engine.current_state
        assert history.current.origin == StateOrigin.PURCHASE

    def test_empty_ledger_is_used(self, membership, tokens) -> None:
        """Новый ledger без зачислений не подменяется"""
        ledger = CapitalLedger()
        engine = PricingEngine(membership=membership, minter=tokens, ledger=ledger)

        engine.report_capital_state(capital_report())
        engine.purchase("alice", WAD, "ETH")

        assert engine.ledger is ledger
        assert ledger.balance_of("ETH") == WAD


# =============================================================================
# LEDGER И КОНКУРЕНТНОСТЬ
# =============================================================================


class TestLedgerConsistency:
    """Сохранение капитала и согласованность"""

    def test_conservation(self, engine) -> None:
        engine.purchase("alice", 3 * WAD, "ETH")
        engine.purchase("alice", 15517 * WAD, "DAI")

        assert engine.ledger.balance_of("ETH") == 3 * WAD
        assert engine.ledger.balance_of("DAI") == 15517 * WAD
        assert engine.ledger_fund_value() == 103 * WAD

    def test_ledger_capital_ratio(self, engine) -> None:
        assert engine.ledger_fund_value() == 0
        engine.purchase("alice", WAD, "ETH")
        # 1 ETH против требуемых 100 ETH = 1.00%
        assert engine.ledger_capital_ratio() == 100

    def test_concurrent_purchases(self, membership, tokens) -> None:
        """Конкурентные покупки сериализуются и не теряют капитал"""
        engine = make_engine(membership, tokens)
        amount = 13 * 10**17
        count = 40

        with ThreadPoolExecutor(max_workers=8) as pool:
            minted = list(pool.map(lambda _: engine.purchase("alice", amount, "ETH"), range(count)))

        whole = make_engine(membership, InMemoryTokenLedger()).purchase(
            "alice", amount * count, "ETH"
        )

        assert sum(minted) == tokens.total_supply
        assert len(engine.history) == count + 1
        assert engine.ledger.balance_of("ETH") == amount * count
        assert engine.current_state.fund_value == 90 * WAD + amount * count
        assert 0 <= whole - sum(minted) <= count


# =============================================================================
# SETTINGS
# =============================================================================


class TestEngineSettings:
    """Тесты конфигурации движка"""

    def test_defaults(self) -> None:
        settings = EngineSettings()
        params = settings.initial_parameters()

        assert settings.base_currency == "ETH"
        assert params.growth_step == 2000
        assert params.scaling_factor == 5203349
        assert params.base_price == 1948 * 10**13

    def test_from_mapping(self) -> None:
        settings = EngineSettings.from_mapping({"default_growth_step": 1000, "base_currency": "eth"})

        assert settings.default_growth_step == 1000
        assert settings.base_currency == "ETH"
        assert settings.to_dict()["default_growth_step"] == 1000

    def test_from_mapping_rejects_unknown_keys(self) -> None:
        with pytest.raises(jsonschema.ValidationError):
            EngineSettings.from_mapping({"unknown": 1})

    @pytest.mark.parametrize(
        "field", ["base_price", "default_growth_step", "default_scaling_factor", "max_curve_steps"]
    )
    def test_non_positive_values(self, field) -> None:
        with pytest.raises(ValueError):
            EngineSettings(**{field: 0})

    def test_settings_drive_engine(self, membership, tokens) -> None:
        settings = EngineSettings(default_growth_step=1000, max_curve_steps=3)
        engine = PricingEngine(membership=membership, minter=tokens, settings=settings)
        engine.report_capital_state(capital_report())

        assert engine.parameters.growth_step == 1000
        assert engine.current_step().index == 9
