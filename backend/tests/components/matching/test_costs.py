import pytest

import jobmatch.components.matching.costs as costs


def test_cost_uses_default_sonnet_prices():
    assert costs.compute_claude_cost_usd(1000, 400) == pytest.approx(0.009)
    assert costs.compute_claude_cost_usd(1_000_000, 0) == pytest.approx(3.0)
    assert costs.compute_claude_cost_usd(0, 1_000_000) == pytest.approx(15.0)


def test_cost_of_zero_tokens_is_zero():
    assert costs.compute_claude_cost_usd(0, 0) == 0.0
    assert costs.compute_claude_cost_usd() == 0.0


def test_cost_is_linear_in_each_token_count():
    base = costs.compute_claude_cost_usd(1200, 300)
    assert costs.compute_claude_cost_usd(2400, 300) - base == pytest.approx(1200 * 3.0 / 1_000_000)
    assert costs.compute_claude_cost_usd(1200, 600) - base == pytest.approx(300 * 15.0 / 1_000_000)


def test_cost_rejects_negative_token_counts():
    with pytest.raises(ValueError):
        costs.compute_claude_cost_usd(-1, 10)
    with pytest.raises(ValueError):
        costs.compute_claude_cost_usd(10, -1)


def test_cost_follows_configured_prices(monkeypatch):
    monkeypatch.setattr(costs.settings, "CLAUDE_INPUT_COST_PER_MILLION_USD", 1.0)
    monkeypatch.setattr(costs.settings, "CLAUDE_OUTPUT_COST_PER_MILLION_USD", 5.0)

    assert costs.compute_claude_cost_usd(1_000_000, 1_000_000) == pytest.approx(6.0)


def test_build_api_usage_reports_tokens_and_cost():
    usage = costs.build_api_usage(1000, 400)

    assert usage.input_tokens == 1000
    assert usage.output_tokens == 400
    assert usage.tokens_used == 1400
    assert usage.cost_usd == pytest.approx(0.009)
    assert f"${usage.cost_usd:.4f} USD" == "$0.0090 USD"


def test_cost_matches_per_token_prices_exactly():
    for input_tokens, output_tokens in [(1, 0), (0, 1), (1000, 400), (123_457, 98_765), (10 ** 9, 10 ** 9)]:
        expected = input_tokens * 3e-6 + output_tokens * 15e-6
        assert costs.compute_claude_cost_usd(input_tokens, output_tokens) == expected
