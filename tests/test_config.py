"""Tests for settings and the command line parser."""

import pytest

from suiroute.__main__ import build_parser
from suiroute.config import NETWORK_API_URLS, Settings, SuiNetwork


class TestSettings:
    """Tests for Settings."""

    def test_network_from_environment(self):
        settings = Settings()

        assert settings.network == SuiNetwork.LOCAL
        assert settings.debug is True
        assert settings.get_api_url() == NETWORK_API_URLS[SuiNetwork.LOCAL]

    def test_explicit_network(self):
        settings = Settings(network=SuiNetwork.TESTNET)

        assert settings.get_api_url() == NETWORK_API_URLS[SuiNetwork.TESTNET]
        assert settings.get_api_url(SuiNetwork.MAINNET) == NETWORK_API_URLS[SuiNetwork.MAINNET]

    def test_api_url_override(self):
        settings = Settings(api_url="http://router.internal/api/")

        assert settings.get_api_url() == "http://router.internal/api"
        assert settings.get_api_url(SuiNetwork.MAINNET) == "http://router.internal/api"

    def test_invalid_default_slippage(self):
        with pytest.raises(ValueError):
            Settings(default_slippage=1.0)

    def test_safe_dict(self, settings):
        safe = settings.get_safe_dict()

        assert safe["network"] == "LOCAL"
        assert safe["timeouts"]["lock"] == 1.0


class TestParser:
    """Tests for the CLI argument parser."""

    def test_quote_amount_in(self):
        args = build_parser().parse_args(
            ["--network", "TESTNET", "quote", "0x2::sui::SUI", "0x1::usdc::USDC", "--amount-in", "100"]
        )

        assert args.network == "TESTNET"
        assert args.command == "quote"
        assert args.amount_in == 100
        assert args.amount_out is None

    def test_quote_amounts_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["quote", "a", "b", "--amount-in", "1", "--amount-out", "1"]
            )

    def test_coins_search_default(self):
        args = build_parser().parse_args(["coins"])

        assert args.search == ""

    def test_unknown_network(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--network", "MOONNET", "volume"])
