"""Tests for the TradeStateBoard."""

import pytest

from trailtrade.models import TradeState
from trailtrade.state_board import TradeStateBoard


class TestTradeStateBoard:
    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        board = TradeStateBoard()
        assert await board.get("BTCUSDT") is None
        assert await board.get_all() == {}

    @pytest.mark.asyncio
    async def test_publish_and_get(self, make_trade_state) -> None:
        board = TradeStateBoard()
        state = make_trade_state("BTCUSDT")

        await board.publish(state)

        assert await board.get("BTCUSDT") is state

    @pytest.mark.asyncio
    async def test_publish_replaces_previous(self, make_trade_state) -> None:
        board = TradeStateBoard()
        await board.publish(make_trade_state("BTCUSDT", "100"))
        latest = make_trade_state("BTCUSDT", "101")

        await board.publish(latest)

        assert await board.get("BTCUSDT") is latest
        assert len(await board.get_all()) == 1

    @pytest.mark.asyncio
    async def test_incomplete_state_is_rejected(self, account_info) -> None:
        board = TradeStateBoard()

        with pytest.raises(ValueError, match="incomplete"):
            await board.publish(TradeState(symbol="BTCUSDT", account_info=account_info))
        assert await board.get("BTCUSDT") is None

    @pytest.mark.asyncio
    async def test_get_all_is_a_snapshot(self, make_trade_state) -> None:
        board = TradeStateBoard()
        await board.publish(make_trade_state("BTCUSDT"))

        snapshot = await board.get_all()
        await board.publish(make_trade_state("ETHUSDT"))

        assert set(snapshot) == {"BTCUSDT"}
        assert set(await board.get_all()) == {"BTCUSDT", "ETHUSDT"}
