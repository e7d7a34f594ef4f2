"""Tests for pumpwatch/analysis/volume_monitor.py — activity sampling."""
import pytest
from unittest.mock import MagicMock

from pumpwatch.analysis.volume_monitor import VolumeMonitor, native_delta


def _tx(vault, pre, post, index=1):
    """Transaction where `vault` (a token account) moved from pre to post SOL."""
    return {
        'account_keys': ['payer', vault, 'program'],
        'pre_balances': [0, 0, 0],
        'post_balances': [0, 0, 0],
        'pre_token_balances': [{'accountIndex': index, 'uiTokenAmount': {'uiAmount': pre}}],
        'post_token_balances': [{'accountIndex': index, 'uiTokenAmount': {'uiAmount': post}}],
    }


class TestNativeDelta:

    def test_token_balance_increase(self):
        assert native_delta(_tx("vault", 10.0, 12.5), "vault") == pytest.approx(2.5)

    def test_token_balance_decrease(self):
        assert native_delta(_tx("vault", 10.0, 7.0), "vault") == pytest.approx(-3.0)

    def test_account_not_in_tx(self):
        assert native_delta(_tx("vault", 10.0, 12.0), "other") == 0.0

    def test_lamport_fallback(self):
        tx = {
            'account_keys': ['payer', 'pool'],
            'pre_balances': [0, 2_000_000_000],
            'post_balances': [0, 3_500_000_000],
            'pre_token_balances': [],
            'post_token_balances': [],
        }
        assert native_delta(tx, 'pool') == pytest.approx(1.5)


class TestSample:

    def test_first_sample_processes_all_signatures(self, mock_rpc, pool_factory):
        pool = pool_factory(native=100.0)
        mock_rpc.get_signatures_for_address.return_value = ["s1", "s2", "s3"]
        mock_rpc.get_transaction.side_effect = [
            _tx("quoteVault1", 100.0, 102.0),
            _tx("quoteVault1", 102.0, 101.0),
            None,  # unavailable → skipped
        ]
        monitor = VolumeMonitor(mock_rpc, signature_limit=20, threshold_percent=5.0)

        update = monitor.sample(pool)

        assert update.new_transactions == 2
        assert update.buy_volume == pytest.approx(2.0)
        assert update.sell_volume == pytest.approx(1.0)
        assert update.significant is False
        state = monitor.get_state(pool.address)
        assert state.last_signature_count == 3
        assert state.last_liquidity == 100.0
        assert state.last_checked > 0
        mock_rpc.get_signatures_for_address.assert_called_once_with(pool.address, 20)

    def test_no_new_signatures_leaves_volume(self, mock_rpc, pool_factory):
        pool = pool_factory(native=100.0)
        mock_rpc.get_signatures_for_address.return_value = ["s1"]
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 100.0, 101.0)
        monitor = VolumeMonitor(mock_rpc)
        monitor.sample(pool)
        state = monitor.get_state(pool.address)
        state.last_checked = 0
        buy, sell = state.buy_volume, state.sell_volume

        mock_rpc.get_transaction.reset_mock()
        update = monitor.sample(pool)

        assert update.new_transactions == 0
        assert state.buy_volume == buy
        assert state.sell_volume == sell
        assert state.last_checked > 0
        mock_rpc.get_transaction.assert_not_called()

    def test_negative_new_count_skipped(self, mock_rpc, pool_factory):
        pool = pool_factory()
        monitor = VolumeMonitor(mock_rpc)
        monitor.activate(pool.address).last_signature_count = 10
        mock_rpc.get_signatures_for_address.return_value = ["s1", "s2"]
        update = monitor.sample(pool)
        assert update.new_transactions == 0
        assert monitor.get_state(pool.address).last_signature_count == 2

    def test_only_newest_signatures_fetched(self, mock_rpc, pool_factory):
        pool = pool_factory()
        monitor = VolumeMonitor(mock_rpc)
        monitor.activate(pool.address).last_signature_count = 2
        mock_rpc.get_signatures_for_address.return_value = ["new1", "old1", "old2"]
        mock_rpc.get_transaction.return_value = None
        monitor.sample(pool)
        mock_rpc.get_transaction.assert_called_once_with("new1")

    def test_volume_accumulates(self, mock_rpc, pool_factory):
        pool = pool_factory(native=1000.0)
        monitor = VolumeMonitor(mock_rpc)
        mock_rpc.get_signatures_for_address.return_value = ["a"]
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 0.0, 3.0)
        monitor.sample(pool)
        mock_rpc.get_signatures_for_address.return_value = ["b", "a"]
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 3.0, 5.0)
        monitor.sample(pool)
        assert monitor.get_state(pool.address).buy_volume == pytest.approx(5.0)

    def test_significant_triggers_callback(self, mock_rpc, pool_factory):
        pool = pool_factory(native=10.0)
        callback = MagicMock()
        monitor = VolumeMonitor(mock_rpc, threshold_percent=5.0, on_significant=callback)
        mock_rpc.get_signatures_for_address.return_value = ["s1"]
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 10.0, 9.0)  # 1 SOL > 0.5

        update = monitor.sample(pool)

        assert update.significant is True
        callback.assert_called_once_with(pool.address, 0.0, pytest.approx(1.0))

    def test_transaction_exception_skipped(self, pool_factory):
        rpc = MagicMock()
        rpc.get_signatures_for_address.return_value = ["s1", "s2"]
        rpc.get_transaction.side_effect = [RuntimeError("boom"), _tx("quoteVault1", 1.0, 2.0)]
        monitor = VolumeMonitor(rpc)
        update = monitor.sample(pool_factory(native=1000.0))
        assert update.new_transactions == 1
        assert update.buy_volume == pytest.approx(1.0)

    def test_native_base_pool_uses_base_vault(self, mock_rpc, pool_factory):
        pool = pool_factory(is_native_base=True, native=1000.0)
        monitor = VolumeMonitor(mock_rpc)
        mock_rpc.get_signatures_for_address.return_value = ["s1"]
        mock_rpc.get_transaction.return_value = _tx("baseVault1", 5.0, 8.0)
        assert monitor.sample(pool).buy_volume == pytest.approx(3.0)

    def test_failed_signature_fetch_keeps_count(self, mock_rpc, pool_factory):
        pool = pool_factory(native=1000.0)
        monitor = VolumeMonitor(mock_rpc)
        signatures = ["s1", "s2", "s3", "s4", "s5"]
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 0.0, 1.0)
        mock_rpc.get_signatures_for_address.return_value = signatures
        monitor.sample(pool)
        state = monitor.get_state(pool.address)
        assert state.buy_volume == pytest.approx(5.0)

        mock_rpc.get_signatures_for_address.return_value = None
        mock_rpc.get_transaction.reset_mock()
        state.last_checked = 0
        update = monitor.sample(pool)
        assert update.new_transactions == 0
        assert state.last_signature_count == 5
        assert state.last_checked > 0
        mock_rpc.get_transaction.assert_not_called()

        mock_rpc.get_signatures_for_address.return_value = signatures
        monitor.sample(pool)
        assert state.buy_volume == pytest.approx(5.0)
        mock_rpc.get_transaction.assert_not_called()

    def test_failed_fetch_is_not_significant(self, mock_rpc, pool_factory):
        callback = MagicMock()
        monitor = VolumeMonitor(mock_rpc, on_significant=callback)
        mock_rpc.get_signatures_for_address.return_value = None
        update = monitor.sample(pool_factory(native=10.0))
        assert update.significant is False
        callback.assert_not_called()

    def test_results_land_in_current_state(self, mock_rpc, pool_factory):
        pool = pool_factory(native=1000.0)
        monitor = VolumeMonitor(mock_rpc)
        stale = monitor.activate(pool.address)

        def reset_during_fetch(address, limit):
            monitor.deactivate(address)
            monitor.activate(address)
            return ["s1"]

        mock_rpc.get_signatures_for_address.side_effect = reset_during_fetch
        mock_rpc.get_transaction.return_value = _tx("quoteVault1", 0.0, 2.0)
        update = monitor.sample(pool)

        current = monitor.get_state(pool.address)
        assert current is not stale
        assert current.buy_volume == pytest.approx(2.0)
        assert current.last_signature_count == 1
        assert stale.buy_volume == 0.0
        assert update.state is current


class TestActivation:

    def test_activate_and_deactivate(self, mock_rpc):
        monitor = VolumeMonitor(mock_rpc)
        monitor.activate("p")
        assert monitor.is_active("p")
        assert monitor.active_pools() == ["p"]
        assert monitor.deactivate("p") is True
        assert not monitor.is_active("p")
        assert monitor.active_pools() == []

    def test_deactivate_unknown(self, mock_rpc):
        assert VolumeMonitor(mock_rpc).deactivate("nope") is False

    def test_reactivation_resets_volume(self, mock_rpc):
        monitor = VolumeMonitor(mock_rpc)
        state = monitor.activate("p")
        state.buy_volume = 5.0
        monitor.deactivate("p")
        fresh = monitor.activate("p")
        assert fresh.buy_volume == 0.0
        assert fresh.is_active

    def test_activate_active_pool_keeps_state(self, mock_rpc):
        monitor = VolumeMonitor(mock_rpc)
        state = monitor.activate("p")
        state.sell_volume = 2.0
        assert monitor.activate("p").sell_volume == 2.0

    def test_sampled_pool_not_pinned(self, mock_rpc, pool_factory):
        monitor = VolumeMonitor(mock_rpc)
        monitor.sample(pool_factory())
        assert monitor.active_pools() == []
        assert "pool1" in monitor.states()


class TestVolumeStats:

    def test_unknown_pool(self, mock_rpc):
        assert VolumeMonitor(mock_rpc).volume_stats("x") is None

    def test_sum_of_sides(self, mock_rpc):
        monitor = VolumeMonitor(mock_rpc)
        state = monitor.activate("p")
        state.buy_volume = 2.0
        state.sell_volume = 3.0
        assert monitor.volume_stats("p") == {'volume24h': 5.0}
