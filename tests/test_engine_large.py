import sys
import os
import io
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import TransitionResult
from payments_engine import PaymentsEngine

CLIENTS_PER_GROUP = 200


def tx(client_id: int, n: int) -> int:
    return client_id * 10 + n


def group(index: int) -> range:
    start = index * CLIENTS_PER_GROUP + 1
    return range(start, start + CLIENTS_PER_GROUP)


class TestPaymentsEngineLargeScale:
    def setup_method(self):
        self.rows = ["type, client, tx, amount"]

    def add(self, kind, client_id, n, amount=""):
        self.rows.append(f"{kind}, {client_id}, {tx(client_id, n)}, {amount}")

    def run(self, tmp_path):
        csv_file = tmp_path / "ledger.csv"
        csv_file.write_text('\n'.join(self.rows))
        engine = PaymentsEngine()
        return engine, engine.process_file(str(csv_file))

    def test_dispute_rules_across_many_clients(self, tmp_path):
        """Each group of clients runs one dispute sequence, interleaved phase by phase."""
        withdrawal_disputes, redisputes, double_resolves, late_chargebacks, rejections = (group(i) for i in range(5))

        # phase 1: funding
        for client_id in withdrawal_disputes:
            self.add("deposit", client_id, 1, "100")
            self.add("deposit", client_id, 2, "200.5")
            self.add("withdrawal", client_id, 3, "250")
        for client_id in redisputes:
            self.add("deposit", client_id, 1, "100")
        for client_id in double_resolves:
            self.add("deposit", client_id, 1, "75.25")
        for client_id in late_chargebacks:
            self.add("deposit", client_id, 1, "100")
            self.add("deposit", client_id, 2, "40")
        for client_id in rejections:
            self.add("deposit", client_id, 1, "0")
            self.add("withdrawal", client_id, 2, "10")
            self.add("deposit", client_id, 3, "10")

        # phase 2: disputes
        for client_id in withdrawal_disputes:
            self.add("dispute", client_id, 3)
        for client_id in redisputes:
            self.add("dispute", client_id, 1)
            self.add("dispute", client_id, 1)
        for client_id in double_resolves:
            self.add("dispute", client_id, 1)
        for client_id in late_chargebacks:
            self.add("dispute", client_id, 1)
        for client_id in rejections:
            self.add("dispute", client_id, 9)

        # phase 3: outcomes
        for client_id in double_resolves:
            self.add("resolve", client_id, 1)
            self.add("resolve", client_id, 1)
        for client_id in late_chargebacks:
            self.add("resolve", client_id, 1)
            self.add("chargeback", client_id, 1)
            self.add("deposit", client_id, 4, "1000")
        for client_id in rejections:
            self.add("resolve", client_id, 3)
            self.add("chargeback", client_id, 3)

        engine, accounts = self.run(tmp_path)

        assert len(accounts) == 5 * CLIENTS_PER_GROUP

        # 300.5 - 250 = 50.5 available, then the 250 withdrawal is held
        for client_id in withdrawal_disputes:
            account = accounts[client_id]
            assert account.available == Decimal("-199.5"), f"Client {client_id}"
            assert account.held == Decimal("250")
            assert account.total == Decimal("50.5")
            assert account.locked is False

        for client_id in redisputes:
            account = accounts[client_id]
            assert account.available == Decimal("-100"), f"Client {client_id}"
            assert account.held == Decimal("200")
            assert account.total == Decimal("100")

        for client_id in double_resolves:
            account = accounts[client_id]
            assert account.available == Decimal("150.5"), f"Client {client_id}"
            assert account.held == Decimal("-75.25")
            assert account.total == Decimal("75.25")
            assert account.get_transaction(tx(client_id, 1)).under_dispute is True

        # the deposit after the chargeback is skipped
        for client_id in late_chargebacks:
            account = accounts[client_id]
            assert account.available == Decimal("140"), f"Client {client_id}"
            assert account.held == Decimal("-100")
            assert account.total == Decimal("40")
            assert account.locked is True
            assert account.get_transaction(tx(client_id, 4)) is None

        for client_id in rejections:
            account = accounts[client_id]
            assert account.available == Decimal("10"), f"Client {client_id}"
            assert account.held == Decimal("0")
            assert account.locked is False

        by_reason = engine.stats.rejections_by_reason
        assert by_reason[TransitionResult.INVALID_AMOUNT] == CLIENTS_PER_GROUP
        assert by_reason[TransitionResult.INSUFFICIENT_FUNDS] == CLIENTS_PER_GROUP
        assert by_reason[TransitionResult.TRANSACTION_NOT_FOUND] == CLIENTS_PER_GROUP
        assert by_reason[TransitionResult.NOT_DISPUTED] == 2 * CLIENTS_PER_GROUP
        assert engine.stats.rejected == 5 * CLIENTS_PER_GROUP
        assert engine.stats.skipped_locked == CLIENTS_PER_GROUP
        assert engine.stats.applied == 17 * CLIENTS_PER_GROUP

    def test_output_totals_match_balances(self, tmp_path):
        """Every rendered row satisfies total == available + held, including negative balances."""
        for client_id in range(1, 1001):
            self.add("deposit", client_id, 1, f"{client_id}.0001")
            self.add("withdrawal", client_id, 2, "0.5")
            if client_id % 3 == 0:
                self.add("dispute", client_id, 1)
            if client_id % 7 == 0:
                self.add("dispute", client_id, 2)
                self.add("chargeback", client_id, 2)

        engine, accounts = self.run(tmp_path)
        out = io.StringIO()
        engine.write_accounts(accounts, out)

        lines = out.getvalue().splitlines()
        assert lines[0] == "client,available,held,total,locked"
        assert len(lines) == 1001

        for line in lines[1:]:
            client, available, held, total, locked = line.split(",")
            assert Decimal(available) + Decimal(held) == Decimal(total), line
            assert locked == ("true" if int(client) % 7 == 0 else "false")

        # deposit 21.0001, withdraw 0.5, dispute both, charge back the withdrawal
        assert lines[21] == "21,-1,21.0001,20.0001,true"
