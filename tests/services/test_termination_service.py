from datetime import date

import pytest

from rentledger.errors import BillLocked, BillValidationError, ContractNotFound
from rentledger.models.bill import BillStatus
from rentledger.models.lease import ContractStatus
from rentledger.models.line_item import LineType
from rentledger.services.bill_state import check_invariants
from rentledger.services.termination_service import contract_status_from_end_date


class TestContractStatusFromEndDate:
    @pytest.mark.parametrize(
        ("end_date", "expected"),
        [
            (date(2025, 12, 31), ContractStatus.ACTIVE),
            (date(2025, 7, 1), ContractStatus.EXPIRING),
            (date(2025, 6, 1), ContractStatus.EXPIRING),
            (date(2025, 5, 31), ContractStatus.EXPIRED),
        ],
    )
    def test_status(self, end_date, expected):
        assert contract_status_from_end_date(end_date, today=date(2025, 6, 1)) == expected


class TestTerminate:
    def test_creates_zero_bill(self, ledger, recorded_events):
        contract, bill = ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))

        assert contract.status == ContractStatus.TERMINATED
        assert contract.termination_bill_id == bill.id
        assert contract.terminated_at is not None

        assert bill.is_termination_bill is True
        assert bill.total_amount == 0
        assert bill.approved is False
        assert bill.contract_id == ledger.contract.id
        assert (bill.period, bill.year) == (6, 2025)
        assert len(bill.services) == 1
        assert bill.services[0].type == LineType.TERMINATION
        assert bill.services[0].name == "Thanh lý hợp đồng"
        assert bill.services[0].from_date == date(2025, 6, 15)
        check_invariants(bill)

        assert [type(e).__name__ for e in recorded_events] == ["BillCreated", "ContractStatusChanged"]

    def test_already_terminated(self, ledger):
        ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))
        with pytest.raises(BillValidationError):
            ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 16))

    def test_missing_contract(self, ledger):
        with pytest.raises(ContractNotFound):
            ledger.terminations.terminate_contract(404)

    def test_approve_marks_terminated(self, ledger):
        _, bill = ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))

        approved = ledger.bills.approve(bill.id)
        assert approved.status == BillStatus.TERMINATED
        check_invariants(approved)

        unapproved = ledger.bills.unapprove(bill.id)
        assert unapproved.status == BillStatus.UNPAID
        check_invariants(unapproved)


class TestUndoTermination:
    def test_deleting_bill_restores_expiring_contract(self, ledger, sample_contract):
        contract = ledger.contract_repo.create(
            sample_contract(
                building_id=ledger.building.id,
                customer_id=ledger.customer.id,
                room="102",
                end_date=date(2025, 6, 25),
            )
        )
        _, bill = ledger.terminations.terminate_contract(contract.id, today=date(2025, 6, 15))

        ledger.bills.delete_bill(bill.id, today=date(2025, 6, 15))

        restored = ledger.contract_repo.get_by_id(contract.id)
        assert restored.status == ContractStatus.EXPIRING
        assert restored.termination_bill_id is None
        assert restored.terminated_at is None
        assert ledger.bills.get_bill(bill.id) is None

    def test_unterminate(self, ledger, recorded_events):
        _, bill = ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))

        contract = ledger.terminations.unterminate_contract(ledger.contract.id, today=date(2025, 6, 15))

        assert contract.status == ContractStatus.ACTIVE
        assert ledger.bills.get_bill(bill.id) is None
        assert type(recorded_events[-1]).__name__ == "ContractStatusChanged"

    def test_unterminate_with_past_end_date(self, ledger):
        ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))
        contract = ledger.terminations.unterminate_contract(ledger.contract.id, today=date(2026, 1, 5))
        assert contract.status == ContractStatus.EXPIRED

    def test_unterminate_blocked_by_approved_bill(self, ledger):
        _, bill = ledger.terminations.terminate_contract(ledger.contract.id, today=date(2025, 6, 15))
        ledger.bills.approve(bill.id)

        with pytest.raises(BillLocked):
            ledger.terminations.unterminate_contract(ledger.contract.id, today=date(2025, 6, 15))
        assert ledger.contract_repo.get_by_id(ledger.contract.id).status == ContractStatus.TERMINATED

    def test_unterminate_active_contract(self, ledger):
        with pytest.raises(BillValidationError):
            ledger.terminations.unterminate_contract(ledger.contract.id)

    def test_unterminate_without_bill_on_file(self, ledger):
        ledger.contract_repo.update_status(ledger.contract.id, ContractStatus.TERMINATED)
        contract = ledger.terminations.unterminate_contract(ledger.contract.id, today=date(2025, 6, 15))
        assert contract.status == ContractStatus.ACTIVE
