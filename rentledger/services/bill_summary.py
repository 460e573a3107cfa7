"""Filtering and totals for bill lists."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from rentledger.models.bill import ApprovalFilter, Bill, BillFilter, BillSummary, StatusFilter


def _matches_status(bill: Bill, status: StatusFilter) -> bool:
    if status == StatusFilter.TERMINATION:
        return bill.is_termination_bill
    return not bill.is_termination_bill and bill.status.value == status.value


def _matches_search(bill: Bill, needle: str, building_codes: Mapping[int, str]) -> bool:
    haystack = (
        bill.bill_number,
        bill.customer_name,
        building_codes.get(bill.building_id, ""),
        bill.room,
    )
    return any(needle in value.lower() for value in haystack)


def filter_bills(
    bills: Iterable[Bill],
    criteria: BillFilter,
    building_codes: Mapping[int, str] | None = None,
) -> list[Bill]:
    """Bills matching every set field of ``criteria``, order kept.

    ``building_codes`` maps building id to code for the search field.
    """
    needle = criteria.search.strip().lower()
    codes = building_codes or {}
    result = []
    for bill in bills:
        if criteria.status is not None and not _matches_status(bill, criteria.status):
            continue
        if criteria.approval == ApprovalFilter.APPROVED and not bill.approved:
            continue
        if criteria.approval == ApprovalFilter.UNAPPROVED and bill.approved:
            continue
        if needle and not _matches_search(bill, needle, codes):
            continue
        result.append(bill)
    return result


def summarize_bills(bills: Iterable[Bill]) -> BillSummary:
    summary = BillSummary()
    for bill in bills:
        summary.total += 1
        # Termination bills are counted but carry no money.
        if bill.is_termination_bill:
            summary.termination += 1
            continue
        summary.billed_amount += bill.total_amount
        summary.collected_amount += bill.paid_amount
        if bill.paid_amount == 0:
            summary.unpaid += 1
        elif bill.paid_amount >= bill.total_amount:
            summary.paid += 1
        else:
            summary.partial += 1
    return summary
