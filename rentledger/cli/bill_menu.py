from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

import questionary
from rich.console import Console
from rich.table import Table

from rentledger.constants import LINE_TYPE_LABELS, STATUS_LABELS, format_period
from rentledger.errors import BillingError
from rentledger.models import format_vnd, parse_vnd
from rentledger.models.audit_log import AuditEventType
from rentledger.models.bill import (
    ApprovalFilter,
    Bill,
    BillFilter,
    BillStatus,
    BillSummary,
    StatusFilter,
)
from rentledger.models.lease import Building
from rentledger.models.line_item import CustomLine, LineItem, MeteredLine, QuantityLine, RentLine
from rentledger.services.bill_state import state_of
from rentledger.services.bill_summary import filter_bills, summarize_bills
from rentledger.services.termination_service import today_local
from rentledger.settings import settings

if TYPE_CHECKING:
    from rentledger.cli.app import Services

console = Console()

BACK = "Quay lại"


def _parse_period(value: str) -> tuple[int, int] | None:
    """'03/2025' -> (3, 2025)"""
    parts = (value or "").strip().split("/")
    if len(parts) != 2:
        return None
    try:
        period, year = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not 1 <= period <= 12 or year < 2000:
        return None
    return period, year


def _ask_period() -> tuple[int, int] | None:
    today = today_local()
    default = format_period(today.month, today.year)
    while True:
        value = questionary.text("Tháng (MM/YYYY):", default=default).ask()
        if value is None:
            return None
        parsed = _parse_period(value)
        if parsed is not None:
            return parsed
        console.print("[red]Định dạng không hợp lệ. Dùng MM/YYYY (vd: 03/2025).[/red]")


def _select_building(services: Services) -> Building | None:
    buildings = services.buildings.list_all()
    if not buildings:
        console.print("[yellow]Chưa có tòa nhà nào.[/yellow]")
        return None
    choices = {f"{b.code} - {b.name}" if b.name else b.code: b for b in buildings}
    choice = questionary.select("Chọn tòa nhà:", choices=list(choices.keys()) + [BACK]).ask()
    if choice is None or choice == BACK:
        return None
    return choices[choice]


def _line_quantity(line: LineItem) -> str:
    if isinstance(line, MeteredLine):
        new = "-" if line.new_reading is None else str(line.new_reading)
        return f"{line.old_reading} → {new} ({line.quantity})"
    quantity = getattr(line, "quantity", None)
    return str(quantity) if quantity is not None else ""


def show_bill_detail(bill: Bill) -> None:
    table = Table()
    table.add_column("Khoản")
    table.add_column("Loại", justify="center")
    table.add_column("SL / Chỉ số", justify="right")
    table.add_column("Đơn giá", justify="right")
    table.add_column("Thành tiền", justify="right")

    for line in bill.services:
        table.add_row(
            line.name,
            LINE_TYPE_LABELS.get(line.type, line.type),
            _line_quantity(line),
            format_vnd(line.unit_price),
            format_vnd(line.amount),
        )

    console.print(table)
    console.print(f"  [bold]Tổng cộng: {format_vnd(bill.total_amount)}đ[/bold]")
    console.print(f"  Đã thu: {format_vnd(bill.paid_amount)}đ  Còn lại: {format_vnd(bill.remaining_amount)}đ")
    console.print(f"  Hạn thanh toán: {bill.payment_due_date.strftime('%d/%m/%Y')}")
    approved = " (đã duyệt)" if bill.approved else ""
    console.print(f"  Trạng thái: {STATUS_LABELS.get(bill.status.value, bill.status.value)}{approved}")
    if bill.paid_date:
        console.print(f"  [green]Ngày thu: {bill.paid_date.strftime('%d/%m/%Y')}[/green]")


def _bills_table(bills: list[Bill], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Phòng")
    table.add_column("Khách hàng")
    table.add_column("Tổng", justify="right")
    table.add_column("Đã thu", justify="right")
    table.add_column("Trạng thái")
    for b in bills:
        status = STATUS_LABELS.get(b.status.value, b.status.value)
        if not b.approved:
            status = f"{status} (chờ duyệt)"
        table.add_row(
            str(b.id),
            b.room,
            b.customer_name,
            format_vnd(b.total_amount),
            format_vnd(b.paid_amount),
            status,
        )
    return table


STATUS_FILTER_CHOICES = {
    "Tất cả": None,
    "Chưa thu": StatusFilter.UNPAID,
    "Đã thu": StatusFilter.PAID,
    "Thanh lý": StatusFilter.TERMINATION,
}

APPROVAL_FILTER_CHOICES = {
    "Tất cả": None,
    "Đã duyệt": ApprovalFilter.APPROVED,
    "Chờ duyệt": ApprovalFilter.UNAPPROVED,
}


def _print_summary(summary: BillSummary) -> None:
    console.print(
        f"  Tổng: {summary.total}  Chưa thu: {summary.unpaid}  Thu một phần: {summary.partial}  "
        f"Đã thu: {summary.paid}  Thanh lý: {summary.termination}"
    )
    console.print(
        f"  Phải thu: {format_vnd(summary.billed_amount)}đ  Đã thu: {format_vnd(summary.collected_amount)}đ  "
        f"Còn lại: {format_vnd(summary.pending_amount)}đ"
    )


def _ask_filter(current: BillFilter) -> BillFilter | None:
    status = questionary.select("Trạng thái:", choices=list(STATUS_FILTER_CHOICES.keys())).ask()
    if status is None:
        return None
    approval = questionary.select("Duyệt:", choices=list(APPROVAL_FILTER_CHOICES.keys())).ask()
    if approval is None:
        return None
    search = questionary.text("Tìm (số HĐ, khách hàng, tòa, phòng):", default=current.search).ask()
    if search is None:
        return None
    return BillFilter(
        status=STATUS_FILTER_CHOICES[status],
        approval=APPROVAL_FILTER_CHOICES[approval],
        search=search.strip(),
    )


def list_bills_menu(services: Services) -> None:
    building = _select_building(services)
    if building is None or building.id is None:
        return
    period = _ask_period()
    if period is None:
        return

    services.cache.load(services.bills.list_bills(building.id, period=period[0], year=period[1]))
    criteria = BillFilter()

    while True:
        all_bills = services.cache.all()
        if not all_bills:
            console.print("[yellow]Không có hóa đơn nào trong tháng này.[/yellow]")
            return
        bills = filter_bills(all_bills, criteria, {building.id: building.code})

        title = f"Hóa đơn {building.code} - {format_period(*period)}"
        if criteria.is_active:
            title += f" (lọc: {len(bills)}/{len(all_bills)})"
        console.print()
        console.print(_bills_table(bills, title))
        _print_summary(summarize_bills(bills))

        bill_choices = {f"{b.id} - Phòng {b.room} - {format_vnd(b.total_amount)}đ": b for b in bills}
        choices = list(bill_choices.keys()) + ["Lọc hóa đơn"]
        if bills:
            choices.append("Thao tác hàng loạt")
        choice = questionary.select("Chọn hóa đơn:", choices=choices + [BACK]).ask()

        if choice is None or choice == BACK:
            return
        if choice == "Lọc hóa đơn":
            criteria = _ask_filter(criteria) or criteria
            continue
        if choice == "Thao tác hàng loạt":
            bulk_menu(services, bills)
            continue

        bill = services.bills.get_bill(bill_choices[choice].id)
        if bill is None:
            console.print("[red]Không tìm thấy hóa đơn.[/red]")
            services.cache.remove(bill_choices[choice].id)
            continue
        _bill_detail_menu(bill, services)


def _actions_for(bill: Bill) -> list[str]:
    if not bill.approved:
        if bill.is_termination_bill:
            return ["Duyệt", "Xóa hóa đơn", BACK]
        return ["Duyệt", "Sửa hóa đơn", "Xóa hóa đơn", BACK]
    actions = []
    if bill.status == BillStatus.PAID:
        actions.append("Hủy thu tiền")
    elif not bill.is_termination_bill:
        actions += ["Thu đủ", "Thu một phần"]
    if bill.paid_amount == 0:
        actions.append("Bỏ duyệt")
    actions.append(BACK)
    return actions


def _bill_detail_menu(bill: Bill, services: Services) -> None:
    while True:
        console.print()
        console.print(
            f"[bold cyan]Hóa đơn {bill.bill_number} - Phòng {bill.room} - "
            f"{format_period(bill.period, bill.year)}[/bold cyan] [dim]{state_of(bill).value}[/dim]"
        )
        show_bill_detail(bill)
        console.print()

        action = questionary.select("Thao tác:", choices=_actions_for(bill)).ask()
        if action is None or action == BACK:
            return

        previous = bill
        try:
            if action == "Duyệt":
                bill = services.bills.approve(bill.id)
                services.audit.record_bill(AuditEventType.BILL_APPROVE, bill, previous)
                console.print("[green]Đã duyệt hóa đơn.[/green]")
            elif action == "Bỏ duyệt":
                bill = services.bills.unapprove(bill.id)
                services.audit.record_bill(AuditEventType.BILL_UNAPPROVE, bill, previous)
                console.print("[yellow]Đã bỏ duyệt hóa đơn.[/yellow]")
            elif action == "Sửa hóa đơn":
                filled = _fill_lines(bill.services, edit=True)
                if filled is None:
                    continue
                due_date = _ask_int("Hạn thanh toán (ngày trong tháng):", default=bill.due_date, minimum=1)
                if due_date is None:
                    continue
                bill = services.bills.update_bill(bill.id, services=filled, due_date=due_date)
                services.audit.record_bill(AuditEventType.BILL_UPDATE, bill, previous)
                console.print("[green]Đã cập nhật hóa đơn.[/green]")
            elif action == "Thu đủ":
                bill = services.payments.confirm_full(bill.id)
                services.audit.record_bill(AuditEventType.BILL_COLLECT, bill, previous)
                console.print("[green]Đã thu đủ tiền.[/green]")
            elif action == "Thu một phần":
                amount = _ask_amount(bill)
                if amount is None:
                    continue
                bill = services.payments.confirm(bill.id, amount)
                services.audit.record_bill(AuditEventType.BILL_COLLECT, bill, previous)
                console.print(f"[green]Đã thu {format_vnd(amount)}đ.[/green]")
            elif action == "Hủy thu tiền":
                confirm = questionary.confirm("Hủy toàn bộ tiền đã thu của hóa đơn này?", default=False).ask()
                if not confirm:
                    continue
                bill = services.payments.uncollect(bill.id)
                services.audit.record_bill(AuditEventType.BILL_UNCOLLECT, bill, previous)
                console.print("[yellow]Đã hủy thu tiền.[/yellow]")
            elif action == "Xóa hóa đơn":
                confirm = questionary.confirm("Bạn có chắc muốn xóa hóa đơn này?", default=False).ask()
                if not confirm:
                    continue
                services.bills.delete_bill(bill.id)
                services.audit.record_bill(AuditEventType.BILL_DELETE, bill)
                console.print("[green]Đã xóa hóa đơn.[/green]")
                return
        except BillingError as exc:
            console.print(f"[red]{exc}[/red]")


def _ask_amount(bill: Bill) -> int | None:
    remaining = bill.remaining_amount
    while True:
        value = questionary.text(
            f"Số tiền thu (còn lại {format_vnd(remaining)}đ):",
            default=str(remaining),
        ).ask()
        if value is None:
            return None
        amount = parse_vnd(value)
        if amount is not None and 0 < amount <= remaining:
            return amount
        console.print("[red]Số tiền không hợp lệ. Vui lòng thử lại.[/red]")


BULK_ACTIONS = {
    "Duyệt": "bulk_approve",
    "Bỏ duyệt": "bulk_unapprove",
    "Thu đủ": "bulk_collect",
    "Hủy thu tiền": "bulk_uncollect",
    "Xóa": "bulk_delete",
}


def bulk_menu(services: Services, bills: list[Bill]) -> None:
    selected = questionary.checkbox(
        "Chọn hóa đơn:",
        choices=[questionary.Choice(f"{b.id} - Phòng {b.room}", value=b.id) for b in bills],
    ).ask()
    if not selected:
        return
    services.bulk.selection.replace(selected)

    action = questionary.select("Thao tác hàng loạt:", choices=list(BULK_ACTIONS.keys()) + [BACK]).ask()
    if action is None or action == BACK:
        services.bulk.selection.clear()
        return

    try:
        result = getattr(services.bulk, BULK_ACTIONS[action])()
    except BillingError as exc:
        console.print(f"[red]{exc}[/red]")
        return

    services.audit.record_bulk(result)
    if action == "Xóa":
        for bill_id in result.succeeded:
            services.cache.remove(bill_id)

    console.print(
        f"[green]Thành công: {len(result.succeeded)}[/green]  "
        f"[dim]Bỏ qua: {len(result.skipped)}[/dim]"
    )
    if result.aborted:
        console.print(f"[red]Lỗi tại hóa đơn {result.failed[0]}: {result.error}[/red]")
        if result.not_attempted:
            console.print(f"[yellow]Chưa xử lý: {', '.join(str(i) for i in result.not_attempted)}[/yellow]")


def _ask_int(message: str, default: int | None = None, minimum: int = 0) -> int | None:
    while True:
        value = questionary.text(message, default="" if default is None else str(default)).ask()
        if value is None:
            return None
        value = value.strip()
        if value.isdigit() and int(value) >= minimum:
            return int(value)
        console.print("[red]Giá trị không hợp lệ. Vui lòng thử lại.[/red]")


def _ask_price(name: str, unit: str = "", default: int = 0) -> int | None:
    suffix = f"/{unit}" if unit else ""
    while True:
        value = questionary.text(f"  Đơn giá '{name}' (đ{suffix}):", default=str(default) if default else "").ask()
        if value is None:
            return None
        price = parse_vnd(value)
        if price is not None:
            return price
        console.print("[red]Số tiền không hợp lệ. Vui lòng thử lại.[/red]")


def _parse_date(value: str) -> date | None:
    """'15/03/2025' -> date(2025, 3, 15)"""
    try:
        return datetime.strptime((value or "").strip(), "%d/%m/%Y").date()
    except ValueError:
        return None


def _ask_date(message: str, default: date) -> date | None:
    while True:
        value = questionary.text(message, default=default.strftime("%d/%m/%Y")).ask()
        if value is None:
            return None
        parsed = _parse_date(value)
        if parsed is not None:
            return parsed
        console.print("[red]Định dạng không hợp lệ. Dùng DD/MM/YYYY.[/red]")


def _ask_date_range(line: RentLine) -> tuple[date, date] | None:
    while True:
        start = _ask_date("  Từ ngày (DD/MM/YYYY):", line.from_date)
        if start is None:
            return None
        end = _ask_date("  Đến ngày (DD/MM/YYYY):", line.to_date)
        if end is None:
            return None
        if start <= end:
            return start, end
        console.print("[red]Ngày kết thúc phải sau ngày bắt đầu.[/red]")


def _ask_custom_lines() -> list[CustomLine] | None:
    lines: list[CustomLine] = []
    while questionary.confirm("Thêm khoản khác?", default=False).ask():
        name = questionary.text("  Tên khoản:").ask()
        if name is None:
            return None
        if not name.strip():
            continue
        price = _ask_price(name.strip())
        if price is None:
            return None
        quantity = _ask_int("  Số lượng:", default=1, minimum=1)
        if quantity is None:
            return None
        lines.append(CustomLine(name=name.strip(), unit_price=price, quantity=quantity))
    return lines


def _fill_lines(lines: list[LineItem], edit: bool = False) -> list[LineItem] | None:
    """Prompt for the values a drafted or edited bill still needs.

    Unit prices are asked for zero-priced lines, or for every line when
    editing. Returns ``None`` when the user cancels.
    """
    filled: list[LineItem] = []
    for line in lines:
        update: dict = {}
        if isinstance(line, (RentLine, MeteredLine, QuantityLine, CustomLine)) and (edit or not line.unit_price):
            price = _ask_price(line.name, line.unit, line.unit_price)
            if price is None:
                return None
            update["unit_price"] = price

        if isinstance(line, RentLine):
            if line.from_date and line.to_date:
                if questionary.confirm(f"  Tính '{line.name}' theo số ngày ở?", default=False).ask():
                    dates = _ask_date_range(line)
                    if dates is None:
                        return None
                    update["from_date"], update["to_date"] = dates
        elif isinstance(line, MeteredLine):
            reading = _ask_int(
                f"  Chỉ số mới '{line.name}' (cũ: {line.old_reading}):",
                default=line.new_reading if edit else None,
                minimum=line.old_reading,
            )
            if reading is None:
                return None
            update["new_reading"] = reading
        elif isinstance(line, (QuantityLine, CustomLine)):
            quantity = _ask_int(f"  Số lượng '{line.name}':", default=line.quantity)
            if quantity is None:
                return None
            update["quantity"] = quantity
        else:
            console.print(f"  [dim]{line.name}:[/dim] {format_vnd(line.amount)}đ")
        filled.append(line.model_copy(update=update))

    extra = _ask_custom_lines()
    if extra is None:
        return None
    return filled + extra


def create_bill_menu(services: Services) -> None:
    console.print()
    console.print("[bold]Tạo hóa đơn[/bold]", style="cyan")

    building = _select_building(services)
    if building is None or building.id is None:
        return
    room = questionary.text("Phòng:").ask()
    if not room:
        return
    period = _ask_period()
    if period is None:
        return

    contract = services.contracts.find_for_room(building.id, room)
    if contract is None:
        console.print("[yellow]Phòng chưa có hợp đồng, nhập đơn giá cho từng khoản.[/yellow]")
        customer_id = _ask_int("Mã khách hàng:", minimum=1)
        if customer_id is None:
            return
    else:
        customer_id = contract.customer_id

    try:
        lines = services.bills.draft_line_items(building.id, room, *period)
        filled = _fill_lines(lines)
        if filled is None:
            return
        due_date = _ask_int("Hạn thanh toán (ngày trong tháng):", default=settings.default_due_day, minimum=1)
        bill = services.bills.create_bill(
            building_id=building.id,
            room=room,
            customer_id=customer_id,
            period=period[0],
            year=period[1],
            bill_date=today_local(),
            services=filled,
            due_date=due_date,
        )
    except BillingError as exc:
        console.print(f"[red]{exc}[/red]")
        return

    services.audit.record_bill(AuditEventType.BILL_CREATE, bill)
    console.print()
    console.print("[green bold]Đã tạo hóa đơn![/green bold]")
    show_bill_detail(bill)
