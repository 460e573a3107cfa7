from __future__ import annotations

from typing import TYPE_CHECKING

import questionary
from rich.console import Console
from rich.table import Table

from rentledger.errors import BillingError
from rentledger.models import format_vnd
from rentledger.models.audit_log import AuditEventType
from rentledger.models.lease import Contract, ContractStatus

if TYPE_CHECKING:
    from rentledger.cli.app import Services

console = Console()

CONTRACT_STATUS_LABELS = {
    ContractStatus.ACTIVE: "Đang thuê",
    ContractStatus.EXPIRING: "Sắp hết hạn",
    ContractStatus.EXPIRED: "Hết hạn",
    ContractStatus.TERMINATED: "Đã thanh lý",
}


def _contracts_table(contracts: list[Contract]) -> Table:
    table = Table(title="Hợp đồng")
    table.add_column("#", style="dim")
    table.add_column("Tòa nhà")
    table.add_column("Phòng")
    table.add_column("Giá thuê", justify="right")
    table.add_column("Hết hạn")
    table.add_column("Trạng thái")
    for c in contracts:
        table.add_row(
            str(c.id),
            str(c.building_id),
            c.room,
            format_vnd(c.rent_price),
            c.end_date.strftime("%d/%m/%Y"),
            CONTRACT_STATUS_LABELS.get(c.status, c.status.value),
        )
    return table


def contracts_menu(services: Services) -> None:
    contracts = services.contracts.list_all()
    if not contracts:
        console.print("[yellow]Chưa có hợp đồng nào.[/yellow]")
        return

    console.print()
    console.print(_contracts_table(contracts))

    contract_choices = {f"{c.id} - Phòng {c.room}": c for c in contracts}
    choice = questionary.select("Chọn hợp đồng:", choices=list(contract_choices.keys()) + ["Quay lại"]).ask()
    if choice is None or choice == "Quay lại":
        return
    contract = contract_choices[choice]

    if contract.status == ContractStatus.TERMINATED:
        action = "Hủy thanh lý"
        event_type = AuditEventType.CONTRACT_UNTERMINATE
    else:
        action = "Thanh lý hợp đồng"
        event_type = AuditEventType.CONTRACT_TERMINATE
    if not questionary.confirm(f"{action} phòng {contract.room}?", default=False).ask():
        return

    try:
        if event_type == AuditEventType.CONTRACT_TERMINATE:
            updated, bill = services.terminations.terminate_contract(contract.id)
            console.print(f"[green]Đã thanh lý hợp đồng. Hóa đơn thanh lý #{bill.id} chờ duyệt.[/green]")
        else:
            updated = services.terminations.unterminate_contract(contract.id)
            label = CONTRACT_STATUS_LABELS.get(updated.status, updated.status.value)
            console.print(f"[yellow]Đã hủy thanh lý. Trạng thái: {label}[/yellow]")
    except BillingError as exc:
        console.print(f"[red]{exc}[/red]")
        return

    services.audit.record_contract(event_type, updated, contract)
