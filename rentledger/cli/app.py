from __future__ import annotations

from typing import NamedTuple

import questionary
from rich.console import Console

from rentledger.bill_cache import BillCache
from rentledger.cli.bill_menu import create_bill_menu, list_bills_menu
from rentledger.cli.contract_menu import contracts_menu
from rentledger.event_bus import EventBus
from rentledger.push.factory import get_push_sender
from rentledger.repositories.base import BuildingRepository, ContractRepository
from rentledger.repositories.factory import (
    get_audit_log_repository,
    get_bill_repository,
    get_building_repository,
    get_category_repository,
    get_contract_repository,
    get_customer_repository,
    get_notification_repository,
    get_transaction_repository,
)
from rentledger.services.audit_service import AuditService
from rentledger.services.bill_service import BillService
from rentledger.services.bulk_service import BulkCoordinator
from rentledger.services.notification_service import NotificationService
from rentledger.services.payment_service import PaymentService, PaymentSession
from rentledger.services.termination_service import TerminationService

console = Console()


class Services(NamedTuple):
    bills: BillService
    payments: PaymentSession
    terminations: TerminationService
    bulk: BulkCoordinator
    audit: AuditService
    buildings: BuildingRepository
    contracts: ContractRepository
    cache: BillCache


def _build_services() -> Services:
    bill_repo = get_bill_repository()
    building_repo = get_building_repository()
    customer_repo = get_customer_repository()
    contract_repo = get_contract_repository()

    event_bus = EventBus()
    cache = BillCache()
    cache.attach(event_bus)

    notifications = NotificationService(get_notification_repository(), get_push_sender())
    bill_service = BillService(bill_repo, contract_repo, building_repo, customer_repo, notifications, event_bus)
    payment_service = PaymentService(
        bill_repo,
        get_transaction_repository(),
        get_category_repository(),
        building_repo,
        customer_repo,
        notifications,
        event_bus,
    )
    termination_service = TerminationService(
        bill_repo, contract_repo, building_repo, customer_repo, bill_service, event_bus
    )
    return Services(
        bills=bill_service,
        payments=PaymentSession(payment_service),
        terminations=termination_service,
        bulk=BulkCoordinator(bill_service, payment_service),
        audit=AuditService(get_audit_log_repository()),
        buildings=building_repo,
        contracts=contract_repo,
        cache=cache,
    )


def main_menu() -> None:
    services = _build_services()

    console.print()
    console.print("[bold]Quản lý hóa đơn phòng trọ[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select(
            "Menu chính",
            choices=[
                "Danh sách hóa đơn",
                "Tạo hóa đơn",
                "Hợp đồng",
                "Thoát",
            ],
        ).ask()

        if choice is None or choice == "Thoát":
            console.print("[bold]Tạm biệt![/bold]")
            break
        elif choice == "Danh sách hóa đơn":
            list_bills_menu(services)
        elif choice == "Tạo hóa đơn":
            create_bill_menu(services)
        elif choice == "Hợp đồng":
            contracts_menu(services)
