from unittest.mock import MagicMock, patch

import pytest


class TestBuildServices:
    @patch("rentledger.cli.app.get_push_sender")
    @patch("rentledger.cli.app.get_audit_log_repository")
    @patch("rentledger.cli.app.get_contract_repository")
    @patch("rentledger.cli.app.get_customer_repository")
    @patch("rentledger.cli.app.get_building_repository")
    @patch("rentledger.cli.app.get_category_repository")
    @patch("rentledger.cli.app.get_transaction_repository")
    @patch("rentledger.cli.app.get_notification_repository")
    @patch("rentledger.cli.app.get_bill_repository")
    def test_wires_services(self, mock_bill_repo, *_mocks):
        from rentledger.bill_cache import BillCache
        from rentledger.cli.app import Services, _build_services
        from rentledger.services.bill_service import BillService
        from rentledger.services.bulk_service import BulkCoordinator
        from rentledger.services.payment_service import PaymentSession
        from rentledger.services.termination_service import TerminationService

        services = _build_services()

        assert isinstance(services, Services)
        assert isinstance(services.bills, BillService)
        assert isinstance(services.payments, PaymentSession)
        assert isinstance(services.terminations, TerminationService)
        assert isinstance(services.bulk, BulkCoordinator)
        assert isinstance(services.cache, BillCache)
        assert services.bills.bill_repo is mock_bill_repo.return_value
        assert services.terminations.bill_service is services.bills
        assert services.bulk.payment_service is services.payments.payments

    @patch("rentledger.cli.app.get_push_sender")
    @patch("rentledger.cli.app.get_audit_log_repository")
    @patch("rentledger.cli.app.get_contract_repository")
    @patch("rentledger.cli.app.get_customer_repository")
    @patch("rentledger.cli.app.get_building_repository")
    @patch("rentledger.cli.app.get_category_repository")
    @patch("rentledger.cli.app.get_transaction_repository")
    @patch("rentledger.cli.app.get_notification_repository")
    @patch("rentledger.cli.app.get_bill_repository")
    def test_cache_follows_service_events(self, *_mocks):
        from rentledger.cli.app import _build_services
        from rentledger.events import BillDeleted

        services = _build_services()
        services.cache.upsert(MagicMock(id=4))
        services.bills.event_bus.publish(BillDeleted.create(4))
        assert services.cache.get(4) is None


class TestMainMenu:
    @patch("rentledger.cli.app._build_services")
    @patch("rentledger.cli.app.questionary")
    def test_exit_immediately(self, mock_q, mock_build):
        from rentledger.cli.app import main_menu

        mock_q.select.return_value.ask.return_value = "Thoát"
        main_menu()
        mock_q.select.return_value.ask.assert_called_once()

    @patch("rentledger.cli.app._build_services")
    @patch("rentledger.cli.app.questionary")
    def test_none_exits(self, mock_q, mock_build):
        from rentledger.cli.app import main_menu

        mock_q.select.return_value.ask.return_value = None
        main_menu()

    @patch("rentledger.cli.app._build_services")
    @patch("rentledger.cli.app.questionary")
    @patch("rentledger.cli.app.list_bills_menu")
    @patch("rentledger.cli.app.create_bill_menu")
    @patch("rentledger.cli.app.contracts_menu")
    def test_dispatch(self, mock_contracts, mock_create, mock_list, mock_q, mock_build):
        from rentledger.cli.app import main_menu

        mock_q.select.return_value.ask.side_effect = ["Danh sách hóa đơn", "Tạo hóa đơn", "Hợp đồng", "Thoát"]
        main_menu()

        services = mock_build.return_value
        mock_list.assert_called_once_with(services)
        mock_create.assert_called_once_with(services)
        mock_contracts.assert_called_once_with(services)


class TestMain:
    @patch("rentledger.__main__.close_db")
    @patch("rentledger.__main__.main_menu")
    @patch("rentledger.__main__.initialize_db")
    @patch("rentledger.__main__.configure_logging")
    def test_startup_order(self, mock_configure, mock_init, mock_menu, mock_close):
        from rentledger.__main__ import main

        manager = MagicMock()
        manager.attach_mock(mock_configure, "configure")
        manager.attach_mock(mock_init, "init")
        manager.attach_mock(mock_menu, "menu")
        manager.attach_mock(mock_close, "close")

        main()

        assert [c[0] for c in manager.mock_calls] == ["configure", "init", "menu", "close"]

    @patch("rentledger.__main__.close_db")
    @patch("rentledger.__main__.main_menu", side_effect=KeyboardInterrupt)
    @patch("rentledger.__main__.initialize_db")
    @patch("rentledger.__main__.configure_logging")
    def test_closes_db_on_interrupt(self, mock_configure, mock_init, mock_menu, mock_close):
        from rentledger.__main__ import main

        with pytest.raises(KeyboardInterrupt):
            main()
        mock_close.assert_called_once_with()
