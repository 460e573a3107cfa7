from rentledger.cli.app import main_menu
from rentledger.db import close_db, initialize_db
from rentledger.logging import configure_logging


def main() -> None:
    configure_logging()
    initialize_db()
    try:
        main_menu()
    finally:
        close_db()


if __name__ == "__main__":
    main()
