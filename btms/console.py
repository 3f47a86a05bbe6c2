"""
Console Menu Module

Text menu front end over the transaction orchestrator. Reads choices and
values from the terminal, renders results, and keeps looping until the
user picks Exit or input runs out.
"""

import os
from typing import Callable, List, Optional

from .config import BtmsConfig, get_config
from .errors import BankingError
from .logging_config import get_logger, setup_logging
from .records import AccountRecord
from .storage import RecordStore
from .transactions import (
    OperationResult, TransactionOrchestrator, parse_account_no, parse_amount
)


RULE = "=" * 50
THIN_RULE = "-" * 50
EXIT_CHOICE = 8

MENU_LINES = [
    RULE,
    "  BANKING TRANSACTION MANAGEMENT SYSTEM (BTMS)",
    RULE,
    "1. Create New Account",
    "2. View Account Details",
    "3. Deposit Amount",
    "4. Withdraw Amount",
    "5. Transfer Funds",
    "6. Delete Account",
    "7. View All Accounts",
    "8. Exit",
    THIN_RULE,
]


def format_account(account: AccountRecord) -> str:
    """Render one account as a details block"""
    return "\n".join([
        "-" * 32,
        f"Account No: {account.account_no}",
        f"Name      : {account.name}",
        f"Balance   : {account.balance:.2f}",
        "-" * 32,
    ])


def format_account_table(accounts: List[AccountRecord]) -> str:
    """Render every account as a table with a total line"""
    lines = [
        RULE,
        "           ALL CUSTOMER ACCOUNT RECORDS",
        RULE,
        f"ACC NO | {'NAME':<30} | BALANCE",
        THIN_RULE,
    ]
    for account in accounts:
        lines.append(f"{account.account_no:6d} | {account.name:<30} | {account.balance:.2f}")
    lines.append(THIN_RULE)
    lines.append(f"Total Accounts: {len(accounts)}")
    return "\n".join(lines)


def clear_terminal() -> None:
    os.system("cls" if os.name == "nt" else "clear")


class Console:
    """
    Interactive menu loop

    Input and output are injectable so the loop can be driven by a
    script; screen clearing and the pause prompt can be turned off.
    """

    def __init__(
        self,
        orchestrator: TransactionOrchestrator,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        clear_screen: bool = True,
        pause_after_action: bool = True
    ):
        self.orchestrator = orchestrator
        self.input_func = input_func
        self.output = output
        self.clear_screen = clear_screen
        self.pause_after_action = pause_after_action
        self.logger = get_logger("btms.console")
        self._actions = {
            1: self.create_account,
            2: self.view_account,
            3: self.deposit,
            4: self.withdraw,
            5: self.transfer,
            6: self.delete_account,
            7: self.view_all,
        }

    def ask(self, prompt: str) -> str:
        return self.input_func(prompt)

    def show_error(self, message: str) -> None:
        self.output(f"\nERROR: {message}")

    def show_result(self, result: OperationResult) -> None:
        if result.success:
            self.output(f"\n{result.message}")
        else:
            self.show_error(result.message)

    def read_choice(self) -> Optional[int]:
        """Show the menu and read a choice, None if it is not a number"""
        if self.clear_screen:
            clear_terminal()
        for line in MENU_LINES:
            self.output(line)
        text = self.ask("Enter your choice: ")
        try:
            return int(text.strip())
        except ValueError:
            return None

    def run(self) -> None:
        """Loop over the menu until Exit is chosen or input ends"""
        self.logger.debug("Console session started")
        while True:
            try:
                choice = self.read_choice()
                if choice == EXIT_CHOICE:
                    self.output("\nThank you for using the BTMS. Exiting...")
                    break

                action = self._actions.get(choice)
                if action is None:
                    self.output("\nInvalid choice. Please try again.")
                else:
                    try:
                        action()
                    except BankingError as e:
                        self.show_error(e.message)

                if self.pause_after_action:
                    self.ask("\nPress Enter to continue...")
            except EOFError:
                self.output("")
                break
        self.logger.debug("Console session ended")

    def create_account(self) -> None:
        self.output("\n--- CREATE NEW ACCOUNT ---")
        account_no = parse_account_no(self.ask("Enter Account Number (e.g., 1001): "))
        name = self.ask("Enter Name: ").rstrip("\n")
        available = self.orchestrator.check_available(account_no)
        if not available.success:
            self.show_error(available.message)
            return
        amount = parse_amount(self.ask("Enter Initial Deposit Amount: "))
        self.show_result(self.orchestrator.create_account(account_no, name, amount))

    def view_account(self) -> None:
        self.output("\n--- VIEW ACCOUNT DETAILS ---")
        account_no = parse_account_no(self.ask("Enter Account Number: "))
        result = self.orchestrator.view_account(account_no)
        if result.success:
            self.output("\nAccount Found:")
            self.output(format_account(result.account))
        else:
            self.show_error(result.message)

    def deposit(self) -> None:
        self.output("\n--- DEPOSIT FUNDS ---")
        account_no = parse_account_no(self.ask("Enter Account Number: "))
        amount = parse_amount(self.ask("Enter Amount to Deposit: "))
        self.show_result(self.orchestrator.deposit(account_no, amount))

    def withdraw(self) -> None:
        self.output("\n--- WITHDRAW FUNDS ---")
        account_no = parse_account_no(self.ask("Enter Account Number: "))
        amount = parse_amount(self.ask("Enter Amount to Withdraw: "))
        self.show_result(self.orchestrator.withdraw(account_no, amount))

    def transfer(self) -> None:
        self.output("\n--- FUND TRANSFER ---")
        source_no = parse_account_no(self.ask("Enter Source Account Number: "))
        dest_no = parse_account_no(self.ask("Enter Destination Account Number: "))
        amount = parse_amount(self.ask("Enter Amount to Transfer: "))
        self.show_result(self.orchestrator.transfer(source_no, dest_no, amount))

    def delete_account(self) -> None:
        self.output("\n--- DELETE ACCOUNT ---")
        account_no = parse_account_no(self.ask("Enter Account Number to Delete: "))
        self.show_result(self.orchestrator.delete_account(account_no))

    def view_all(self) -> None:
        result = self.orchestrator.view_all()
        if not result.success:
            self.show_error(result.message)
        elif not result.accounts:
            self.output(f"\n{result.message}")
        else:
            self.output("")
            self.output(format_account_table(result.accounts))


def build_console(settings: Optional[BtmsConfig] = None, **kwargs) -> Console:
    """Wire a console to the store named in the configuration"""
    settings = settings or get_config()
    store = RecordStore(settings.store_path, settings.temp_path)
    kwargs.setdefault("clear_screen", settings.clear_screen)
    kwargs.setdefault("pause_after_action", settings.pause_after_action)
    return Console(TransactionOrchestrator(store), **kwargs)


def main() -> int:
    """Console script entry point"""
    settings = get_config()
    setup_logging(settings.log_level, "btms", settings.log_format, settings.log_file)
    try:
        build_console(settings).run()
    except KeyboardInterrupt:
        print("\nExiting...")
    return 0
