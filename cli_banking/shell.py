"""
Interactive Banking Shell

Reads one command at a time, gathers the answers each command needs,
forwards them to the Ledger and renders the status line plus the single
outcome message. Commands are case-insensitive. The shell threads the
Session value through every ledger call.
"""

import sys
from typing import Callable, Dict, Optional, TextIO

from .ledger import COMMANDS_HELP, DEPOSIT, WITHDRAW, Ledger
from .logging_config import get_logger
from .money import format_money
from .prompts import Prompter
from .session import Outcome, Session

CLEAR_SCREEN = "\033[H\033[2J"
COMMAND_PROMPT = "> "


class BankShell:
    """Command dispatcher and display for one banking process"""

    def __init__(
        self,
        ledger: Ledger,
        prompter: Prompter,
        out: Optional[TextIO] = None,
        currency_symbol: str = "$",
        clear_screen: bool = True
    ):
        self.ledger = ledger
        self.prompter = prompter
        self.out = out or sys.stdout
        self.currency_symbol = currency_symbol
        self.clear_screen = clear_screen
        self.session = Session.logged_out()
        self.running = True
        self.logger = get_logger("cli_banking.shell")

        self._commands: Dict[str, Callable[[], None]] = {
            "HELP": self._help,
            "LOGIN": self._login,
            "LOGOUT": self._logout,
            "REGISTER": self._register,
            "CHANGE PASSWORD": self._change_password,
            "WITHDRAW": lambda: self._transaction(WITHDRAW),
            "DEPOSIT": lambda: self._transaction(DEPOSIT),
            "TRANSFER": self._transfer,
            "BALANCE": self._balance,
            "SAVE": self._save,
            "EXIT": self._exit,
            "RESET": self._reset,
        }

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def status_line(self) -> str:
        account = self.ledger.current_account(self.session)
        if account is None:
            return "[Not logged in]"
        balance = format_money(account.balance, self.currency_symbol)
        return f"[Logged in: {account.id}, Current balance: {balance}]"

    def render(self) -> None:
        """Clear the screen, print the status line and consume the pending message"""
        if self.clear_screen:
            self.out.write(CLEAR_SCREEN)
        self.out.write(self.status_line() + "\n\n")
        message = self.ledger.consume_message()
        if message:
            self.out.write(message + "\n\n")
        self.out.flush()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def process_command(self, command: str) -> bool:
        """Run one command; returns False once the shell should stop"""
        name = " ".join(command.split()).upper()
        handler = self._commands.get(name)
        if handler is None:
            self.ledger.post_message("Please enter a valid command.")
            return self.running

        self.logger.debug(f"Processing command {name}")
        handler()
        return self.running

    def run(self) -> None:
        """Main loop: render, read, dispatch until EXIT"""
        while self.running:
            self.render()
            self.process_command(self.prompter.read_line(COMMAND_PROMPT))

        farewell = self.ledger.consume_message()
        if farewell:
            self.out.write(farewell + "\n")
            self.out.flush()

    def _apply(self, outcome: Optional[Outcome]) -> None:
        if outcome is not None:
            self.session = outcome.session

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _help(self) -> None:
        self.ledger.post_message(COMMANDS_HELP)

    def _login(self) -> None:
        denied = self.ledger.reject_if_logged_in(self.session)
        if denied:
            return self._apply(denied)

        account_id = self.prompter.read_line("Enter ID: ")
        password = self.prompter.read_secret("Enter password: ") if account_id else ""
        self._apply(self.ledger.login(self.session, account_id, password))

    def _logout(self) -> None:
        self._apply(self.ledger.logout(self.session))

    def _register(self) -> None:
        account_id = self.prompter.read_line("Enter a unique ID: ")
        if self.ledger.check_new_id(account_id):
            return self._apply(self.ledger.register(self.session, account_id, ""))

        password = self.prompter.read_secret("Enter password: ")
        self._apply(self.ledger.register(self.session, account_id, password))

    def _change_password(self) -> None:
        denied = self.ledger.require_session(self.session, "change your password",
                                             action="change_password")
        if denied:
            return self._apply(denied)

        old_password = self.prompter.read_secret("Enter old password: ")
        account = self.ledger.current_account(self.session)
        if not account.check_password(old_password):
            return self._apply(self.ledger.change_password(self.session, old_password, ""))

        new_password = self.prompter.read_secret("Enter new password: ")
        self._apply(self.ledger.change_password(self.session, old_password, new_password))

    def _transaction(self, kind: str) -> None:
        denied = self.ledger.require_session(self.session, kind)
        if denied:
            return self._apply(denied)

        amount = self.prompter.read_line(f"Enter amount to {kind}: ")
        if kind == WITHDRAW:
            self._apply(self.ledger.withdraw(self.session, amount, self.prompter))
        else:
            self._apply(self.ledger.deposit(self.session, amount, self.prompter))

    def _transfer(self) -> None:
        denied = self.ledger.require_session(self.session, "transfer")
        if denied:
            return self._apply(denied)

        recipient_id = self.prompter.read_line("Enter ID to transfer to: ")
        if self.ledger.find_account(recipient_id) is None:
            return self._apply(self.ledger.transfer(self.session, recipient_id, "", self.prompter))

        amount = self.prompter.read_line("Enter amount to transfer: ")
        self._apply(self.ledger.transfer(self.session, recipient_id, amount, self.prompter))

    def _balance(self) -> None:
        denied = self.ledger.require_session(self.session, "view your balance", action="balance")
        if denied:
            return self._apply(denied)

        account = self.ledger.current_account(self.session)
        balance = format_money(account.balance, self.currency_symbol)
        self.ledger.post_message(f"Current balance: {balance}")

    def _save(self) -> None:
        self.ledger.save()
        self.ledger.post_message("Account data saved.")

    def _exit(self) -> None:
        self.ledger.save()
        self.session = Session.logged_out()
        self.ledger.post_message("Goodbye.")
        self.running = False

    def _reset(self) -> None:
        self._apply(self.ledger.reset(self.session, self.prompter))
