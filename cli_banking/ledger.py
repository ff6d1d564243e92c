"""
Ledger Module

The in-memory account set plus the authentication, authorization and
transaction protocol. Every operation takes the caller's Session and
returns an Outcome carrying the session to continue with and exactly one
human-readable message.

Recoverable failures (bad input, wrong password, insufficient balance,
unauthorized reset) come back as outcomes with state unchanged. Fatal
failures (credential corruption, persistence errors, a closed console)
propagate as FatalBankingError.
"""

import re
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from .accounts import Account
from .config import BankConfig
from .encryption import CredentialVault, create_credential_vault
from .logging_config import get_logger, log_action
from .money import fit_balance, parse_amount, ZERO
from .prompts import Prompter
from .session import Outcome, Session
from .storage import AccountStore, CsvAccountStore

# Ids and passwords: no whitespace, nothing outside [A-Za-z0-9 ]
CREDENTIAL_PATTERN = re.compile(r"[A-Za-z0-9]+")

WITHDRAW = "withdraw"
DEPOSIT = "deposit"

CONFIRM_TRANSACTION_PROMPT = "Enter password to confirm transaction: "
CONFIRM_RESET_PASSWORD_PROMPT = "Enter password to reset ALL data: "

COMMANDS_HELP = """HELP: Outputs this help string
LOGIN: Log in using valid ID and password
LOGOUT: Log out of current user
REGISTER: Register for an account using valid ID and password
CHANGE PASSWORD: Allows current user to change password
WITHDRAW: Withdraws a valid amount from account
DEPOSIT: Deposits a valid amount to account
TRANSFER: Transfers a valid amount to another account
BALANCE: Shows the current balance
SAVE: Saves all account data
EXIT: Saves and ends the banking process
RESET: Clears all data in banking system (Admin only)"""


def is_valid_credential(value: str) -> bool:
    """Check an id or password against the allowed character class"""
    return bool(value) and CREDENTIAL_PATTERN.fullmatch(value) is not None


class Ledger:
    """
    Bank core: owns the accounts, never the session

    A session passed in is honoured only while its account is still part
    of the account set; otherwise it is treated as logged out.
    """

    def __init__(
        self,
        store: AccountStore,
        vault: Optional[CredentialVault] = None,
        admin_id: str = "admin",
        admin_password: str = "admin",
        reset_confirm_token: str = "Y"
    ):
        self.store = store
        self.vault = vault or CredentialVault()
        self.admin_id = admin_id
        self.reset_confirm_token = reset_confirm_token
        self.logger = get_logger("cli_banking.ledger")
        self._last_message = ""

        self._accounts: List[Account] = list(store.load())
        self._ensure_admin(admin_password)

    @classmethod
    def from_config(cls, config: BankConfig, store: Optional[AccountStore] = None,
                    vault: Optional[CredentialVault] = None) -> 'Ledger':
        """Build a ledger, vault and CSV store from configuration"""
        vault = vault or create_credential_vault(config.cipher)
        if store is None:
            store = CsvAccountStore(config.accounts_file, vault=vault)
        return cls(
            store,
            vault=vault,
            admin_id=config.admin_id,
            admin_password=config.admin_default_password,
            reset_confirm_token=config.reset_confirm_token
        )

    def _ensure_admin(self, admin_password: str) -> None:
        if self.find_account(self.admin_id) is None:
            self._accounts.append(Account.create(self.admin_id, admin_password, vault=self.vault))
            log_action(self.logger, "info", "Created missing admin account",
                       account_id=self.admin_id, action="bootstrap")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return tuple(self._accounts)

    def find_account(self, account_id: str) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def current_account(self, session: Session) -> Optional[Account]:
        """Account behind the session, if the session is still valid"""
        if session.account is None:
            return None
        for account in self._accounts:
            if account is session.account:
                return account
        return None

    @property
    def last_message(self) -> str:
        return self._last_message

    def post_message(self, message: str) -> None:
        """Record a message produced outside the ledger protocol"""
        self._last_message = message

    def consume_message(self) -> str:
        """Return the pending message once, then clear it"""
        message, self._last_message = self._last_message, ""
        return message

    def check_new_id(self, account_id: str) -> Optional[str]:
        """Registration problem with an id, or None if it is usable"""
        if not account_id:
            return "Registration cancelled."
        if not is_valid_credential(account_id):
            return "Invalid ID."
        if self.find_account(account_id) is not None:
            return "ID taken."
        return None

    def require_session(self, session: Session, description: str,
                        action: Optional[str] = None) -> Optional[Outcome]:
        """Must-login outcome when there is no valid session, else None"""
        if self.current_account(session) is None:
            return self._finish(Session.logged_out(), f"You must login to {description}.",
                                action=action or description)
        return None

    def reject_if_logged_in(self, session: Session) -> Optional[Outcome]:
        if self.current_account(session) is not None:
            return self._finish(session, "Already logged in.", action="login")
        return None

    def _finish(self, session: Session, message: str, success: bool = False,
                action: Optional[str] = None, account_id: Optional[str] = None) -> Outcome:
        self._last_message = message
        log_action(self.logger, "info", message,
                   account_id=account_id or session.account_id, action=action)
        return Outcome(session=session, message=message, success=success)

    # ------------------------------------------------------------------
    # Authentication protocol
    # ------------------------------------------------------------------

    def login(self, session: Session, account_id: str, password: str) -> Outcome:
        """Start a session; unknown id and wrong password fail identically"""
        denied = self.reject_if_logged_in(session)
        if denied:
            return denied

        if not account_id or not password:
            return self._finish(Session.logged_out(), "Login cancelled.", action="login")

        account = self.find_account(account_id)
        if account is None or not account.check_password(password):
            return self._finish(Session.logged_out(), "Login failed.", action="login")

        return self._finish(Session.active(account), "Login successful.",
                            success=True, action="login")

    def logout(self, session: Session) -> Outcome:
        return self._finish(Session.logged_out(), "Logged out.", success=True,
                            action="logout", account_id=session.account_id)

    def register(self, session: Session, account_id: str, password: str) -> Outcome:
        """Create an account with balance 0; allowed whether logged in or not"""
        problem = self.check_new_id(account_id)
        if problem:
            return self._finish(session, problem, action="register")

        if not password:
            return self._finish(session, "Registration cancelled.", action="register")
        if not is_valid_credential(password):
            return self._finish(session, "Invalid password.", action="register")

        self._accounts.append(Account.create(account_id, password, ZERO, vault=self.vault))
        return self._finish(session, "Registration successful.", success=True,
                            action="register", account_id=account_id)

    def change_password(self, session: Session, old_password: str, new_password: str) -> Outcome:
        denied = self.require_session(session, "change your password", action="change_password")
        if denied:
            return denied
        account = self.current_account(session)

        if not account.check_password(old_password):
            return self._finish(session, "Wrong password. Operation cancelled.",
                                action="change_password")
        if not new_password:
            return self._finish(session, "Operation cancelled.", action="change_password")
        if not is_valid_credential(new_password):
            return self._finish(session, "Invalid password.", action="change_password")

        account.set_password(new_password)
        return self._finish(session, "Password changed successfully.", success=True,
                            action="change_password")

    # ------------------------------------------------------------------
    # Transaction protocol
    # ------------------------------------------------------------------

    def withdraw(self, session: Session, amount: Union[str, Decimal], prompter: Prompter) -> Outcome:
        return self._transaction(session, WITHDRAW, amount, prompter)

    def deposit(self, session: Session, amount: Union[str, Decimal], prompter: Prompter) -> Outcome:
        return self._transaction(session, DEPOSIT, amount, prompter)

    def _transaction(self, session: Session, kind: str, raw_amount: Union[str, Decimal],
                     prompter: Prompter) -> Outcome:
        denied = self.require_session(session, kind)
        if denied:
            return denied
        account = self.current_account(session)
        label = kind.capitalize()

        amount = parse_amount(raw_amount)
        if amount is None or (kind == WITHDRAW and amount > account.balance):
            return self._finish(session, f"Invalid {kind} amount.", action=kind)
        new_balance = fit_balance(
            account.balance - amount if kind == WITHDRAW else account.balance + amount
        )
        if new_balance is None:
            return self._finish(session, f"Invalid {kind} amount.", action=kind)

        password = prompter.read_secret(CONFIRM_TRANSACTION_PROMPT)
        if not account.check_password(password):
            return self._finish(session, f"Wrong password. {label} cancelled.", action=kind)

        account.set_balance(new_balance)
        return self._finish(session, f"{label} successful.", success=True, action=kind)

    def transfer(self, session: Session, recipient_id: str, amount: Union[str, Decimal],
                 prompter: Prompter) -> Outcome:
        """
        Move money to another account.

        Both new balances are computed before the password prompt, so once
        the password is accepted the debit and credit cannot fail.
        """
        denied = self.require_session(session, "transfer")
        if denied:
            return denied
        sender = self.current_account(session)

        recipient = self.find_account(recipient_id) if recipient_id else None
        if recipient is None:
            return self._finish(session, "Invalid ID.", action="transfer")

        parsed = parse_amount(amount)
        if parsed is None or parsed > sender.balance:
            return self._finish(session, "Invalid transfer amount.", action="transfer")
        debited = fit_balance(sender.balance - parsed)
        credited = fit_balance((debited if recipient is sender else recipient.balance) + parsed)
        if debited is None or credited is None:
            return self._finish(session, "Invalid transfer amount.", action="transfer")

        password = prompter.read_secret(CONFIRM_TRANSACTION_PROMPT)
        if not sender.check_password(password):
            return self._finish(session, "Wrong password. Transfer cancelled.", action="transfer")

        sender.set_balance(debited)
        recipient.set_balance(credited)
        self.logger.debug(f"Transfer {sender.id} -> {recipient.id} completed")
        return self._finish(session, "Transfer successful.", success=True, action="transfer")

    def reset(self, session: Session, prompter: Prompter) -> Outcome:
        """Admin only: drop every account except admin and save immediately"""
        account = self.current_account(session)
        if account is None or account.id != self.admin_id:
            return self._finish(session if account else Session.logged_out(),
                                "Only admin can perform a reset.", action="reset")

        token = prompter.read_line(f"Enter {self.reset_confirm_token} to confirm reset: ")
        if token != self.reset_confirm_token:
            return self._finish(session, "Reset cancelled.", action="reset")

        password = prompter.read_secret(CONFIRM_RESET_PASSWORD_PROMPT)
        if not account.check_password(password):
            return self._finish(session, "Wrong password. Reset cancelled.", action="reset")

        discarded = len(self._accounts) - 1
        self._accounts = [account]
        self.save()
        log_action(self.logger, "warning", "Account set reset", account_id=account.id,
                   action="reset", extra={"discarded_accounts": discarded})
        return self._finish(session, "Reset successful.", success=True, action="reset")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        self.store.save(self._accounts)
