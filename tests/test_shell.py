"""
Tests for the interactive banking shell
"""

import io
import pytest
from decimal import Decimal

from cli_banking.encryption import CredentialVault
from cli_banking.ledger import Ledger, COMMANDS_HELP
from cli_banking.prompts import ScriptedPrompter
from cli_banking.session import Session
from cli_banking.shell import BankShell, CLEAR_SCREEN
from cli_banking.storage import InMemoryAccountStore


@pytest.fixture
def vault():
    return CredentialVault()


@pytest.fixture
def store(vault):
    return InMemoryAccountStore(vault)


@pytest.fixture
def ledger(store, vault):
    return Ledger(store, vault=vault)


def make_shell(ledger, answers=()):
    out = io.StringIO()
    shell = BankShell(ledger, ScriptedPrompter(answers), out=out)
    return shell, out


class TestDispatch:
    """Command routing"""

    def test_unknown_command(self, ledger):
        shell, _ = make_shell(ledger)

        assert shell.process_command("dance") is True
        assert ledger.consume_message() == "Please enter a valid command."
        assert not shell.session.is_active

    def test_commands_are_case_insensitive(self, ledger):
        shell, _ = make_shell(ledger)

        shell.process_command("hElP")

        assert ledger.consume_message() == COMMANDS_HELP

    def test_multiword_command_whitespace_normalised(self, ledger):
        shell, _ = make_shell(ledger)

        shell.process_command("  change   password ")

        assert ledger.consume_message() == "You must login to change your password."

    def test_login_and_logout(self, ledger):
        shell, _ = make_shell(ledger, ["admin", "admin"])

        shell.process_command("LOGIN")
        assert shell.session.account_id == "admin"
        assert ledger.consume_message() == "Login successful."

        shell.process_command("LOGOUT")
        assert not shell.session.is_active

    def test_login_when_logged_in_does_not_prompt(self, ledger):
        shell, _ = make_shell(ledger, ["admin", "admin"])
        shell.process_command("LOGIN")

        shell.process_command("LOGIN")

        assert ledger.consume_message() == "Already logged in."
        assert shell.prompter.remaining == 0
        assert len(shell.prompter.asked) == 2

    def test_login_empty_id_skips_password(self, ledger):
        shell, _ = make_shell(ledger, [""])

        shell.process_command("LOGIN")

        assert ledger.consume_message() == "Login cancelled."
        assert shell.prompter.asked == [("line", "Enter ID: ")]

    def test_register_invalid_id_skips_password(self, ledger):
        shell, _ = make_shell(ledger, ["ab!c"])

        shell.process_command("REGISTER")

        assert ledger.consume_message() == "Invalid ID."
        assert [kind for kind, _ in shell.prompter.asked] == ["line"]

    def test_change_password_flow(self, ledger):
        shell, _ = make_shell(ledger, ["admin", "admin", "admin", "secret9"])
        shell.process_command("LOGIN")

        shell.process_command("CHANGE PASSWORD")

        assert ledger.consume_message() == "Password changed successfully."
        assert ledger.find_account("admin").check_password("secret9")

    def test_change_password_wrong_old_skips_new(self, ledger):
        shell, _ = make_shell(ledger, ["admin", "admin", "bad"])
        shell.process_command("LOGIN")

        shell.process_command("CHANGE PASSWORD")

        assert ledger.consume_message() == "Wrong password. Operation cancelled."
        assert shell.prompter.asked[-1] == ("secret", "Enter old password: ")

    def test_transaction_requires_login_without_prompt(self, ledger):
        shell, _ = make_shell(ledger)

        shell.process_command("WITHDRAW")

        assert ledger.consume_message() == "You must login to withdraw."
        assert shell.prompter.asked == []

    def test_transfer_unknown_recipient_skips_amount(self, ledger):
        shell, _ = make_shell(ledger, ["admin", "admin", "ghost"])
        shell.process_command("LOGIN")

        shell.process_command("TRANSFER")

        assert ledger.consume_message() == "Invalid ID."
        assert shell.prompter.asked[-1] == ("line", "Enter ID to transfer to: ")

    def test_transfer_flow(self, ledger):
        ledger.find_account("admin").set_balance(Decimal("50"))
        ledger.register(Session.logged_out(), "bob", "bobpw")
        shell, _ = make_shell(ledger, ["admin", "admin", "bob", "20", "admin"])
        shell.process_command("LOGIN")

        shell.process_command("TRANSFER")

        assert ledger.consume_message() == "Transfer successful."
        assert ledger.find_account("bob").balance == Decimal("20.00")

    def test_balance_command(self, ledger):
        ledger.find_account("admin").set_balance(Decimal("1234.5"))
        shell, _ = make_shell(ledger, ["admin", "admin"])
        shell.process_command("LOGIN")

        shell.process_command("BALANCE")

        assert ledger.consume_message() == "Current balance: $1,234.50"

    def test_save_command(self, ledger, store):
        shell, _ = make_shell(ledger)

        shell.process_command("SAVE")

        assert store.save_count == 1
        assert ledger.consume_message() == "Account data saved."

    def test_exit_saves_and_stops(self, ledger, store):
        shell, _ = make_shell(ledger, ["admin", "admin"])
        shell.process_command("LOGIN")

        assert shell.process_command("EXIT") is False
        assert store.save_count == 1
        assert not shell.running
        assert not shell.session.is_active

    def test_reset_by_admin(self, ledger, store):
        ledger.register(Session.logged_out(), "bob", "bobpw")
        shell, _ = make_shell(ledger, ["admin", "admin", "Y", "admin"])
        shell.process_command("LOGIN")

        shell.process_command("RESET")

        assert ledger.consume_message() == "Reset successful."
        assert [a.id for a in ledger.accounts] == ["admin"]
        assert store.save_count == 1


class TestRender:
    """Status line and message display"""

    def test_not_logged_in(self, ledger):
        shell, out = make_shell(ledger)
        ledger.post_message("hello")

        shell.render()

        text = out.getvalue()
        assert text.startswith(CLEAR_SCREEN)
        assert "[Not logged in]" in text
        assert "hello" in text
        assert ledger.last_message == ""

    def test_logged_in_status(self, ledger):
        ledger.find_account("admin").set_balance(Decimal("1234.56"))
        shell, out = make_shell(ledger, ["admin", "admin"])
        shell.process_command("LOGIN")

        shell.render()

        assert "[Logged in: admin, Current balance: $1,234.56]" in out.getvalue()

    def test_message_shown_once(self, ledger):
        shell, out = make_shell(ledger)
        ledger.post_message("only once")

        shell.render()
        shell.render()

        assert out.getvalue().count("only once") == 1

    def test_clear_screen_can_be_disabled(self, ledger):
        out = io.StringIO()
        shell = BankShell(ledger, ScriptedPrompter(), out=out, clear_screen=False)

        shell.render()

        assert CLEAR_SCREEN not in out.getvalue()


class TestRunLoop:
    """Full scripted sessions"""

    def test_scripted_session(self, ledger, store):
        shell, out = make_shell(ledger, [
            "register", "alice", "pw1",
            "login", "alice", "pw1",
            "deposit", "50", "pw1",
            "withdraw", "80",
            "exit",
        ])

        shell.run()

        assert ledger.find_account("alice").balance == Decimal("50.00")
        assert store.save_count == 1
        assert [record["id"] for record in store.records] == ["admin", "alice"]
        text = out.getvalue()
        assert "Registration successful." in text
        assert "Deposit successful." in text
        assert "Invalid withdraw amount." in text
        assert text.rstrip().endswith("Goodbye.")
