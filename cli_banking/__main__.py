#!/usr/bin/env python3
"""
CLI Banking Entry Point

Loads configuration, sets up logging, opens the account file and runs the
interactive shell. Fatal errors raised anywhere in the core end the process
here, after reporting the failure.
"""

import argparse
import sys
from typing import List, Optional

from .config import BankConfig, get_config, reload_config
from .encryption import create_credential_vault
from .errors import FatalBankingError
from .ledger import Ledger
from .logging_config import setup_logging
from .prompts import ConsolePrompter
from .shell import BankShell
from .storage import CsvAccountStore


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cli-banking",
        description="Single-user command-line banking session manager.",
    )
    parser.add_argument(
        "--accounts-file",
        help="Path to the account data CSV (default: BANK_ACCOUNTS_FILE or accounts.csv)",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Create an empty account file if it does not exist",
    )
    parser.add_argument(
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args(argv)


def build_shell(config: Optional[BankConfig] = None, init: bool = False) -> BankShell:
    """Wire vault, store, ledger and shell from configuration"""
    config = config or get_config()
    vault = create_credential_vault(config.cipher)
    store = CsvAccountStore(config.accounts_file, vault=vault)
    if init:
        store.initialize()
    ledger = Ledger.from_config(config, store=store, vault=vault)
    return BankShell(
        ledger,
        ConsolePrompter(),
        currency_symbol=config.currency_symbol,
        clear_screen=config.clear_screen,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    config = reload_config()
    if args.accounts_file:
        config.accounts_file = args.accounts_file
    if args.log_level:
        config.log_level = args.log_level

    logger = setup_logging(config.log_level, config.log_format, config.log_file)

    try:
        shell = build_shell(config, init=args.init)
        shell.run()
    except FatalBankingError as e:
        logger.critical(f"{type(e).__name__}: {e}")
        print(e.exit_message)
        return 1
    except KeyboardInterrupt:
        # Unsaved changes are lost, as with any crash between saves
        print()
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
