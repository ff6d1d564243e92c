"""
Banking Error Types

Fatal errors mean the system can no longer guarantee its invariants
(credential integrity, persisted state, an input channel). They are raised
by the core and propagated to the entry point, which decides to terminate.
Recoverable failures are never raised; they come back as outcome messages.
"""


class FatalBankingError(Exception):
    """Base class for unrecoverable failures"""

    exit_message = "Fatal error. Ending banking process"


class CredentialIntegrityError(FatalBankingError):
    """Encryption or decryption of a stored credential failed"""

    def __init__(self, message: str, operation: str = "decrypt"):
        super().__init__(message)
        self.operation = operation

    @property
    def exit_message(self) -> str:
        if self.operation == "encrypt":
            return "Encryption failed. Ending banking process"
        return "Decryption failed. Ending banking process"


class PersistenceError(FatalBankingError):
    """Account data file could not be read, parsed or written"""

    def __init__(self, message: str, operation: str = "load"):
        super().__init__(message)
        self.operation = operation

    @property
    def exit_message(self) -> str:
        if self.operation == "save":
            return "Failed to save account data."
        return "Failed to load data."


class NoConsoleError(FatalBankingError):
    """No interactive input channel is available"""

    exit_message = "No console available."
