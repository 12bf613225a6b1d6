# errors.py — user-facing rejections raised by the trainer core
#
# Everything here is recoverable: the page shows a message and nothing was written.
# Storage/transport failures are NOT wrapped; they propagate as-is.


class TrainerError(RuntimeError):
    """Base for declined actions. `message` is safe to show to the player."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class AccountNotFound(TrainerError):
    pass


class InsufficientCredits(TrainerError):
    def __init__(self, needed: int, available: int):
        super().__init__(f"You need {needed} credits for this. You have {available}.")
        self.needed = int(needed)
        self.available = int(available)


class ScenarioNotFound(TrainerError):
    pass


class InvalidAction(TrainerError):
    pass


class BotSessionNotFound(TrainerError):
    pass


class BotSessionClosed(TrainerError):
    pass


class ContentionError(RuntimeError):
    """Conditional update kept losing the race. Not user error; safe to retry the request."""
