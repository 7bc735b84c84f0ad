"""Domain errors raised by the progression core and its stores.

Routes translate these into ``HTTPException`` responses; the core itself
never retries.
"""


class QuestAppError(Exception):
    """Base class for every error raised by the quest core."""


class NotFound(QuestAppError):
    """An entity is missing or not owned by the requesting user."""


class QuestNotFound(NotFound):
    def __init__(self, quest_id):
        super().__init__(f"Quest {quest_id} not found or not owned by user")
        self.quest_id = quest_id


class UserNotFound(NotFound):
    def __init__(self, user_id):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class ClockUnavailable(QuestAppError):
    """The clock source could not supply today's date."""


class PersistenceFailure(QuestAppError):
    """A read or write against the database failed."""
