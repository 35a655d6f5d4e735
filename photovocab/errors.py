class SrsError(Exception):
    """Base class for scheduling errors surfaced to API callers."""


class InvalidRating(SrsError, ValueError):
    def __init__(self, rating: object):
        super().__init__(f"rating must be one of 1, 2, 3, 4 (got {rating!r})")
        self.rating = rating


class NotFound(SrsError):
    def __init__(self, item_id: str):
        super().__init__(f"Vocabulary item {item_id} not found")
        self.item_id = item_id


class Forbidden(SrsError):
    def __init__(self, item_id: str, learner_id: str):
        super().__init__(f"Vocabulary item {item_id} does not belong to learner {learner_id}")
        self.item_id = item_id
        self.learner_id = learner_id


class PersistenceFailure(SrsError):
    """Storage write or transaction failed; nothing was applied."""


class RateLimited(SrsError):
    def __init__(self, key: str, retry_after: int):
        super().__init__(f"Too many requests for {key}; retry in {retry_after}s")
        self.key = key
        self.retry_after = retry_after
