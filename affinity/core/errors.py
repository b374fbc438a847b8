class AffinityError(Exception):
    """Base class for failures raised by the item-weights engine and its stores."""


class StoreUnavailable(AffinityError):
    """The activity log or the item-weights store cannot be reached or timed out."""


class StreamFailure(AffinityError):
    """A user's activity stream failed part way through iteration."""


class PersistFailure(AffinityError):
    """Writing a user's item weights to the derived store failed."""


class RecomputeTimeout(AffinityError):
    """A batch recompute did not finish within the configured timeout."""
