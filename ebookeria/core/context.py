from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar


_current_user_email: ContextVar[str | None] = ContextVar("current_user_email", default=None)


def get_current_user_email() -> str | None:
    return _current_user_email.get()


@contextmanager
def acting_user(email: str) -> Iterator[None]:
    """Bind the acting user's email for the duration of a request scope."""

    token = _current_user_email.set(email)
    try:
        yield
    finally:
        _current_user_email.reset(token)
