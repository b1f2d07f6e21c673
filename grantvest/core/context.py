import contextvars

_grant_id: contextvars.ContextVar[str] = contextvars.ContextVar("grant_id", default="-")
_calculation_id: contextvars.ContextVar[str] = contextvars.ContextVar("calculation_id", default="-")


def set_grant_id(grant_id: str) -> contextvars.Token:
    return _grant_id.set(grant_id)


def get_grant_id() -> str:
    return _grant_id.get()


def set_calculation_id(calculation_id: str) -> contextvars.Token:
    return _calculation_id.set(calculation_id)


def get_calculation_id() -> str:
    return _calculation_id.get()


def reset_context(grant_token: contextvars.Token, calculation_token: contextvars.Token) -> None:
    _grant_id.reset(grant_token)
    _calculation_id.reset(calculation_token)


def clear_context() -> None:
    _grant_id.set("-")
    _calculation_id.set("-")
