from ulid import ULID


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_user_id() -> str:
    return new_ulid("us_")


def new_session_id() -> str:
    return new_ulid("se_")


def new_package_id() -> str:
    return new_ulid("pk_")


def new_transaction_id() -> str:
    return new_ulid("tx_")


def new_message_id() -> str:
    return new_ulid("ms_")


def new_reaction_id() -> str:
    return new_ulid("re_")
