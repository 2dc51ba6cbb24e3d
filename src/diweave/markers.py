from typing import Any, NamedTuple


class Component(NamedTuple):
    """Select a keyed registration for a constructor parameter.

    Attach ``Component`` metadata to ``typing.Annotated`` so the object builder
    looks the parameter up under ``(T, value)`` instead of ``(T, None)``.

    Examples:
        .. code-block:: python

            from typing import Annotated


            class Database: ...


            class Reports:
                def __init__(self, db: Annotated[Database, Component("replica")]) -> None:
                    self.db = db

    """

    value: Any
