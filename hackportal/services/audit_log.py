from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import Any, ClassVar, Iterable, Optional

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from hackportal.db.database import DataBase
from hackportal.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from hackportal.db.schemas.user import UserRead


def _target(value: Any) -> Any:
    # request bodies keep only the fields the caller actually sent
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_unset=True)
    return value


class AuditLogService:
    """
    Stores who did what to which team or invitation in the ``audit_log`` table.

    Every entry carries the acting user's id as a column, and a payload with
    the actor summary, the call's targets and either its result or its error.
    """

    _instance: ClassVar[Optional["AuditLogService"]] = None

    def __new__(cls) -> "AuditLogService":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._database = DataBase()
        self._logger = logging.getLogger("hackportal.audit")
        self._initialized = True

    async def log(self, *, action: str, actor: UserRead | None, payload: dict[str, Any]) -> AuditLogRead:
        entry_payload = dict(payload)
        if actor is not None:
            entry_payload["actor"] = {
                "id": actor.id,
                "email": actor.email,
                "roles": [str(r) for r in actor.roles],
            }

        entry = await self._database.create_audit_log(
            AuditLogCreate(
                action=action,
                actor_id=actor.id if actor is not None else None,
                payload=to_jsonable_python(entry_payload, fallback=str),
            )
        )
        self._logger.info("AUDIT action=%s actor=%s entry=%s", action, actor.id if actor else "-", entry.id)
        return entry

    async def list_entries(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        actor_id: int | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLogRead], int]:
        return await self._database.list_audit_logs(limit=limit, offset=offset, actor_id=actor_id, action=action)


audit_logger = AuditLogService()


def _audited(fn, action: str):
    signature = inspect.signature(fn)

    @wraps(fn)
    async def wrapper(self, *args, **kwargs):
        bound = signature.bind(self, *args, **kwargs)
        bound.apply_defaults()
        targets = {name: _target(value) for name, value in bound.arguments.items() if name not in ("self", "actor")}
        actor = bound.arguments.get("actor")
        try:
            result = await fn(self, *args, **kwargs)
        except Exception as exc:
            await audit_logger.log(
                action=f"{action}.error",
                actor=actor,
                payload={"target": targets, "error": {"type": type(exc).__name__, "message": str(exc)}},
            )
            raise
        await audit_logger.log(action=action, actor=actor, payload={"target": targets, "result": result})
        return result

    return wrapper


def instrument_service_class(cls, *, prefix: str, exclude: Iterable[str] = ()) -> None:
    """
    Audit every public coroutine of a service as ``<prefix>.<method>``.
    Audited methods take the acting user as their ``actor`` argument.
    """
    excluded = set(exclude)
    for name, attr in list(cls.__dict__.items()):
        if name.startswith("_") or name in excluded:
            continue
        if inspect.iscoroutinefunction(attr):
            setattr(cls, name, _audited(attr, f"{prefix}.{name}"))


__all__ = [
    "AuditLogService",
    "audit_logger",
    "instrument_service_class",
]
