"""Blueprint lifecycle: draft -> published -> sold.

No state is skipped and none is revisited. Only the owner may move a
blueprint forward. Checks run against the freshly read record inside
the repository's read-modify-write, so a refused transition never writes.
"""

from __future__ import annotations

import logging

from plano.errors import InvalidTransitionError, NotAuthorizedError, NotConnectedError
from plano.models import Blueprint, BlueprintStatus
from plano.repository import BlueprintRepository

logger = logging.getLogger(__name__)

TRANSITIONS: dict[BlueprintStatus, BlueprintStatus] = {
    BlueprintStatus.DRAFT: BlueprintStatus.PUBLISHED,
    BlueprintStatus.PUBLISHED: BlueprintStatus.SOLD,
}


def can_transition(current: BlueprintStatus, target: BlueprintStatus) -> bool:
    return TRANSITIONS.get(current) == target


class LifecycleManager:
    def __init__(self, repository: BlueprintRepository) -> None:
        self.repository = repository

    def publish(self, blueprint_id: str, caller: str | None) -> Blueprint:
        return self._advance(blueprint_id, caller, BlueprintStatus.PUBLISHED)

    def sell(self, blueprint_id: str, caller: str | None) -> Blueprint:
        return self._advance(blueprint_id, caller, BlueprintStatus.SOLD)

    def _advance(
        self, blueprint_id: str, caller: str | None, target: BlueprintStatus
    ) -> Blueprint:
        if not caller:
            raise NotConnectedError()

        def mutate(current: Blueprint) -> Blueprint:
            if not current.is_owned_by(caller):
                raise NotAuthorizedError(
                    f"{caller} is not the owner of blueprint {blueprint_id}"
                )
            if not can_transition(current.status, target):
                raise InvalidTransitionError(
                    f"Cannot move blueprint {blueprint_id} from "
                    f"{current.status.value} to {target.value}"
                )
            return current.model_copy(update={"status": target})

        updated = self.repository.update(blueprint_id, mutate)
        logger.info("Blueprint %s is now %s", blueprint_id, target.value)
        return updated
