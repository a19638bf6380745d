"""Mutation pipeline: confirm remotely, then apply to the entity stores.

Every operation calls the backend first. If the call fails the operation
raises ``RemoteMutationError`` and no local change is attempted. Only a
confirmed call is applied, by replacing the affected entities with updated
copies.

Two mutations on the same collection commit in the order their responses
arrive; callers needing strict ordering must await one before sending the
next.
"""

from __future__ import annotations

import logging
from typing import Any

from mango_client.cache.controller import CollectionCache
from mango_client.errors import RemoteMutationError, RemoteStatusError, TransportError
from mango_client.schemas import Goal, Prompt, Solution
from mango_client.transport import routes
from mango_client.transport.base import Transport


logger = logging.getLogger(__name__)


class MutationPipeline:
    """Create/update/delete for goals, prompts and solutions."""

    def __init__(
        self,
        transport: Transport,
        goals: CollectionCache[Goal],
        prompts: CollectionCache[Prompt],
    ):
        self._transport = transport
        self._goals = goals.store
        self._prompts = prompts.store

    async def _send(self, action: str, path: str, body: Any) -> Any:
        try:
            return await self._transport.request(path, "POST", body)
        except RemoteStatusError as e:
            raise RemoteMutationError(action, e.status, e.message) from e
        except TransportError as e:
            raise RemoteMutationError(action, None, str(e)) from e

    # =========================================================================
    # Goals
    # =========================================================================

    async def update_goal(self, goal_uid: str, title: str, description: str) -> Goal | None:
        """Update a goal's title and description.

        Only those two fields are merged into the cached goal; its prompt and
        solution mappings are left alone. Returns the cached goal after the
        update, or None if the goal was not cached.
        """
        await self._send(
            "update goal",
            routes.goal_update(goal_uid),
            {"title": title, "description": description},
        )

        current = self._goals.get(goal_uid)
        if current is None:
            return None
        updated = current.model_copy(update={"title": title, "description": description})
        self._goals.upsert(goal_uid, updated)
        logger.info(f"Updated goal {goal_uid}")
        return updated

    # =========================================================================
    # Prompts
    # =========================================================================

    async def create_prompt(self, prompt: Prompt) -> Prompt:
        await self._send("create prompt", routes.PROMPT_CREATE, prompt.to_wire())

        self._prompts.upsert(prompt.uid, prompt)
        self._link_prompt(prompt)
        logger.info(f"Created prompt {prompt.uid} for goal {prompt.goal_uid}")
        return prompt

    async def update_prompt(self, prompt_uid: str, prompt: Prompt) -> Prompt:
        """Replace a prompt. The cached entry becomes exactly ``prompt``."""
        await self._send("update prompt", routes.prompt_update(prompt_uid), prompt.to_wire())

        previous = self._prompts.get(prompt_uid)
        self._prompts.upsert(prompt_uid, prompt)
        if previous is not None and previous.goal_uid != prompt.goal_uid:
            self._unlink_prompt(previous.goal_uid, prompt_uid)
        self._link_prompt(prompt)
        logger.info(f"Updated prompt {prompt_uid}")
        return prompt

    async def delete_prompt(self, prompt_uid: str) -> None:
        await self._send("delete prompt", routes.PROMPT_DELETE, {"promptUID": prompt_uid})

        removed = self._prompts.remove(prompt_uid)
        if removed is not None:
            self._unlink_prompt(removed.goal_uid, prompt_uid)
        logger.info(f"Deleted prompt {prompt_uid}")

    def _link_prompt(self, prompt: Prompt) -> None:
        goal = self._goals.get(prompt.goal_uid)
        if goal is None or prompt.uid in goal.prompts:
            return
        prompts = {**goal.prompts, prompt.uid: prompt.uid}
        self._goals.upsert(goal.uid, goal.model_copy(update={"prompts": prompts}))

    def _unlink_prompt(self, goal_uid: str, prompt_uid: str) -> None:
        goal = self._goals.get(goal_uid)
        if goal is None or prompt_uid not in goal.prompts:
            return
        prompts = {k: v for k, v in goal.prompts.items() if k != prompt_uid}
        self._goals.upsert(goal_uid, goal.model_copy(update={"prompts": prompts}))

    # =========================================================================
    # Solutions
    # =========================================================================

    async def create_solution(self, goal_uid: str, solution: Solution) -> Solution:
        body = {"goalId": goal_uid, **solution.to_wire()}
        await self._send("create solution", routes.SOLUTION_CREATE, body)

        goal = self._goals.get(goal_uid)
        if goal is None:
            logger.debug(f"Goal {goal_uid} not cached, solution {solution.id} not applied locally")
            return solution
        self._put_solution(goal, solution)
        logger.info(f"Created solution {solution.id} for goal {goal_uid}")
        return solution

    async def update_solution(self, solution_id: str, solution: Solution) -> Solution:
        owner = self.find_solution_owner(solution_id)
        body = solution.to_wire()
        if owner is not None:
            body["goalId"] = owner.uid
        await self._send("update solution", routes.solution_update(solution_id), body)

        # The owner may have changed while the request was in flight
        owner = self.find_solution_owner(solution_id)
        if owner is None:
            logger.debug(f"No cached goal owns solution {solution_id}, nothing to update")
            return solution
        solutions = {k: v for k, v in owner.solutions.items() if k != solution_id}
        solutions[solution.id] = solution
        self._goals.upsert(owner.uid, owner.model_copy(update={"solutions": solutions}))
        logger.info(f"Updated solution {solution_id}")
        return solution

    async def delete_solution(self, solution_id: str) -> None:
        await self._send("delete solution", routes.solution_delete(solution_id), None)

        owner = self.find_solution_owner(solution_id)
        if owner is None:
            logger.debug(f"No cached goal owns solution {solution_id}, nothing to delete")
            return
        solutions = {k: v for k, v in owner.solutions.items() if k != solution_id}
        self._goals.upsert(owner.uid, owner.model_copy(update={"solutions": solutions}))
        logger.info(f"Deleted solution {solution_id}")

    def find_solution_owner(self, solution_id: str) -> Goal | None:
        """Linear scan for the cached goal whose mapping holds ``solution_id``."""
        for goal in self._goals.values():
            if solution_id in goal.solutions:
                return goal
        return None

    def _put_solution(self, goal: Goal, solution: Solution) -> None:
        solutions = {**goal.solutions, solution.id: solution}
        self._goals.upsert(goal.uid, goal.model_copy(update={"solutions": solutions}))

    # =========================================================================
    # Settings
    # =========================================================================

    async def update_api_key(self, api_key: str) -> None:
        """Rotate the backend's OpenRouter key. No local state is kept."""
        await self._send("update API key", routes.UPDATE_KEY, {"apiKey": api_key})
        logger.info("Updated API key")
