"""Orchestration engine that deploys resolved add-ons.

Walks a resolved order, invokes each descriptor's deploy against the cluster
and records one DeploymentOutcome per add-on.

Guarantees:
- an add-on starts only after every dependency reached a terminal outcome,
  and only if all of them succeeded; otherwise it is skipped, transitively
- a failing deploy is recorded and never aborts sibling branches
- no add-on is started twice within a run
- once a run is cancelled no new add-on starts, while deploys already in
  flight run to completion

Successful deploys are not rolled back when a later add-on fails. Add-ons
are independent units of infrastructure, not a transaction.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from blueprints.cluster.addons.descriptor import (
    AddonDescriptor,
    AddonId,
    DeploymentOutcome,
    OutcomeStatus,
)
from blueprints.cluster.handle import ClusterHandle
from blueprints.utils.errors import DeployError

logger = logging.getLogger(__name__)

CANCELLED_REASON = "run cancelled before start"


class CancellationToken:
    """Cancellation state of one orchestration run.

    Cancelling a token before its run starts skips every add-on in that run.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        """Stop starting new add-ons in the run holding this token."""
        if not self._cancelled:
            logger.warning("Orchestration cancelled; no further add-ons will be started")
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Orchestrator:
    """Deploys add-ons in dependency order, concurrently where allowed."""

    def __init__(self, max_concurrency: int = 4):
        """Initialize orchestrator.

        Args:
            max_concurrency: Maximum number of deploys in flight. 1 walks the
                order strictly sequentially.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self._active: set[CancellationToken] = set()
        self._last: CancellationToken | None = None

    def cancel(self) -> None:
        """Cancel every run currently in progress on this orchestrator."""
        for token in list(self._active):
            token.cancel()

    @property
    def cancelled(self) -> bool:
        """Whether the most recently started run was cancelled."""
        return self._last is not None and self._last.cancelled

    async def run(
        self,
        order: Sequence[AddonId],
        registry: Mapping[AddonId, AddonDescriptor],
        cluster: ClusterHandle,
        timeout: float | None = None,
        token: CancellationToken | None = None,
    ) -> list[DeploymentOutcome]:
        """Deploy every add-on in ``order``.

        Args:
            order: Resolved deployment order
            registry: Descriptors by id; must contain every id in ``order``
            cluster: Target cluster handle
            timeout: Seconds after which the run is cancelled (None for no limit)
            token: Cancellation state for this run; a fresh one when omitted

        Returns:
            One outcome per add-on, in ``order`` order

        Raises:
            ValueError: If ``order`` contains duplicates
            KeyError: If an id in ``order`` has no descriptor
        """
        if len(set(order)) != len(order):
            raise ValueError("Deployment order contains duplicate add-on ids")
        missing = [addon_id for addon_id in order if addon_id not in registry]
        if missing:
            raise KeyError(f"No descriptor registered for: {', '.join(missing)}")

        if token is None:
            token = CancellationToken()
        self._active.add(token)
        self._last = token
        outcomes: dict[AddonId, DeploymentOutcome] = {}
        logger.info(
            f"Deploying {len(order)} add-on(s) to cluster '{cluster.name}' "
            f"(max concurrency {self.max_concurrency})"
        )

        if self.max_concurrency == 1:
            walk = self._run_sequential(order, registry, cluster, outcomes, token)
        else:
            walk = self._run_concurrent(order, registry, cluster, outcomes, token)

        runner = asyncio.ensure_future(walk)
        try:
            done, _ = await asyncio.wait({runner}, timeout=timeout)
            if not done:
                logger.warning(f"Orchestration timed out after {timeout}s")
                token.cancel()
                await runner
        except asyncio.CancelledError:
            # Let in-flight deploys finish before propagating
            token.cancel()
            await asyncio.shield(runner)
            raise
        finally:
            self._active.discard(token)
        runner.result()

        return [outcomes[addon_id] for addon_id in order]

    async def _run_sequential(
        self,
        order: Sequence[AddonId],
        registry: Mapping[AddonId, AddonDescriptor],
        cluster: ClusterHandle,
        outcomes: dict[AddonId, DeploymentOutcome],
        token: CancellationToken,
    ) -> None:
        for addon_id in order:
            outcomes[addon_id] = await self._execute(registry[addon_id], cluster, outcomes, token)

    async def _run_concurrent(
        self,
        order: Sequence[AddonId],
        registry: Mapping[AddonId, AddonDescriptor],
        cluster: ClusterHandle,
        outcomes: dict[AddonId, DeploymentOutcome],
        token: CancellationToken,
    ) -> None:
        finished = {addon_id: asyncio.Event() for addon_id in order}
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def drive(addon_id: AddonId) -> None:
            descriptor = registry[addon_id]
            try:
                for dependency in sorted(descriptor.depends_on):
                    if dependency in finished:
                        await finished[dependency].wait()
                async with semaphore:
                    outcomes[addon_id] = await self._execute(descriptor, cluster, outcomes, token)
            finally:
                finished[addon_id].set()

        tasks = [asyncio.create_task(drive(addon_id)) for addon_id in order]
        await asyncio.gather(*tasks)

    async def _execute(
        self,
        descriptor: AddonDescriptor,
        cluster: ClusterHandle,
        outcomes: Mapping[AddonId, DeploymentOutcome],
        token: CancellationToken,
    ) -> DeploymentOutcome:
        """Deploy one add-on whose dependencies are all terminal."""
        addon_id = descriptor.id

        if token.cancelled:
            logger.info(f"Skipping add-on '{addon_id}': {CANCELLED_REASON}")
            return DeploymentOutcome.skipped(addon_id, CANCELLED_REASON)

        blocked = [
            dependency
            for dependency in sorted(descriptor.depends_on)
            if dependency not in outcomes or outcomes[dependency].status is not OutcomeStatus.SUCCEEDED
        ]
        if blocked:
            logger.warning(f"Skipping add-on '{addon_id}': upstream dependency failed: {', '.join(blocked)}")
            return DeploymentOutcome.skipped(
                addon_id, f"upstream dependency failed: {', '.join(blocked)}", blocked
            )

        logger.info(f"Processing add-on: {addon_id}")
        start_time = time.monotonic()
        # Shielded so cancelling the run never interrupts a cluster mutation
        deploy = asyncio.ensure_future(self._invoke(descriptor, cluster.for_addon(addon_id)))
        try:
            try:
                resource = await asyncio.shield(deploy)
            except asyncio.CancelledError:
                if deploy.cancelled():
                    # Raised by the deploy itself rather than by run cancellation
                    raise DeployError(f"Add-on '{addon_id}' deploy was cancelled") from None
                token.cancel()
                resource = await deploy
        except Exception as e:
            duration = time.monotonic() - start_time
            logger.error(f"Add-on '{addon_id}' failed (continuing with others): {e}")
            return DeploymentOutcome.failed(addon_id, e, duration)

        duration = time.monotonic() - start_time
        logger.info(f"Add-on '{addon_id}' deployed in {duration:.1f}s")
        return DeploymentOutcome.succeeded(addon_id, resource, duration)

    @staticmethod
    async def _invoke(descriptor: AddonDescriptor, cluster: ClusterHandle) -> Any:
        if inspect.iscoroutinefunction(descriptor.deploy):
            return await descriptor.deploy(cluster)
        # Blocking deploys run in a worker thread so other branches keep going
        result = await asyncio.to_thread(descriptor.deploy, cluster)
        if inspect.isawaitable(result):
            result = await result
        return result
