"""DAO creation through the SDK's step stream."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable

import structlog

from provisioner.domain.errors import (
    ConfirmationTimeout,
    PipelineIncomplete,
    UnknownDaoCreationStepError,
)
from provisioner.domain.models.chain import TokenParams
from provisioner.domain.models.dao import (
    CreateDaoParams,
    CreatingStep,
    DaoCreationOutcome,
    DaoMetadata,
    DoneStep,
    GovernanceTokenReference,
    TokenVotingPluginInstall,
    VotingSettings,
    WrappedToken,
)
from provisioner.domain.ports.services import DaoClient


logger = structlog.get_logger(__name__)

StepObserver = Callable[[CreatingStep | DoneStep], None]


class DaoCreator:
    """Creates a DAO with a token-voting plugin and extracts its addresses.

    ``create_dao`` returns a lazy, single-pass stream of progress steps.
    Draining it is a fold that must reach exactly one DONE step; anything
    else (an error mid-stream, early exhaustion, a step after DONE, an
    unknown step type) aborts with ``PipelineIncomplete``. The stream is
    never restarted, since a new call submits a new DAO.
    """

    def __init__(
        self,
        dao_client: DaoClient,
        voting_settings: VotingSettings,
        wrapped_token: TokenParams,
        ens_subdomain_factory: Callable[[], str],
        confirmation_timeout_seconds: float = 120.0,
        step_observer: StepObserver | None = None,
    ) -> None:
        self._dao_client = dao_client
        self._voting_settings = voting_settings
        self._wrapped_token = wrapped_token
        self._ens_subdomain_factory = ens_subdomain_factory
        self._confirmation_timeout = confirmation_timeout_seconds
        self._step_observer = step_observer

    async def pin_metadata(self, metadata: DaoMetadata) -> str:
        metadata_uri = await self._dao_client.pin_metadata(metadata)
        logger.info("dao_metadata_pinned", name=metadata.name, metadata_uri=metadata_uri)
        return metadata_uri

    def build_params(self, token_address: str, metadata_uri: str) -> CreateDaoParams:
        install = TokenVotingPluginInstall(
            voting_settings=self._voting_settings,
            use_token=GovernanceTokenReference(
                token_address=token_address,
                wrapped_token=WrappedToken(
                    name=self._wrapped_token.name,
                    symbol=self._wrapped_token.symbol,
                ),
            ),
        )
        return CreateDaoParams(
            metadata_uri=metadata_uri,
            ens_subdomain=self._ens_subdomain_factory(),
            plugins=[self._dao_client.get_plugin_install_item(install)],
        )

    async def create_dao_with_plugin(
        self, token_address: str, metadata_uri: str
    ) -> DaoCreationOutcome:
        params = self.build_params(token_address, metadata_uri)
        logger.info(
            "dao_creation_started",
            token_address=token_address,
            metadata_uri=metadata_uri,
            ens_subdomain=params.ens_subdomain,
        )

        try:
            steps = self._dao_client.create_dao(params)
        except Exception as e:
            raise PipelineIncomplete(f"DAO creation could not be submitted: {e}") from e
        try:
            outcome = await self._drain(steps)
        finally:
            await _close(steps)

        logger.info(
            "dao_creation_done",
            dao_address=outcome.dao_address,
            voting_plugin_address=outcome.voting_plugin_address,
        )
        return outcome

    async def _drain(
        self, steps: AsyncIterator[CreatingStep | DoneStep]
    ) -> DaoCreationOutcome:
        outcome: DaoCreationOutcome | None = None
        while True:
            try:
                step = await asyncio.wait_for(
                    anext(steps), timeout=self._confirmation_timeout
                )
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError as e:
                if outcome is not None:
                    logger.error(
                        "dao_creation_stream_not_closed",
                        dao_address=outcome.dao_address,
                        voting_plugin_address=outcome.voting_plugin_address,
                    )
                    raise ConfirmationTimeout(
                        f"DAO {outcome.dao_address} (voting plugin "
                        f"{outcome.voting_plugin_address}) was created but its stream "
                        f"did not close within {self._confirmation_timeout}s",
                        timeout_seconds=self._confirmation_timeout,
                    ) from e
                raise ConfirmationTimeout(
                    f"No DAO creation progress within {self._confirmation_timeout}s",
                    timeout_seconds=self._confirmation_timeout,
                ) from e
            except Exception as e:
                raise PipelineIncomplete(f"DAO creation stream failed: {e}") from e

            if outcome is not None:
                raise PipelineIncomplete(
                    f"DAO creation stream yielded {type(step).__name__} after DONE"
                )
            try:
                outcome = self._apply(step)
            except PipelineIncomplete:
                raise
            except Exception as e:
                raise PipelineIncomplete(f"Processing DAO creation step failed: {e}") from e

        if outcome is None:
            raise PipelineIncomplete("DAO creation stream ended without a DONE step")
        return outcome

    def _apply(self, step: CreatingStep | DoneStep) -> DaoCreationOutcome | None:
        if self._step_observer is not None:
            self._step_observer(step)

        if isinstance(step, CreatingStep):
            logger.info("dao_creation_pending", tx_hash=step.tx_hash)
            return None
        if isinstance(step, DoneStep):
            if not step.address or not step.plugin_addresses or not step.plugin_addresses[0]:
                raise PipelineIncomplete(
                    f"DONE step is missing addresses: dao={step.address!r} "
                    f"plugins={step.plugin_addresses!r}"
                )
            return DaoCreationOutcome(
                dao_address=step.address,
                voting_plugin_address=step.plugin_addresses[0],
            )
        raise UnknownDaoCreationStepError(
            f"Unhandled DAO creation step: {type(step).__name__}"
        )


async def _close(steps: AsyncIterator[CreatingStep | DoneStep]) -> None:
    """Close the stream; a failing close never masks the pipeline outcome."""
    aclose = getattr(steps, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.warning("dao_creation_stream_close_failed", exc_info=True)
