"""Consecutive counters: current value and environment switch."""

from dataclasses import dataclass

from facturacr.application.dto.requests import SequenceScopeRequest, SwitchEnvironmentRequest
from facturacr.application.dto.responses import SequenceResponse, SwitchEnvironmentResponse
from facturacr.config import get_logger, get_settings
from facturacr.core.entities.sequence import MAX_SEQUENCE, Environment, SequenceScope
from facturacr.core.services import SequenceGenerator, format_consecutive

logger = get_logger(__name__)


@dataclass
class SequenceState:
    scope: SequenceScope
    current_value: int
    changed: bool = False
    previous_environment: Environment | None = None

    @property
    def next_consecutive(self) -> str:
        scope = self.scope
        return format_consecutive(
            scope.branch,
            scope.terminal,
            scope.document_type,
            min(self.current_value + 1, MAX_SEQUENCE),
        )


class ManageSequencesUseCase:
    """Read-only view of counters plus the environment switch."""

    def __init__(self, sequence_generator: SequenceGenerator | None = None):
        self._generator = sequence_generator

    async def _get_generator(self) -> SequenceGenerator:
        if self._generator is None:
            from facturacr.application.services import get_sequence_generator

            self._generator = await get_sequence_generator()
        return self._generator

    async def _scope(self, request: SequenceScopeRequest) -> SequenceScope:
        defaults = get_settings().sequence
        generator = await self._get_generator()
        return await generator.resolve_scope(
            request.company_id,
            request.document_type,
            request.branch or defaults.default_branch,
            request.terminal or defaults.default_terminal,
        )

    async def current(self, request: SequenceScopeRequest) -> SequenceState:
        """Current counter of the scope's active environment. Issues nothing."""
        scope = await self._scope(request)
        value = await (await self._get_generator()).current(scope)
        return SequenceState(scope=scope, current_value=value)

    async def switch_environment(self, request: SwitchEnvironmentRequest) -> SequenceState:
        """Activate an environment; its counter for this scope restarts at 0."""
        active = await self._scope(request)
        generator = await self._get_generator()
        changed = await generator.switch_environment(active, request.environment)

        target = active.with_environment(request.environment)
        value = await generator.current(target)
        logger.info(
            "sequence_environment_request",
            scope=target.label,
            changed=changed,
        )
        return SequenceState(
            scope=target,
            current_value=value,
            changed=changed,
            previous_environment=active.environment,
        )

    def to_response(self, state: SequenceState) -> SequenceResponse:
        scope = state.scope
        data = dict(
            company_id=scope.company_id,
            document_type=scope.document_type.value,
            branch=scope.branch,
            terminal=scope.terminal,
            environment=scope.environment.value,
            current_value=state.current_value,
            next_consecutive=state.next_consecutive,
        )
        if state.previous_environment is not None:
            return SwitchEnvironmentResponse(
                changed=state.changed,
                previous_environment=state.previous_environment.value,
                **data,
            )
        return SequenceResponse(**data)
