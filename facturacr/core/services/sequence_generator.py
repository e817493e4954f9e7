"""
Sequence and document key generation.

SequenceGenerator exclusively owns the consecutive counters. Every scope has
its own asyncio.Lock, and next() reads, increments and persists the counter
while holding it, so a call issues at most one value even when many
coroutines ask for the same scope at once.

DocumentKeyService turns an issued value into the consecutive + clave pair
and memoizes it on the editing session.
"""

import asyncio
from datetime import date, datetime
from zoneinfo import ZoneInfo

from facturacr.config import get_logger
from facturacr.core.entities.document import IdentificationType
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.sequence import (
    MAX_SEQUENCE,
    DocumentKey,
    Environment,
    SequenceScope,
    SituationCode,
)
from facturacr.core.entities.session import DocumentSession
from facturacr.core.exceptions import SequenceExhaustedError
from facturacr.core.interfaces import ICompanyStore, ISequenceStore
from facturacr.core.services.clave import (
    COUNTRY_CODE,
    build_clave,
    format_consecutive,
    generate_security_code,
    normalize_issuer_id,
)

logger = get_logger(__name__)


class SequenceGenerator:
    """
    Per-scope consecutive counters.

    A scope starts Uninitialized; its first request loads the persisted
    counter (0 when absent) and the scope is Ready from then on.
    """

    def __init__(
        self,
        store: ISequenceStore,
        default_environment: Environment = Environment.SANDBOX,
    ):
        self._store = store
        self._default_environment = default_environment
        self._locks: dict[SequenceScope, asyncio.Lock] = {}
        self._counters: dict[SequenceScope, int] = {}

    def _lock_for(self, scope: SequenceScope) -> asyncio.Lock:
        return self._locks.setdefault(scope, asyncio.Lock())

    def is_ready(self, scope: SequenceScope) -> bool:
        return scope in self._counters

    async def _load(self, scope: SequenceScope) -> int:
        current = self._counters.get(scope)
        if current is None:
            current = await self._store.get_counter(scope)
            self._counters[scope] = current
            logger.debug("sequence_scope_loaded", scope=scope.label, value=current)
        return current

    async def next(self, scope: SequenceScope) -> int:
        """
        Issue the next value for a scope.

        The value is persisted before it is returned; if persisting fails
        nothing is issued and the scope reloads from the store next time.

        Raises:
            SequenceExhaustedError: the 10-digit sequence is used up
            DuplicateConsecutiveError: the store already holds this value
        """
        async with self._lock_for(scope):
            current = await self._load(scope)
            value = current + 1
            if value > MAX_SEQUENCE:
                logger.error("sequence_exhausted", scope=scope.label, value=current)
                raise SequenceExhaustedError(scope.label, current)

            try:
                await self._store.set_counter(scope, value)
            except Exception:
                self._counters.pop(scope, None)
                raise

            self._counters[scope] = value
            logger.info("consecutive_issued", scope=scope.label, value=value)
            return value

    async def current(self, scope: SequenceScope) -> int:
        """Last issued value for a scope, without issuing a new one."""
        async with self._lock_for(scope):
            return await self._load(scope)

    async def active_environment(self, scope: SequenceScope) -> Environment:
        active = await self._store.get_active_environment(scope)
        return active or self._default_environment

    async def resolve_scope(
        self,
        company_id: str,
        document_type: DocumentType,
        branch: str,
        terminal: str,
    ) -> SequenceScope:
        """Build the scope for a document, in its currently active environment."""
        scope = SequenceScope(
            company_id=company_id,
            document_type=document_type,
            branch=branch,
            terminal=terminal,
            environment=self._default_environment,
        )
        return scope.with_environment(await self.active_environment(scope))

    async def switch_environment(self, scope: SequenceScope, environment: Environment) -> bool:
        """
        Make `environment` active for the scope, starting its counter at 0.

        Only the target scope is reset. Switching to the environment that is
        already active does nothing.

        Returns:
            True if the environment changed
        """
        target = scope.with_environment(environment)
        async with self._lock_for(target):
            active = await self.active_environment(scope)
            if active == environment:
                logger.info(
                    "sequence_environment_unchanged",
                    scope=target.label,
                    environment=environment.value,
                )
                return False

            await self._store.reset_counter(target)
            await self._store.set_active_environment(target)
            self._counters[target] = 0

            logger.warning(
                "sequence_environment_switched",
                scope=target.label,
                previous=active.value,
                environment=environment.value,
            )
            return True


class DocumentKeyService:
    """Mints consecutive + clave pairs and memoizes them per session."""

    def __init__(
        self,
        sequence_generator: SequenceGenerator,
        company_store: ICompanyStore,
        country_code: str = COUNTRY_CODE,
        security_code_policy: str = "per_company",
        timezone: str = "America/Costa_Rica",
    ):
        self._sequence = sequence_generator
        self._companies = company_store
        self._country_code = country_code
        self._policy = security_code_policy
        self._tz = ZoneInfo(timezone)
        self._codes: dict[str, str] = {}
        self._codes_lock = asyncio.Lock()

    @property
    def sequence(self) -> SequenceGenerator:
        return self._sequence

    async def security_code(self, company_id: str) -> str:
        """
        Security code for a company's next clave.

        With the per_company policy the code is generated once, persisted in
        the company store and reused for every document of that company.
        """
        if self._policy == "per_document":
            return generate_security_code()

        async with self._codes_lock:
            code = self._codes.get(company_id)
            if code is None:
                code = await self._companies.get_security_code(company_id)
            if code is None:
                generated = generate_security_code()
                await self._companies.set_security_code(company_id, generated)
                # Another process may have stored its code first
                code = await self._companies.get_security_code(company_id) or generated
                logger.info("security_code_generated", company_id=company_id)
            self._codes[company_id] = code
            return code

    def now(self) -> datetime:
        return datetime.now(self._tz)

    async def mint(
        self,
        scope: SequenceScope,
        issuer_type: IdentificationType | str,
        issuer_id: str,
        situation: SituationCode = SituationCode.NORMAL,
        emission_date: date | None = None,
    ) -> DocumentKey:
        """
        Consume the next consecutive of a scope and build its clave.

        Components are validated before a number is consumed.
        """
        normalize_issuer_id(issuer_type, issuer_id)
        format_consecutive(scope.branch, scope.terminal, scope.document_type, 1)

        sequence = await self._sequence.next(scope)
        consecutive = format_consecutive(
            scope.branch, scope.terminal, scope.document_type, sequence
        )
        security_code = await self.security_code(scope.company_id)
        issued_at = self.now()

        clave = build_clave(
            issuer_type,
            issuer_id,
            consecutive,
            situation,
            security_code,
            emission_date or issued_at.date(),
            self._country_code,
        )
        return DocumentKey(
            clave=clave,
            consecutive=consecutive,
            sequence=sequence,
            scope=scope,
            situation=situation,
            issued_at=issued_at,
        )

    async def ensure_key(
        self,
        session: DocumentSession,
        issuer_type: IdentificationType | str,
        issuer_id: str,
        situation: SituationCode = SituationCode.NORMAL,
    ) -> DocumentKey:
        """
        Return the session's key, minting it on the first call only.

        Retries of the same logical document reuse the memoized key.
        """
        async with session.key_lock:
            if session.key is not None:
                return session.key

            scope = await self._sequence.resolve_scope(
                session.company_id,
                session.document_type,
                session.branch,
                session.terminal,
            )
            session.key = await self.mint(scope, issuer_type, issuer_id, situation)
            logger.info(
                "session_key_minted",
                session_id=session.id,
                clave=session.key.clave,
                consecutive=session.key.consecutive,
            )
            return session.key
