from typing import Dict, List, Optional
import structlog
from scriptflow.core.diffs import DiffApplyError, apply_unified_diff
from scriptflow.core.errors import AIProviderError, InvalidChangesetState, StaleChangeset
from scriptflow.core.security import CurrentUser
from scriptflow.models.schemas import (
    ChangeSetStatus,
    EnhanceScriptRequest,
    ScriptChangeSet,
    ScriptRevision,
)
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.interfaces.changeset_repository import IChangeSetRepository
from scriptflow.repositories.interfaces.script_repository import IScriptRepository

logger = structlog.get_logger()


class ChangeSetService:
    """Change-set engine: AI proposals, human review, revision materialization.

    A change-set starts ``proposed`` and ends in exactly one of ``accepted`` or
    ``rejected``. Several proposals may be open on one script at a time; accepting
    one only invalidates the others if their diffs stop applying.
    """

    def __init__(
        self,
        script_repository: IScriptRepository,
        changeset_repository: IChangeSetRepository,
        ai_services: Dict[str, IAIService],
        default_provider: str,
    ):
        self.script_repository = script_repository
        self.changeset_repository = changeset_repository
        self.ai_services = ai_services
        self.default_provider = default_provider

    def _resolve_provider(self, name: Optional[str]) -> IAIService:
        provider_name = name or self.default_provider
        service = self.ai_services.get(provider_name)
        if service is None:
            raise AIProviderError(
                f"Unknown AI provider '{provider_name}'",
                details={"provider": provider_name, "available": sorted(self.ai_services)},
            )
        return service

    async def propose(self, script_id: int, request: EnhanceScriptRequest, user: CurrentUser) -> ScriptChangeSet:
        """Step 2: ask the AI for an improvement and record it as a proposal"""
        script = await self.script_repository.get_owned(script_id, user.user_id)
        config = request.provider_config
        provider = self._resolve_provider(config.provider.value if config.provider else None)

        logger.info(
            "Requesting AI enhancement",
            script_id=script_id,
            provider=provider.provider_name,
            model=config.model,
            prompt=request.prompt[:100],
        )
        try:
            enhancement = await provider.enhance_script(
                script.content,
                request.prompt,
                model=config.model,
                temperature=config.temperature,
            )
        except AIProviderError:
            raise
        except Exception as e:
            logger.error("AI enhancement failed", script_id=script_id, provider=provider.provider_name, error=str(e))
            raise AIProviderError(
                "AI provider request failed",
                details={"provider": provider.provider_name, "error": str(e)},
            )

        changeset = await self.changeset_repository.create(
            script_id=script.id,
            prompt=request.prompt,
            enhancement=enhancement,
            ai_provider=provider.provider_name,
            base_version=script.current_version,
            created_by=user.user_id,
        )
        logger.info(
            "Change-set proposed",
            script_id=script_id,
            changeset_id=changeset.id,
            confidence=changeset.confidence,
            ai_model=changeset.ai_model,
        )
        return changeset

    async def get_changeset(self, script_id: int, changeset_id: int, user: CurrentUser) -> ScriptChangeSet:
        """Step 3: fetch a proposal for human review"""
        await self.script_repository.get_owned(script_id, user.user_id)
        return await self.changeset_repository.get(script_id, changeset_id)

    async def list_changesets(
        self, script_id: int, user: CurrentUser, status: Optional[ChangeSetStatus] = None
    ) -> List[ScriptChangeSet]:
        await self.script_repository.get_owned(script_id, user.user_id)
        return await self.changeset_repository.list_for_script(script_id, status=status)

    async def accept(self, script_id: int, changeset_id: int, user: CurrentUser) -> ScriptRevision:
        script = await self.script_repository.get_owned(script_id, user.user_id)
        changeset = await self.changeset_repository.get(script_id, changeset_id)
        self._require_proposed(changeset)

        try:
            new_content = apply_unified_diff(script.content, changeset.proposed_diff)
        except DiffApplyError as e:
            logger.warning(
                "Change-set no longer applies",
                script_id=script_id,
                changeset_id=changeset_id,
                base_version=changeset.base_version,
                current_version=script.current_version,
                error=str(e),
            )
            raise StaleChangeset(
                f"Change-set {changeset_id} no longer applies to the current script",
                details={
                    "changeset_id": changeset_id,
                    "base_version": changeset.base_version,
                    "current_version": script.current_version,
                    "reason": str(e),
                },
            )

        revision = await self.changeset_repository.accept(
            changeset,
            expected_version=script.current_version,
            new_content=new_content,
            applied_by=user.user_id,
        )
        logger.info(
            "Change-set accepted",
            script_id=script_id,
            changeset_id=changeset_id,
            revision_id=revision.id,
            version=revision.version,
        )
        return revision

    async def reject(self, script_id: int, changeset_id: int, user: CurrentUser) -> ScriptChangeSet:
        await self.script_repository.get_owned(script_id, user.user_id)
        changeset = await self.changeset_repository.get(script_id, changeset_id)
        self._require_proposed(changeset)
        rejected = await self.changeset_repository.reject(changeset, resolved_by=user.user_id)
        logger.info("Change-set rejected", script_id=script_id, changeset_id=changeset_id)
        return rejected

    @staticmethod
    def _require_proposed(changeset: ScriptChangeSet) -> None:
        if changeset.status != ChangeSetStatus.PROPOSED:
            raise InvalidChangesetState(
                f"Change-set {changeset.id} is already {changeset.status.value}",
                details={"changeset_id": changeset.id, "status": changeset.status.value},
            )
