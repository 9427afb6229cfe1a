"""Tool handlers for the Langfuse prompt-management tools.

Each handler validates its raw arguments, calls `LangfuseApiClient`, and wires
the shared caches around the call: read tools consult and populate a named
cache, mutating tools invalidate the entries they make stale. Expected failures
(`LangfuseError`) become an error `ToolOutput`, so one bad call never takes the
server down.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from langfuse_prompt_mcp.cache import CacheRegistry, TTLCache
from langfuse_prompt_mcp.core.logging_config import get_logger
from langfuse_prompt_mcp.langfuse_api import (
    ApiResult,
    CreatePromptParams,
    LangfuseApiClient,
    LangfuseApiError,
    LangfuseError,
    PromptListItem,
    PromptListPage,
    PromptValidationError,
    PromptVersion,
    UpdatePromptLabelsParams,
)

from .definitions import (
    BatchUpdateLabelsInput,
    CreatePromptInput,
    DeletePromptInput,
    ExportPromptsInput,
    GetPromptInput,
    ImportedPrompt,
    ImportPromptsInput,
    ListPromptsInput,
    ToolDefinition,
    UpdatePromptLabelsInput,
    batch_update_labels_tool,
    create_prompt_tool,
    delete_prompt_tool,
    export_prompts_tool,
    get_prompt_tool,
    import_prompts_tool,
    list_prompts_tool,
    parse_tool_input,
    update_prompt_labels_tool,
)
from .templating import compile_prompt, extract_variables

logger = get_logger(__name__)

PROMPTS_CACHE = "prompts"
PROMPTS_LIST_CACHE = "prompts-list"
DEFAULT_PROMPT_CACHE_TTL = 300.0
DEFAULT_LIST_CACHE_TTL = 60.0
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
EXPORT_PAGE_LIMIT = 100
DELETE_TRACKING_ISSUE = "https://github.com/langfuse/langfuse/issues/7693"

InputType = TypeVar("InputType", bound=BaseModel)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class ToolOutput(BaseModel):
    """Text payload returned to the MCP client."""

    text: str
    is_error: bool = False

    @classmethod
    def from_data(cls, data: Any, *, is_error: bool = False) -> "ToolOutput":
        return cls(text=to_json(data), is_error=is_error)


class ToolHandler(ABC, Generic[InputType]):
    """Abstract base class for tool handlers.

    Subclasses declare their `definition` and implement `execute`; calling the
    handler validates raw arguments and turns `LangfuseError` into an error
    output.
    """

    definition: ToolDefinition
    action: str = "running tool"

    def __init__(self, client: LangfuseApiClient, caches: CacheRegistry) -> None:
        self._client = client
        self._caches = caches

    @property
    def name(self) -> str:
        """Get the tool name."""
        return self.definition.name

    @property
    def input_model(self) -> Type[InputType]:
        return self.definition.input_schema  # type: ignore[return-value]

    @abstractmethod
    async def execute(self, input_data: InputType) -> ToolOutput:
        """Execute the tool operation.

        Args:
            input_data: Validated tool input

        Returns:
            Output to send back to the client
        """

    def failure(self, error: LangfuseError) -> ToolOutput:
        payload = {"error": f"Error {self.action}: {error}"}
        payload.update(error.to_dict())
        return ToolOutput.from_data(payload, is_error=True)

    async def __call__(self, arguments: Optional[Mapping[str, Any]]) -> ToolOutput:
        """Validate ``arguments`` and execute the tool.

        Args:
            arguments: Raw tool arguments from the MCP request

        Returns:
            The tool output; failures are reported with ``is_error`` set
        """
        try:
            input_data = parse_tool_input(self.input_model, arguments)
            return await self.execute(input_data)
        except LangfuseError as e:
            logger.info(f"Tool {self.name} failed: kind={e.kind.value} error={e}")
            return self.failure(e)

    # Cache helpers shared by the prompt tools

    def _prompt_cache(self) -> TTLCache[Any]:
        return self._caches.get_or_create(PROMPTS_CACHE, ttl=DEFAULT_PROMPT_CACHE_TTL)

    def _list_cache(self) -> TTLCache[Any]:
        return self._caches.get_or_create(PROMPTS_LIST_CACHE, ttl=DEFAULT_LIST_CACHE_TTL)

    def _invalidate_prompt(self, name: str) -> None:
        """Drop every listing and every cached lookup of prompt ``name``."""
        self._list_cache().clear()
        removed = self._prompt_cache().invalidate_pattern(re.escape(name))
        logger.info(f"Invalidated caches for prompt '{name}' ({removed} cached lookups)")


def _summary(item: PromptListItem) -> Dict[str, Any]:
    return _drop_none(
        {
            "name": item.name,
            "type": item.type,
            "latestVersion": item.latest,
            "versions": item.versions or None,
            "labels": item.labels,
            "tags": item.tags,
            "createdAt": item.created_at,
            "updatedAt": item.updated_at or item.last_updated_at,
        }
    )


class ListPromptsHandler(ToolHandler[ListPromptsInput]):
    """Handler for list-prompts; results are cached per filter combination."""

    definition = list_prompts_tool
    action = "listing prompts"

    @staticmethod
    def cache_key(input_data: ListPromptsInput) -> str:
        return json.dumps(
            {
                "name": input_data.name or "",
                "label": input_data.label or "",
                "tag": input_data.tag or "",
                "page": input_data.page or DEFAULT_PAGE,
                "limit": input_data.limit or DEFAULT_LIMIT,
            }
        )

    async def fetch(self, input_data: ListPromptsInput) -> Tuple[PromptListPage, bool]:
        """Return the requested page and whether it came from the cache."""
        cache = self._list_cache()
        key = self.cache_key(input_data)
        cached = cache.get(key)
        if cached is not None:
            return cached, True
        result = await self._client.list_prompts(
            name=input_data.name,
            label=input_data.label,
            tag=input_data.tag,
            page=input_data.page or DEFAULT_PAGE,
            limit=input_data.limit or DEFAULT_LIMIT,
        )
        page = result.unwrap()
        cache.set(key, page)
        return page, False

    async def execute(self, input_data: ListPromptsInput) -> ToolOutput:
        page, cached = await self.fetch(input_data)
        meta = page.meta
        return ToolOutput.from_data(
            {
                "prompts": [_summary(item) for item in page.data],
                "pagination": {
                    "page": meta.page,
                    "limit": meta.limit,
                    "totalPages": meta.total_pages,
                    "totalItems": meta.total_items,
                    "hasNextPage": meta.page < meta.total_pages,
                    "hasPreviousPage": meta.page > 1,
                },
                "cached": cached,
            }
        )


class GetPromptHandler(ToolHandler[GetPromptInput]):
    """Handler for get-prompt; lookups are cached per name, version and label."""

    definition = get_prompt_tool
    action = "getting prompt"

    @staticmethod
    def cache_key(input_data: GetPromptInput) -> str:
        return f"{input_data.name}:{input_data.version or 'latest'}:{input_data.label or ''}"

    async def fetch(self, input_data: GetPromptInput) -> Tuple[PromptVersion, bool]:
        """Return the prompt version and whether it came from the cache."""
        cache = self._prompt_cache()
        key = self.cache_key(input_data)
        cached = cache.get(key)
        if cached is not None:
            return cached, True
        result = await self._client.get_prompt(input_data.name, version=input_data.version, label=input_data.label)
        prompt = result.unwrap()
        cache.set(key, prompt)
        return prompt, False

    async def execute(self, input_data: GetPromptInput) -> ToolOutput:
        prompt, cached = await self.fetch(input_data)
        arguments = input_data.arguments or {}
        variables = extract_variables(prompt.prompt)
        compiled = compile_prompt(prompt.prompt, arguments) if arguments else prompt.prompt
        return ToolOutput.from_data(
            {
                "name": prompt.name,
                "version": prompt.version,
                "type": prompt.type,
                "prompt": compiled,
                "originalPrompt": prompt.prompt,
                "config": prompt.config,
                "labels": prompt.labels,
                "tags": prompt.tags,
                "variables": variables,
                "providedArguments": arguments,
                "missingArguments": [v for v in variables if not arguments.get(v)],
                "createdAt": prompt.created_at,
                "updatedAt": prompt.updated_at,
                "commitMessage": prompt.commit_message,
                "cached": cached,
            }
        )


class CreatePromptHandler(ToolHandler[CreatePromptInput]):
    """Handler for create-prompt."""

    definition = create_prompt_tool
    action = "creating prompt"

    async def execute(self, input_data: CreatePromptInput) -> ToolOutput:
        params = CreatePromptParams(
            name=input_data.name,
            type=input_data.type,
            prompt=input_data.prompt,
            config=input_data.config,
            labels=input_data.labels or [],
            tags=input_data.tags or [],
            commit_message=input_data.commit_message,
        )
        created = (await self._client.create_prompt(params)).unwrap()
        logger.info(f"Created prompt '{created.name}' version {created.version}")
        self._invalidate_prompt(input_data.name)
        return ToolOutput.from_data(
            {
                "success": True,
                "prompt": {
                    "name": created.name,
                    "version": created.version,
                    "type": created.type,
                    "prompt": created.prompt,
                    "config": created.config,
                    "labels": created.labels,
                    "tags": created.tags,
                    "variables": extract_variables(created.prompt),
                    "createdAt": created.created_at,
                    "commitMessage": created.commit_message,
                },
                "message": f"Successfully created prompt '{input_data.name}' version {created.version}",
            }
        )


class UpdatePromptLabelsHandler(ToolHandler[UpdatePromptLabelsInput]):
    """Handler for update-prompt-labels; the new labels replace the old set."""

    definition = update_prompt_labels_tool
    action = "updating prompt labels"

    async def execute(self, input_data: UpdatePromptLabelsInput) -> ToolOutput:
        result = await self._client.update_prompt_labels(input_data.name, input_data.version, input_data.new_labels)
        updated = result.unwrap()
        logger.info(f"Updated labels of '{input_data.name}' version {input_data.version}: {updated.labels}")
        self._invalidate_prompt(input_data.name)
        return ToolOutput.from_data(
            {
                "success": True,
                "prompt": {
                    "name": updated.name,
                    "version": updated.version,
                    "type": updated.type,
                    "labels": updated.labels,
                    "updatedAt": updated.updated_at,
                },
                "message": f"Successfully updated labels for '{input_data.name}' version {input_data.version}",
            }
        )


class DeletePromptHandler(ToolHandler[DeletePromptInput]):
    """Handler for delete-prompt; Langfuse cannot delete prompts yet."""

    definition = delete_prompt_tool
    action = "deleting prompt"

    async def execute(self, input_data: DeletePromptInput) -> ToolOutput:
        if input_data.version is not None and input_data.delete_all:
            raise PromptValidationError("deleteAll", "Cannot specify both version and deleteAll")
        result = await self._client.delete_prompt(input_data.name, version=input_data.version)
        error = result.error
        if isinstance(error, LangfuseApiError) and error.status_code == 501:
            return ToolOutput.from_data(
                {
                    "error": "Delete operation not yet supported",
                    "message": (
                        "The Langfuse API does not currently support deleting prompts. "
                        f"This feature is being tracked at: {DELETE_TRACKING_ISSUE}"
                    ),
                    "workaround": "Consider using labels to mark prompts as deprecated or archived instead.",
                    "status": error.status_code,
                },
                is_error=True,
            )
        result.unwrap()
        self._invalidate_prompt(input_data.name)
        return ToolOutput.from_data({"success": True, "message": f"Successfully deleted prompt '{input_data.name}'"})


class BatchUpdateLabelsHandler(ToolHandler[BatchUpdateLabelsInput]):
    """Handler for batch-update-labels; reports the outcome of every update."""

    definition = batch_update_labels_tool
    action = "in batch update"

    async def execute(self, input_data: BatchUpdateLabelsInput) -> ToolOutput:
        updates = [
            UpdatePromptLabelsParams(name=u.name, version=u.version, new_labels=u.new_labels)
            for u in input_data.updates
        ]
        results = await self._client.batch_update_labels(updates)

        for name in dict.fromkeys(u.name for u in updates):
            self._invalidate_prompt(name)

        items: List[Dict[str, Any]] = []
        for index, (update, result) in enumerate(zip(updates, results)):
            if result.ok and result.value is not None:
                items.append(
                    {
                        "requestIndex": index,
                        "name": result.value.name,
                        "version": result.value.version,
                        "labels": result.value.labels,
                        "success": True,
                    }
                )
            elif result.error is not None:
                items.append(
                    {
                        "requestIndex": index,
                        "name": update.name,
                        "version": update.version,
                        "success": False,
                        "error": result.error.to_dict(),
                    }
                )
        succeeded = sum(1 for item in items if item["success"])
        logger.info(f"Batch label update: {succeeded}/{len(updates)} succeeded")
        return ToolOutput.from_data(
            {
                "totalRequested": len(updates),
                "totalSuccessful": succeeded,
                "totalFailed": len(updates) - succeeded,
                "results": items,
            },
            is_error=succeeded == 0,
        )


def _export_entry(prompt: PromptVersion) -> Dict[str, Any]:
    return _drop_none(
        {
            "name": prompt.name,
            "version": prompt.version,
            "type": prompt.type,
            "prompt": prompt.prompt,
            "config": prompt.config,
            "labels": prompt.labels,
            "tags": prompt.tags,
            "commitMessage": prompt.commit_message,
            "createdAt": prompt.created_at,
        }
    )


class ExportPromptsHandler(ToolHandler[ExportPromptsInput]):
    """Handler for export-prompts (JSON envelope or JSONL)."""

    definition = export_prompts_tool
    action = "exporting prompts"

    async def _all_names(self) -> List[str]:
        first = (await self._client.list_prompts(limit=EXPORT_PAGE_LIMIT)).unwrap()
        names = [p.name for p in first.data]
        for page in range(2, first.meta.total_pages + 1):
            more = (await self._client.list_prompts(page=page, limit=EXPORT_PAGE_LIMIT)).unwrap()
            names.extend(p.name for p in more.data)
        return names

    async def execute(self, input_data: ExportPromptsInput) -> ToolOutput:
        names = list(input_data.names) if input_data.names else await self._all_names()

        exported: List[Dict[str, Any]] = []
        for name in names:
            # Version history is not exposed by the API; both modes export one version per prompt
            if input_data.include_all_versions:
                result = await self._client.get_prompt(name)
            else:
                result = await self._client.get_prompt(name, label="latest")
            if result.ok and result.value is not None:
                exported.append(_export_entry(result.value))
            elif result.error is not None:
                exported.append({"name": name, "error": str(result.error)})

        logger.info(f"Exported {len(exported)} prompts as {input_data.format}")
        if input_data.format == "jsonl":
            text = "\n".join(json.dumps(item, ensure_ascii=False, default=str) for item in exported)
            return ToolOutput(text=text)
        return ToolOutput.from_data(
            {
                "exportedAt": datetime.now(timezone.utc).isoformat(),
                "totalPrompts": len(exported),
                "prompts": exported,
            }
        )


class ImportPromptsHandler(ToolHandler[ImportPromptsInput]):
    """Handler for import-prompts (JSON, JSON array, export envelope or JSONL)."""

    definition = import_prompts_tool
    action = "importing prompts"

    @staticmethod
    def parse_entries(data: str) -> List[Any]:
        """Split import data into raw prompt entries.

        Raises:
            PromptValidationError: When the data is neither JSON nor JSONL, or holds no entries.
        """
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            entries: List[Any] = []
            for number, line in enumerate(data.strip().splitlines(), start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise PromptValidationError("data", f"Line {number} is not valid JSON: {e.msg}") from e
        else:
            if isinstance(parsed, dict) and isinstance(parsed.get("prompts"), list):
                entries = parsed["prompts"]
            elif isinstance(parsed, list):
                entries = parsed
            else:
                entries = [parsed]
        if not entries:
            raise PromptValidationError("data", "No valid prompts found in import data")
        return entries

    async def _exists(self, name: str) -> ApiResult[bool]:
        result = await self._client.get_prompt(name)
        if result.ok:
            return ApiResult.success(True)
        error = result.error
        if isinstance(error, LangfuseApiError) and error.status_code == 404:
            return ApiResult.success(False)
        return ApiResult.failure(error)  # type: ignore[arg-type]

    async def execute(self, input_data: ImportPromptsInput) -> ToolOutput:
        entries = self.parse_entries(input_data.data)

        valid: List[ImportedPrompt] = []
        validation: List[Dict[str, Any]] = []
        for entry in entries:
            try:
                prompt = parse_tool_input(ImportedPrompt, entry if isinstance(entry, dict) else {})
            except PromptValidationError as e:
                name = entry.get("name", "unknown") if isinstance(entry, dict) else "unknown"
                validation.append({"name": name, "valid": False, "error": str(e)})
            else:
                valid.append(prompt)
                validation.append({"name": prompt.name, "valid": True})

        if input_data.dry_run:
            return ToolOutput.from_data(
                {
                    "dryRun": True,
                    "totalPrompts": len(entries),
                    "validPrompts": len(valid),
                    "invalidPrompts": len(entries) - len(valid),
                    "validationResults": validation,
                }
            )

        results: List[Dict[str, Any]] = []
        for prompt in valid:
            if not input_data.overwrite_existing:
                exists = await self._exists(prompt.name)
                if not exists.ok:
                    results.append({"name": prompt.name, "success": False, "error": str(exists.error)})
                    continue
                if exists.value:
                    results.append(
                        {
                            "name": prompt.name,
                            "success": False,
                            "skipped": True,
                            "reason": "Prompt already exists (use overwriteExisting to replace)",
                        }
                    )
                    continue
            params = CreatePromptParams(
                name=prompt.name,
                type=prompt.type,
                prompt=prompt.prompt,
                config=prompt.config,
                labels=prompt.labels or [],
                tags=prompt.tags or [],
                commit_message=prompt.commit_message or "Imported prompt",
            )
            created = await self._client.create_prompt(params)
            if created.ok and created.value is not None:
                results.append({"name": created.value.name, "success": True, "version": created.value.version})
            else:
                results.append({"name": prompt.name, "success": False, "error": str(created.error)})

        self._list_cache().clear()
        self._prompt_cache().clear()

        imported = sum(1 for r in results if r["success"])
        skipped = sum(1 for r in results if r.get("skipped"))
        logger.info(f"Imported {imported} prompts ({skipped} skipped)")
        return ToolOutput.from_data(
            {
                "totalProcessed": len(entries),
                "totalValid": len(valid),
                "totalInvalid": len(entries) - len(valid),
                "totalImported": imported,
                "totalSkipped": skipped,
                "totalFailed": len(results) - imported - skipped,
                "results": results,
            }
        )


class ToolHandlerRegistry:
    """Registry for managing tool handlers."""

    def __init__(self) -> None:
        """Initialize the handler registry."""
        self._handlers: Dict[str, ToolHandler[Any]] = {}

    def register(self, handler: ToolHandler[Any]) -> None:
        """Register a tool handler.

        Args:
            handler: ToolHandler instance to register
        """
        self._handlers[handler.name] = handler
        logger.debug(f"Registered tool handler: {handler.name}")

    def get(self, name: str) -> Optional[ToolHandler[Any]]:
        """Get a tool handler by name.

        Args:
            name: Name of the handler

        Returns:
            ToolHandler instance or None if not found
        """
        return self._handlers.get(name)

    def get_all(self) -> Dict[str, ToolHandler[Any]]:
        """Get all registered handlers.

        Returns:
            Dictionary of all registered handlers
        """
        return self._handlers.copy()

    def definitions(self) -> List[ToolDefinition]:
        return [handler.definition for handler in self._handlers.values()]

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]]) -> ToolOutput:
        """Dispatch a tool call by name."""
        handler = self.get(name)
        if handler is None:
            return ToolOutput.from_data({"error": f"Unknown tool: {name}"}, is_error=True)
        return await handler(arguments)


HANDLER_TYPES: Tuple[Type[ToolHandler[Any]], ...] = (
    ListPromptsHandler,
    GetPromptHandler,
    CreatePromptHandler,
    UpdatePromptLabelsHandler,
    DeletePromptHandler,
    BatchUpdateLabelsHandler,
    ExportPromptsHandler,
    ImportPromptsHandler,
)


def build_handler_registry(
    client: LangfuseApiClient,
    caches: CacheRegistry,
    *,
    prompt_cache_ttl: float = DEFAULT_PROMPT_CACHE_TTL,
    list_cache_ttl: float = DEFAULT_LIST_CACHE_TTL,
) -> ToolHandlerRegistry:
    """Create every prompt tool handler around one client and one cache registry.

    The named caches are registered here first, so their TTLs come from the
    arguments rather than from whichever handler touches them first.
    """
    caches.get_or_create(PROMPTS_CACHE, ttl=prompt_cache_ttl)
    caches.get_or_create(PROMPTS_LIST_CACHE, ttl=list_cache_ttl)
    registry = ToolHandlerRegistry()
    for handler_type in HANDLER_TYPES:
        registry.register(handler_type(client, caches))
    return registry
