"""
Capacities MCP Server

Exposes the Capacities personal knowledge base to MCP clients over stdio.

This server:
1. Loads the Capacities API token and default space from the environment
2. Fulfils read/query tools through the documented Capacities API endpoints
3. Validates task tools and answers them with a deterministic unsupported result,
   because the public API has no task endpoints
4. Returns every tool result as markdown text plus a structured payload
"""

import sys
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastmcp import FastMCP
from fastmcp.tools.tool import ToolResult

from .api import mutations, read_query
from .api.results import ToolOutcome, error_result
from .client import DOCUMENTED_ENDPOINTS, CapacitiesClient
from .config import CapacitiesConfig, load_config_from_environment
from .errors import ConfigError
from .middleware import MCPLoggingMiddleware
from .utils.logging_config import get_logger, log_dict, log_tool_result, setup_file_logging

# Configure logging using centralized utility
setup_file_logging(log_file="logs/capacities-mcp.log")
logger = get_logger(__name__)

logger.info(f"Python interpreter: {sys.executable}")
logger.info(f"Python version: {sys.version}")

# Global components, set by the lifespan
config: CapacitiesConfig | None = None
client: CapacitiesClient | None = None


@asynccontextmanager
async def lifespan_context(server):
    """Lifespan context manager for startup and shutdown"""
    global config, client

    logger.info("Starting Capacities MCP Server...")

    try:
        config = load_config_from_environment()
        log_dict(logger, "Capacities configuration:", asdict(config))
        client = CapacitiesClient(config)
        logger.info("Capacities MCP Server started successfully")

        yield

    except Exception as e:
        logger.error(f"Failed to start Capacities MCP Server: {e}", exc_info=True)
        raise

    finally:
        logger.info("Shutting down Capacities MCP Server...")
        if client:
            client.session.close()
        client = None
        config = None


mcp = FastMCP(
    name="Capacities MCP Server",
    instructions="""
    This server connects to a Capacities personal knowledge base through the
    public Capacities API.

    Backed by the API:
    - get_space_info: space title and structure (object type) definitions
    - search_entities: keyword search with a best-effort type filter
    - save_weblink / save_to_daily_note: write into a space

    Not available in the public API (input is validated, then an explicit
    unsupported result is returned with supported=false):
    - get_entity_by_id, list_tasks, create_task, update_task, complete_task

    Every tool returns markdown text and a structured payload tagged with the
    tool name. Errors carry a code, a message, and an actionable next step.
    Dates accept YYYY-MM-DD or "yesterday". space_id defaults to
    CAPACITIES_SPACE_ID when omitted.
    """,
    lifespan=lifespan_context,
)

mcp.add_middleware(
    MCPLoggingMiddleware(log_request_params=True, log_response_data=True, max_log_length=10000)
)


def _get_runtime() -> tuple[CapacitiesConfig, CapacitiesClient]:
    if config is None or client is None:
        raise ConfigError(
            "Capacities MCP Server is not initialized.",
            actionable_message="Restart the server with CAPACITIES_API_TOKEN set.",
        )
    return config, client


async def _run_tool(
    tool_name: str,
    handler: Callable[[CapacitiesConfig, CapacitiesClient], Awaitable[ToolOutcome]],
) -> ToolResult:
    """Run a handler with the runtime config and client, returning a FastMCP result."""
    try:
        runtime_config, runtime_client = _get_runtime()
    except ConfigError as e:
        return error_result(tool_name, e).to_tool_result()

    outcome = await handler(runtime_config, runtime_client)
    if outcome.is_error:
        logger.warning(f"{tool_name} returned {outcome.structured['error']['code']}")
    elif not outcome.supported:
        logger.info(f"{tool_name} is not supported by the Capacities API")
    return outcome.to_tool_result()


# =============================================================================
# READ / QUERY TOOLS
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def get_space_info(space_id: str | None = None) -> ToolResult:
    """
    Return space metadata and structure definitions for a Capacities space.

    Args:
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID

    Returns:
        Space ID, space title, number of accessible spaces, and the structures
        (object types) defined in the space
    """
    return await _run_tool(
        "get_space_info",
        lambda cfg, api: read_query.get_space_info(api, cfg, space_id=space_id),
    )


@mcp.tool()
@log_tool_result(logger)
async def search_entities(
    space_id: str | None = None,
    text: str | None = None,
    type: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int | None = None,
) -> ToolResult:
    """
    Search Capacities entities by keyword with best-effort filters.

    The public API only supports keyword lookup, so a text query is required
    for a real search. Without text the tool returns supported=false.

    Args:
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        text: Keyword query passed to the Capacities lookup endpoint
        type: Best-effort structure filter. Matches structure ID, title, or plural name
        date: Date filter (YYYY-MM-DD or "yesterday"). Accepted but not applied
        date_from: Range start (YYYY-MM-DD or "yesterday"). Requires date_to
        date_to: Range end (YYYY-MM-DD or "yesterday"). Requires date_from
        limit: Maximum entities to return after filtering, 1-100. Default: 20

    Returns:
        Matching entities, counts before and after the limit, and notes about
        filters that could not be applied
    """
    return await _run_tool(
        "search_entities",
        lambda cfg, api: read_query.search_entities(
            api,
            cfg,
            space_id=space_id,
            text=text,
            type_filter=type,
            date=date,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
        ),
    )


@mcp.tool()
@log_tool_result(logger)
async def get_entity_by_id(
    entity_id: str,
    structure_id: str,
    space_id: str | None = None,
) -> ToolResult:
    """
    Fetch an entity by ID. Not supported by the public Capacities API.

    Always returns supported=false, echoing the request and listing the
    capabilities that are available instead.

    Args:
        entity_id: Entity ID to fetch
        structure_id: Structure ID of the entity
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
    """
    return await _run_tool(
        "get_entity_by_id",
        lambda cfg, api: read_query.get_entity_by_id(
            cfg, entity_id=entity_id, structure_id=structure_id, space_id=space_id
        ),
    )


@mcp.tool()
@log_tool_result(logger)
async def list_tasks(
    space_id: str | None = None,
    status: str | None = None,
    date: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> ToolResult:
    """
    List tasks. Not supported by the public Capacities API.

    Filters are validated, then supported=false is returned.

    Args:
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        status: One of "open", "completed", "all". Default: "all"
        date: Date filter (YYYY-MM-DD or "yesterday")
        date_from: Range start (YYYY-MM-DD or "yesterday"). Requires date_to
        date_to: Range end (YYYY-MM-DD or "yesterday"). Requires date_from
    """
    return await _run_tool(
        "list_tasks",
        lambda cfg, api: read_query.list_tasks(
            cfg,
            space_id=space_id,
            status=status,
            date=date,
            date_from=date_from,
            date_to=date_to,
        ),
    )


# =============================================================================
# TASK TOOLS
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def create_task(
    title: str,
    space_id: str | None = None,
    description: str | None = None,
    due_date: str | None = None,
) -> ToolResult:
    """
    Create a task. Not supported by the public Capacities API.

    Input is validated, then supported=false is returned with the normalized task.

    Args:
        title: Task title (1-500 characters after trimming)
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        description: Optional task description
        due_date: Optional due date (YYYY-MM-DD or "yesterday")
    """
    return await _run_tool(
        "create_task",
        lambda cfg, api: mutations.create_task(
            cfg, title=title, space_id=space_id, description=description, due_date=due_date
        ),
    )


@mcp.tool()
@log_tool_result(logger)
async def update_task(
    task_id: str,
    space_id: str | None = None,
    title: str | None = None,
    description: str | None = None,
    due_date: str | None = None,
    status: str | None = None,
    clear_description: bool = False,
    clear_due_date: bool = False,
) -> ToolResult:
    """
    Update a task. Not supported by the public Capacities API.

    At least one change is required. Input is validated, then supported=false
    is returned with the normalized update.

    Args:
        task_id: Task identifier
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        title: New title (1-500 characters after trimming)
        description: New description
        due_date: New due date (YYYY-MM-DD or "yesterday")
        status: New status, "open" or "completed"
        clear_description: Remove the description
        clear_due_date: Remove the due date
    """
    return await _run_tool(
        "update_task",
        lambda cfg, api: mutations.update_task(
            cfg,
            task_id=task_id,
            space_id=space_id,
            title=title,
            description=description,
            due_date=due_date,
            status=status,
            clear_description=clear_description,
            clear_due_date=clear_due_date,
        ),
    )


@mcp.tool()
@log_tool_result(logger)
async def complete_task(
    task_id: str,
    space_id: str | None = None,
    completed: bool | None = None,
) -> ToolResult:
    """
    Complete or reopen a task. Not supported by the public Capacities API.

    Args:
        task_id: Task identifier
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        completed: True to complete, False to reopen. Default: True
    """
    return await _run_tool(
        "complete_task",
        lambda cfg, api: mutations.complete_task(
            cfg, task_id=task_id, space_id=space_id, completed=completed
        ),
    )


# =============================================================================
# WRITE TOOLS
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def save_weblink(
    url: str,
    space_id: str | None = None,
    title_overwrite: str | None = None,
    description_overwrite: str | None = None,
    tags: list[str] | None = None,
    md_text: str | None = None,
) -> ToolResult:
    """
    Save a web link into a Capacities space.

    Args:
        url: Absolute http(s) URL to save
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        title_overwrite: Title to use instead of the page title
        description_overwrite: Description to use instead of the page description
        tags: Tags to attach to the weblink
        md_text: Markdown notes to add to the weblink
    """
    return await _run_tool(
        "save_weblink",
        lambda cfg, api: mutations.save_weblink(
            api,
            cfg,
            url=url,
            space_id=space_id,
            title_overwrite=title_overwrite,
            description_overwrite=description_overwrite,
            tags=tags,
            md_text=md_text,
        ),
    )


@mcp.tool()
@log_tool_result(logger)
async def save_to_daily_note(
    md_text: str,
    space_id: str | None = None,
    no_time_stamp: bool = False,
) -> ToolResult:
    """
    Append markdown text to today's daily note.

    Args:
        md_text: Markdown text to append
        space_id: Optional space UUID. Default: CAPACITIES_SPACE_ID
        no_time_stamp: Do not prefix the entry with a timestamp. Default: False
    """
    return await _run_tool(
        "save_to_daily_note",
        lambda cfg, api: mutations.save_to_daily_note(
            api, cfg, md_text=md_text, space_id=space_id, no_time_stamp=no_time_stamp
        ),
    )


# =============================================================================
# RESOURCES
# =============================================================================


@mcp.resource("capacities://capabilities")
async def get_capabilities() -> str:
    """Describe which tools are backed by the Capacities API."""
    endpoint_lines = "\n".join(f"- `{endpoint}`" for endpoint in DOCUMENTED_ENDPOINTS)
    backed_lines = "\n".join(f"- {tool}" for tool in read_query.BACKED_TOOLS)
    unsupported_lines = "\n".join(f"- {tool}" for tool in read_query.UNSUPPORTED_TOOLS)
    return "\n".join(
        [
            "## Capacities API endpoints",
            endpoint_lines,
            "",
            "## Tools backed by the API",
            backed_lines,
            "",
            "## Tools that always return supported=false",
            unsupported_lines,
        ]
    )


# =============================================================================
# PROMPTS
# =============================================================================


@mcp.prompt()
def getting_started() -> str:
    """A prompt to help users get started with this MCP server."""
    return """
    Welcome to the Capacities MCP Server!

    1. get_space_info - See the space title and its structures (object types)
    2. search_entities - Search by keyword; narrow with type (a structure ID,
       title, or plural name) and limit
    3. save_weblink - Save a URL into the space
    4. save_to_daily_note - Append markdown to today's daily note

    Task tools and get_entity_by_id are not available in the public API and
    return supported=false after validating their input.

    Start with get_space_info to learn which structures exist, then use
    their names as the type filter in search_entities.
    """


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Run the MCP server"""
    logger.info("Initializing Capacities MCP Server...")
    mcp.run()


if __name__ == "__main__":
    main()
