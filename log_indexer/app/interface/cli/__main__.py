import asyncio
import inspect
import logging
from typing import Any, Optional

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer
from pydantic import BaseModel

from log_indexer.app.config import settings
from log_indexer.app.domain.errors import IndexerError
from log_indexer.app.interface.tasks import TASKS, TaskFn


load_dotenv()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("log_indexer.cli")

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing on chain event logs.")
app.add_typer(indexer_app, name="indexer")

_LATEST = "latest"


def _parse_block(value: str) -> int | None:
    value = value.strip().lower()
    if value in ("", _LATEST):
        return None
    return int(value)


def _parse_topics(value: str) -> list[str | list[str] | None] | None:
    """Comma separates positions, '|' separates OR values, '*' is a wildcard."""
    value = value.strip()
    if not value:
        return None
    topics: list[str | list[str] | None] = []
    for position in value.split(","):
        position = position.strip()
        if position in ("", "*"):
            topics.append(None)
        elif "|" in position:
            topics.append([t.strip() for t in position.split("|")])
        else:
            topics.append(position)
    return topics


def _resolve_rpc_url(rpc_url: str | None) -> str:
    if rpc_url:
        return rpc_url
    try:
        return settings.default_rpc_url()
    except ValueError as exc:
        logger.error("%s; pass --rpc-url", exc)
        raise typer.Exit(code=1)


def _run_task(task: TaskFn, **kwargs: Any) -> None:
    try:
        response: BaseModel = asyncio.run(task(**kwargs))
    except (IndexerError, ValueError) as exc:
        # ValueError covers pydantic request validation.
        logger.error("Task failed: %s", exc)
        raise typer.Exit(code=1)
    typer.echo(response.model_dump_json(indent=2))


@indexer_app.command("run")
def run() -> None:
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()
    task = TASKS[task_name]
    params = inspect.signature(task).parameters

    kwargs: dict[str, object] = {}

    if "rpc_url" in params:
        kwargs["rpc_url"] = inquirer.text(
            message="RPC URL:",
            default=str(settings.rpc_url or ""),
        ).execute()
    if "chain_id" in params:
        chain_id = inquirer.text(
            message="Chain ID (e.g. 1 for Ethereum mainnet, empty = no checkpoint):",
            default="1",
        ).execute()
        kwargs["chain_id"] = int(chain_id) if chain_id.strip() else None
    if "from_block" in params:
        kwargs["from_block"] = _parse_block(
            inquirer.text(message="From block (inclusive):", default=_LATEST).execute()
        )
    if "to_block" in params:
        kwargs["to_block"] = _parse_block(
            inquirer.text(message="To block (inclusive, empty = default for the task):", default="").execute()
        )
    if "address" in params:
        address = inquirer.text(message="Contract address (optional):", default="").execute()
        kwargs["address"] = address.strip() or None
    if "event_signature" in params:
        signature = inquirer.text(
            message="Event signature, e.g. Transfer(address,address,uint256) (optional):",
            default="",
        ).execute()
        kwargs["event_signature"] = signature.strip() or None
    if "topics" in params:
        kwargs["topics"] = _parse_topics(
            inquirer.text(message="Topics (comma separated, '*' = any, optional):", default="").execute()
        )

    _run_task(task, **kwargs)


@indexer_app.command("index-range")
def index_range(
    rpc_url: str = typer.Option(None, help="RPC endpoint, defaults to RPC_URL."),
    chain_id: Optional[int] = typer.Option(None, help="Chain whose checkpoint is advanced."),
    from_block: Optional[int] = typer.Option(None, help="Defaults to the latest block."),
    to_block: Optional[int] = typer.Option(None, help="Defaults to --from-block."),
    backend: str = typer.Option("sqlalchemy", help="Store backend: sqlalchemy | memory."),
) -> None:
    _run_task(
        TASKS["index_range_task"],
        rpc_url=_resolve_rpc_url(rpc_url),
        chain_id=chain_id,
        from_block=from_block,
        to_block=to_block,
        backend=backend,
    )


@indexer_app.command("index-filter")
def index_filter(
    rpc_url: str = typer.Option(None, help="RPC endpoint, defaults to RPC_URL."),
    from_block: Optional[int] = typer.Option(None),
    to_block: Optional[int] = typer.Option(None, help="Defaults to the latest block."),
    address: Optional[str] = typer.Option(None),
    topics: str = typer.Option("", help="Comma separated; '*' = any; 'a|b' = a or b."),
    event_signature: Optional[str] = typer.Option(None),
    backend: str = typer.Option("sqlalchemy", help="Store backend: sqlalchemy | memory."),
) -> None:
    _run_task(
        TASKS["index_by_filter_task"],
        rpc_url=_resolve_rpc_url(rpc_url),
        from_block=from_block,
        to_block=to_block,
        address=address,
        topics=_parse_topics(topics),
        event_signature=event_signature,
        backend=backend,
    )


@indexer_app.command("status")
def status(
    chain_id: int = typer.Argument(...),
    backend: str = typer.Option("sqlalchemy", help="Store backend: sqlalchemy | memory."),
) -> None:
    _run_task(TASKS["indexing_status_task"], chain_id=chain_id, backend=backend)


if __name__ == "__main__":
    typer.echo("\n      --- Chain Log Indexer CLI ---\n")
    app()
