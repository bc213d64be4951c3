"""aws-bulk command-line interface."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import structlog
import typer
from pydantic import ValidationError as PydanticValidationError

from aws_bulk.config import get_config
from aws_bulk.core.exceptions import AWSBulkError
from aws_bulk.core.session import get_session_manager
from aws_bulk.execution.batch import BatchProcessor, CallbackBatchLogger, ProcessResult
from aws_bulk.execution.errors import ErrorHandler
from aws_bulk.logging_setup import configure_logging
from aws_bulk.operations import (
    batch_write_items,
    change_visibility,
    delete_messages,
    receive_messages,
    send_messages,
)
from aws_bulk.output import render_records, render_result, render_summary
from aws_bulk.parser.input_files import load_records
from aws_bulk.parser.schemas import (
    DYNAMODB_MAX_BATCH_WRITE,
    BulkOperationInput,
    DynamoDBBatchWriteInput,
    OutputFormat,
    SQSChangeVisibilityBatchInput,
    SQSDeleteMessageBatchInput,
    SQSReceiveMessageBatchInput,
    SQSSendMessageBatchInput,
)

logger = structlog.get_logger()

app = typer.Typer(
    name="aws-bulk",
    help="Bulk AWS operations with batching, bounded concurrency and retries.",
    no_args_is_help=True,
)
sqs_app = typer.Typer(help="SQS message batch operations.", no_args_is_help=True)
dynamodb_app = typer.Typer(help="DynamoDB batch operations.", no_args_is_help=True)
app.add_typer(sqs_app, name="sqs")
app.add_typer(dynamodb_app, name="dynamodb")


@dataclass
class CLIState:
    """Global options shared by every command."""

    region: str | None = None
    profile: str | None = None
    verbose: bool = False


def _echo_err(message: str) -> None:
    typer.echo(message, err=True)


def _fail(message: str) -> None:
    _echo_err(message)
    raise typer.Exit(code=1)


def _format_validation_error(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show per-batch progress and debug logs"),
) -> None:
    """Configure logging and the AWS session before any command runs."""
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level, config.log_json)

    if region or profile:
        get_session_manager().configure(profile=profile, region=region)

    ctx.obj = CLIState(region=region, profile=profile, verbose=verbose)


def _state(ctx: typer.Context) -> CLIState:
    return ctx.obj if isinstance(ctx.obj, CLIState) else CLIState()


OperationRunner = Callable[[Any, list[dict[str, Any]], BatchProcessor], Awaitable[ProcessResult]]


def _run_bulk(
    state: CLIState,
    command_name: str,
    label: str,
    done_verb: str,
    build_input: Callable[[], BulkOperationInput],
    run_operation: OperationRunner,
) -> None:
    """Validate input, load records, run the operation and report the outcome."""
    try:
        params = build_input()
        records = load_records(params.input_file)
        processor = BatchProcessor(params.to_options(), logger=CallbackBatchLogger(_echo_err))
        result = asyncio.run(run_operation(params, records, processor))
    except PydanticValidationError as e:
        _fail(f"{command_name}: invalid input: {_format_validation_error(e)}")
        return
    except AWSBulkError as e:
        logger.debug("command_failed", command=command_name, **e.to_dict())
        _fail(ErrorHandler.format_for_cli(e, command_name, state.verbose))
        return
    except KeyboardInterrupt:
        _echo_err(f"{command_name}: interrupted")
        raise typer.Exit(code=130)

    summary = render_summary(label, result, done_verb)
    if params.output_format == OutputFormat.TABLE:
        typer.echo(summary)
    else:
        _echo_err(summary)

    rendered = render_result(result, params.output_format)
    if rendered:
        typer.echo(rendered)

    if result.failed:
        raise typer.Exit(code=1)


def _defaults() -> tuple[int, int, int]:
    batch = get_config().batch
    return batch.batch_size, batch.max_concurrency, batch.max_retries


BATCH_SIZE_OPTION = typer.Option(None, "--batch-size", help="Items per batch request")
MAX_CONCURRENCY_OPTION = typer.Option(None, "--max-concurrency", help="Maximum concurrent batches (1-20)")
MAX_RETRIES_OPTION = typer.Option(None, "--max-retries", help="Retries per batch (0-10)")
FORMAT_OPTION = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format")


@sqs_app.command("send-batch")
def sqs_send_batch(
    ctx: typer.Context,
    queue_url: str = typer.Argument(..., help="Queue URL"),
    input_file: Path = typer.Argument(..., help="JSON, JSONL, CSV or TSV file with messages"),
    batch_size: Optional[int] = BATCH_SIZE_OPTION,
    max_concurrency: Optional[int] = MAX_CONCURRENCY_OPTION,
    max_retries: Optional[int] = MAX_RETRIES_OPTION,
    output_format: OutputFormat = FORMAT_OPTION,
) -> None:
    """Send messages from a file to an SQS queue."""
    state = _state(ctx)
    default_size, default_concurrency, default_retries = _defaults()

    _run_bulk(
        state,
        "sqs:messages:send-batch",
        "send",
        "sent",
        lambda: SQSSendMessageBatchInput(
            queue_url=queue_url,
            input_file=str(input_file),
            batch_size=batch_size if batch_size is not None else default_size,
            max_concurrency=max_concurrency if max_concurrency is not None else default_concurrency,
            max_retries=max_retries if max_retries is not None else default_retries,
            region=state.region,
            profile=state.profile,
            output_format=output_format,
            verbose=state.verbose,
        ),
        lambda params, records, processor: send_messages(params.queue_url, records, processor),
    )


@sqs_app.command("delete-batch")
def sqs_delete_batch(
    ctx: typer.Context,
    queue_url: str = typer.Argument(..., help="Queue URL"),
    input_file: Path = typer.Argument(..., help="File with ReceiptHandle records"),
    batch_size: Optional[int] = BATCH_SIZE_OPTION,
    max_concurrency: Optional[int] = MAX_CONCURRENCY_OPTION,
    max_retries: Optional[int] = MAX_RETRIES_OPTION,
    output_format: OutputFormat = FORMAT_OPTION,
) -> None:
    """Delete messages from an SQS queue using receipt handles from a file."""
    state = _state(ctx)
    default_size, default_concurrency, default_retries = _defaults()

    _run_bulk(
        state,
        "sqs:messages:delete-batch",
        "delete",
        "deleted",
        lambda: SQSDeleteMessageBatchInput(
            queue_url=queue_url,
            input_file=str(input_file),
            batch_size=batch_size if batch_size is not None else default_size,
            max_concurrency=max_concurrency if max_concurrency is not None else default_concurrency,
            max_retries=max_retries if max_retries is not None else default_retries,
            region=state.region,
            profile=state.profile,
            output_format=output_format,
            verbose=state.verbose,
        ),
        lambda params, records, processor: delete_messages(params.queue_url, records, processor),
    )


@sqs_app.command("change-visibility-batch")
def sqs_change_visibility_batch(
    ctx: typer.Context,
    queue_url: str = typer.Argument(..., help="Queue URL"),
    input_file: Path = typer.Argument(..., help="File with ReceiptHandle (and VisibilityTimeout) records"),
    visibility_timeout: Optional[int] = typer.Option(
        None, "--visibility-timeout", help="Timeout for records without their own VisibilityTimeout"
    ),
    batch_size: Optional[int] = BATCH_SIZE_OPTION,
    max_concurrency: Optional[int] = MAX_CONCURRENCY_OPTION,
    max_retries: Optional[int] = MAX_RETRIES_OPTION,
    output_format: OutputFormat = FORMAT_OPTION,
) -> None:
    """Change the visibility timeout of in-flight SQS messages."""
    state = _state(ctx)
    default_size, default_concurrency, default_retries = _defaults()

    _run_bulk(
        state,
        "sqs:messages:change-visibility-batch",
        "visibility change",
        "updated",
        lambda: SQSChangeVisibilityBatchInput(
            queue_url=queue_url,
            input_file=str(input_file),
            visibility_timeout=visibility_timeout,
            batch_size=batch_size if batch_size is not None else default_size,
            max_concurrency=max_concurrency if max_concurrency is not None else default_concurrency,
            max_retries=max_retries if max_retries is not None else default_retries,
            region=state.region,
            profile=state.profile,
            output_format=output_format,
            verbose=state.verbose,
        ),
        lambda params, records, processor: change_visibility(
            params.queue_url, records, processor, default_timeout=params.visibility_timeout
        ),
    )


@sqs_app.command("receive-batch")
def sqs_receive_batch(
    ctx: typer.Context,
    queue_url: str = typer.Argument(..., help="Queue URL"),
    batch_size: int = typer.Option(10, "--batch-size", help="Messages per receive call (1-10)"),
    max_batches: Optional[int] = typer.Option(None, "--max-batches", help="Maximum number of batches"),
    wait_time_seconds: int = typer.Option(20, "--wait-time-seconds", help="Long polling wait time (0-20)"),
    visibility_timeout: Optional[int] = typer.Option(None, "--visibility-timeout"),
    output_format: OutputFormat = FORMAT_OPTION,
) -> None:
    """Receive messages from an SQS queue until it is drained."""
    state = _state(ctx)
    command_name = "sqs:messages:receive-batch"

    try:
        params = SQSReceiveMessageBatchInput(
            queue_url=queue_url,
            batch_size=batch_size,
            max_batches=max_batches,
            wait_time_seconds=wait_time_seconds,
            visibility_timeout=visibility_timeout,
            region=state.region,
            profile=state.profile,
            output_format=output_format,
            verbose=state.verbose,
        )
    except PydanticValidationError as e:
        _fail(f"{command_name}: invalid input: {_format_validation_error(e)}")
        return

    async def collect() -> tuple[list[dict[str, Any]], int]:
        received: list[dict[str, Any]] = []
        batches = 0
        async for messages in receive_messages(
            params.queue_url,
            batch_size=params.batch_size,
            max_batches=params.max_batches,
            wait_time_seconds=params.wait_time_seconds,
            visibility_timeout=params.visibility_timeout,
        ):
            batches += 1
            received.extend(messages)
            # JSON is a single document, everything else streams per batch
            if params.output_format != OutputFormat.JSON:
                typer.echo(render_records(messages, params.output_format))
        return received, batches

    try:
        received, batches = asyncio.run(collect())
    except AWSBulkError as e:
        _fail(ErrorHandler.format_for_cli(e, command_name, state.verbose))
        return
    except KeyboardInterrupt:
        _echo_err(f"{command_name}: interrupted")
        raise typer.Exit(code=130)

    if params.output_format == OutputFormat.JSON:
        typer.echo(render_records(received, OutputFormat.JSON))

    summary = f"Received {len(received)} messages in {batches} batches"
    if params.output_format == OutputFormat.TABLE:
        typer.echo(summary)
    else:
        _echo_err(summary)


@dynamodb_app.command("batch-write-item")
def dynamodb_batch_write_item(
    ctx: typer.Context,
    table_name: str = typer.Argument(..., help="Table name"),
    input_file: Path = typer.Argument(..., help="JSON, JSONL, CSV or TSV file with items"),
    batch_size: int = typer.Option(DYNAMODB_MAX_BATCH_WRITE, "--batch-size", help="Items per request (1-25)"),
    max_concurrency: Optional[int] = MAX_CONCURRENCY_OPTION,
    max_retries: Optional[int] = MAX_RETRIES_OPTION,
    output_format: OutputFormat = FORMAT_OPTION,
) -> None:
    """Put items from a file into a DynamoDB table."""
    state = _state(ctx)
    _, default_concurrency, default_retries = _defaults()

    _run_bulk(
        state,
        "dynamodb:batch-write-item",
        "write",
        "written",
        lambda: DynamoDBBatchWriteInput(
            table_name=table_name,
            input_file=str(input_file),
            batch_size=batch_size,
            max_concurrency=max_concurrency if max_concurrency is not None else default_concurrency,
            max_retries=max_retries if max_retries is not None else default_retries,
            region=state.region,
            profile=state.profile,
            output_format=output_format,
            verbose=state.verbose,
        ),
        lambda params, records, processor: batch_write_items(params.table_name, records, processor),
    )


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
